"""Matching of response envelopes back to the calls that produced them.

Envelopes arrive in any order. Each one is matched to its call by identifier,
error envelopes are collected per identifier, and results are converted to the
call's return type. Anything that suggests the response and the request have
drifted apart (an unknown id, an id answered twice, an id never answered)
aborts the whole execution.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from relay.client.batch import BatchRequest, PendingCall
from relay.client.coercion import ResultCoercer
from relay.protocol.base import ErrorPayload, RequestId
from relay.protocol.jsonrpc import ResponseEnvelope
from relay.shared.exceptions import (
    BatchError,
    DuplicateResponseIdError,
    JsonRpcError,
    MissingResponseError,
    UnsolicitedIdError,
)

logger = logging.getLogger(__name__)


@dataclass
class BatchOutcome:
    """Per-identifier outcomes of one batch execution."""

    successes: dict[RequestId, Any] = field(default_factory=dict)
    errors: dict[RequestId, ErrorPayload] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def raise_for_errors(self) -> None:
        """Raise a BatchError carrying both mappings if any call failed."""
        if self.errors:
            raise BatchError(self.successes, self.errors)


class BatchReconciler:
    """Reconciles parsed envelopes against the originating batch.

    Reads the batch, never mutates it. Holds no per-execution state, so one
    instance can serve concurrent executions.
    """

    def __init__(self, coercer: ResultCoercer | None = None):
        self.coercer = coercer or ResultCoercer()

    def reconcile(
        self, batch: BatchRequest, envelopes: list[ResponseEnvelope]
    ) -> dict[RequestId, Any]:
        """Match envelopes to calls and return the converted results.

        Returns:
            Mapping of identifier to converted result, one entry per call.

        Raises:
            UnsolicitedIdError: An envelope answers an id that wasn't sent.
            DuplicateResponseIdError: An id is answered more than once.
            MissingResponseError: A sent id isn't answered.
            ResultCoercionError: A result doesn't fit its return type.
            BatchError: One or more calls came back with an error envelope.
        """
        outcome = self.partition(batch, envelopes)
        outcome.raise_for_errors()
        return outcome.successes

    def partition(
        self, batch: BatchRequest, envelopes: list[ResponseEnvelope]
    ) -> BatchOutcome:
        """Split envelopes into successes and errors without raising for errors.

        Protocol-level problems still raise; see reconcile().
        """
        outcome = BatchOutcome()
        seen: set[tuple[type, RequestId]] = set()

        for envelope in envelopes:
            call = batch.get_call(envelope.id) if envelope.id is not None else None
            if call is None:
                raise UnsolicitedIdError(envelope.id)

            key = (type(call.id), call.id)
            if key in seen:
                raise DuplicateResponseIdError(call.id)
            seen.add(key)

            if envelope.error is not None:
                logger.warning(
                    f"Request {call.id!r} ({call.method}) failed: "
                    f"{envelope.error.code} {envelope.error.message}"
                )
                outcome.errors[call.id] = envelope.error
                continue

            outcome.successes[call.id] = self.coercer.coerce(
                call.id, envelope.result, batch.return_type_for(call)
            )

        missing = [
            call.id for call in batch.calls if (type(call.id), call.id) not in seen
        ]
        if missing:
            raise MissingResponseError(missing)

        logger.debug(
            f"Reconciled batch: {len(outcome.successes)} succeeded, "
            f"{len(outcome.errors)} failed"
        )
        return outcome

    def reconcile_single(self, call: PendingCall, envelope: ResponseEnvelope) -> Any:
        """Match a lone envelope to its call and return the converted result.

        An error envelope may carry a null id: servers use it when they
        couldn't read the request id.

        Raises:
            UnsolicitedIdError: The envelope answers a different id.
            JsonRpcError: The server returned an error envelope.
            ResultCoercionError: The result doesn't fit the return type.
        """
        if envelope.error is not None:
            if envelope.id is not None and not _same_id(envelope.id, call.id):
                raise UnsolicitedIdError(envelope.id)
            raise JsonRpcError(envelope.error)

        if not _same_id(envelope.id, call.id):
            raise UnsolicitedIdError(envelope.id)
        return self.coercer.coerce(call.id, envelope.result, call.return_type)


def _same_id(left: Any, right: Any) -> bool:
    return type(left) is type(right) and left == right
