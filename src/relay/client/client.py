"""JSON-RPC 2.0 client: the execution pipeline for single calls and batches.

Every execution runs the same stages and stops at the first failure:

1. Validate - builders freeze their input; return types get their adapters
2. Serialize - render request text, failing on unsupported arguments
3. Transmit - one blocking round trip through the transport
4. Parse - turn the response text into validated envelopes
5. Reconcile - match envelopes to calls and convert results

Nothing reaches the transport unless stages 1 and 2 pass. The client keeps no
state between executions apart from its id generator, so one client can be
shared by threads as long as its transport can.
"""

import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Self

from relay.client.batch import BatchRequest, BatchRequestBuilder, PendingCall
from relay.client.coercion import ResultCoercer
from relay.client.id_generators import IdGenerator, SequentialIdGenerator
from relay.client.reconciler import BatchReconciler
from relay.client.request import RequestBuilder
from relay.protocol.base import RequestId
from relay.shared.exceptions import TransportError
from relay.shared.message_parser import DEFAULT_EXCERPT_LENGTH, MessageParser
from relay.shared.serializer import RequestSerializer
from relay.transport.base import Transport

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    id_generator: IdGenerator = field(default_factory=SequentialIdGenerator)
    response_excerpt_length: int = DEFAULT_EXCERPT_LENGTH


class JsonRpcClient:
    """Builds, sends and reconciles JSON-RPC calls over a transport."""

    def __init__(self, transport: Transport, config: ClientConfig | None = None):
        self.transport = transport
        self.config = config or ClientConfig()
        self.serializer = RequestSerializer()
        self.parser = MessageParser(self.config.response_excerpt_length)
        self.coercer = ResultCoercer()
        self.reconciler = BatchReconciler(self.coercer)

    # ================================
    # Builders
    # ================================

    def create_request(self) -> RequestBuilder:
        return RequestBuilder(self)

    def create_batch_request(self) -> BatchRequestBuilder:
        return BatchRequestBuilder(self)

    def call(
        self,
        method: str,
        /,
        *args: Any,
        return_type: Any,
        request_id: RequestId | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send one call and return its converted result.

        Shortcut for the request builder. Positional arguments become
        positional params, keyword arguments named params.

        Raises:
            JsonRpcError: If the server answered with an error.
        """
        builder = self.create_request().method(method).return_as(return_type)
        if request_id is not None:
            builder.id(request_id)
        builder.params(*args)
        for name, value in kwargs.items():
            builder.param(name, value)
        return builder.execute()

    def next_id(self) -> RequestId:
        return self.config.id_generator.generate()

    # ================================
    # Execution
    # ================================

    def execute_request(self, call: PendingCall) -> Any:
        """Send a single call and return its converted result.

        Raises:
            ConfigurationError: If the id, method or return type is invalid.
            SerializationError: If an argument can't be rendered as JSON.
            TransportError: If the transport fails.
            ProtocolError: If the response is malformed or answers another id.
            ResultCoercionError: If the result doesn't fit the return type.
            JsonRpcError: If the server answered with an error.
        """
        call.validate()
        self.coercer.adapter_for(call.return_type)
        request_text = self.serializer.serialize_request(call.to_request())

        logger.debug(f"Sending request {call.id!r} ({call.method})")
        response_text = self._transmit(request_text)

        (envelope,) = self.parser.parse_response(response_text, expect_batch=False)
        return self.reconciler.reconcile_single(call, envelope)

    def execute_batch(self, batch: BatchRequest) -> dict[RequestId, Any]:
        """Send a batch and return its converted results by identifier.

        Raises:
            ConfigurationError: If a return type can't be validated against.
            SerializationError: If an argument can't be rendered as JSON.
            TransportError: If the transport fails.
            ProtocolError: If the response can't be reconciled with the batch.
            ResultCoercionError: If a result doesn't fit its return type.
            BatchError: If any call came back with an error.
        """
        for call in batch.calls:
            self.coercer.adapter_for(batch.return_type_for(call))
        request_text = self.serializer.serialize_batch(batch.to_requests())

        logger.debug(f"Sending batch of {len(batch.calls)} requests")
        response_text = self._transmit(request_text)

        envelopes = self.parser.parse_response(response_text, expect_batch=True)
        return self.reconciler.reconcile(batch, envelopes)

    def _transmit(self, request_text: str) -> str:
        try:
            response_text = self.transport.send(request_text)
        except Exception as e:
            raise TransportError(f"I/O error during a request processing: {e}") from e
        logger.debug(f"Received response: {response_text}")
        return response_text

    # ================================
    # Lifecycle
    # ================================

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
        return None
