"""Exceptions raised while building, sending and reconciling JSON-RPC calls.

Local mistakes (bad ids, missing return types, unserializable arguments) are
ValueErrors and never reach the transport. Transport failures are
ConnectionErrors. Responses that can't be trusted are RuntimeErrors and abort
the whole execution. Per-call error envelopes are the only recoverable kind:
they are collected into a BatchError alongside the successes.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from relay.protocol.base import ErrorPayload, RequestId


class ConfigurationError(ValueError):
    """A request or batch was configured incorrectly. Nothing was sent."""


class SerializationError(ValueError):
    """A request argument has no JSON representation. Nothing was sent."""


class TransportError(ConnectionError):
    """The transport failed to deliver the request or return a response."""


class ProtocolError(RuntimeError):
    """The response violates JSON-RPC 2.0 and can't be reconciled."""


class ResponseParseError(ProtocolError):
    """The response body is not JSON."""


class ResponseShapeError(ProtocolError):
    """The response root (or a batch element) is the wrong JSON kind."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} but was {actual}")


class MalformedResponseError(ProtocolError):
    """A response object is missing or misusing a required member."""


class ProtocolVersionError(MalformedResponseError):
    """The `jsonrpc` member is absent or isn't "2.0"."""


class AmbiguousResponseError(MalformedResponseError):
    """A response carries both `result` and `error`, or neither."""


class UnsolicitedIdError(ProtocolError):
    """A response answers an identifier that was never sent."""

    def __init__(self, request_id: "RequestId | None"):
        self.request_id = request_id
        super().__init__(f"Unspecified id: '{request_id}' in response")


class DuplicateResponseIdError(ProtocolError):
    """The same identifier was answered more than once."""

    def __init__(self, request_id: "RequestId"):
        self.request_id = request_id
        super().__init__(f"Duplicate id: '{request_id}' in response")


class MissingResponseError(ProtocolError):
    """Some sent identifiers were never answered."""

    def __init__(self, request_ids: "list[RequestId]"):
        self.request_ids = request_ids
        ids = ", ".join(f"'{request_id}'" for request_id in request_ids)
        super().__init__(f"No response for ids: {ids}")


class ResultCoercionError(ValueError):
    """A result payload doesn't fit the return type requested for it."""

    def __init__(self, request_id: "RequestId", return_type: Any, details: str):
        self.request_id = request_id
        self.return_type = return_type
        super().__init__(
            f"Unable to convert result for id='{request_id}' to "
            f"{_type_name(return_type)}: {details}"
        )


class JsonRpcError(Exception):
    """The server answered a single call with an error envelope."""

    def __init__(self, error: "ErrorPayload"):
        self.error = error
        self.code = error.code
        self.message = error.message
        self.data = error.data
        super().__init__(f"JSON-RPC error {error.code}: {error.message}")


class BatchError(Exception):
    """At least one call in a batch came back with an error envelope.

    Successful calls are still available through `successes`.
    """

    def __init__(
        self,
        successes: "dict[RequestId, Any]",
        errors: "dict[RequestId, ErrorPayload]",
    ):
        self.successes = successes
        self.errors = errors
        failed = ", ".join(f"'{request_id}'" for request_id in errors)
        super().__init__(
            f"{len(errors)} of {len(successes) + len(errors)} requests failed: "
            f"{failed}"
        )


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
