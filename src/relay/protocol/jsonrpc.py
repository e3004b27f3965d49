"""
Wire models for JSON-RPC 2.0 requests and responses.

Requests are built from caller input, so they only need to render themselves.
Responses come from the peer and are validated by the message parser before
an envelope is constructed, which is why the envelope itself trusts its
fields.
"""

from typing import Any, Literal

from relay.protocol.base import (
    PROTOCOL_VERSION,
    ErrorPayload,
    Params,
    ProtocolModel,
    RequestId,
)


class JSONRPCRequest(ProtocolModel):
    """
    A request object as it goes on the wire.
    """

    jsonrpc: Literal["2.0"] = PROTOCOL_VERSION
    id: RequestId
    method: str
    params: Params | None = None

    def to_protocol(self) -> dict[str, Any]:
        """Convert to a wire dict. Params are omitted when there are none."""
        payload: dict[str, Any] = {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "method": self.method,
        }
        if self.params is not None:
            payload["params"] = (
                list(self.params)
                if isinstance(self.params, tuple)
                else dict(self.params)
            )
        return payload


class ResponseEnvelope(ProtocolModel):
    """
    One parsed response unit: an identifier and exactly one outcome.

    `result` may legitimately be `null` on the wire, so presence is tracked
    separately from value.
    """

    jsonrpc: Literal["2.0"] = PROTOCOL_VERSION
    id: RequestId | None
    result: Any = None
    error: ErrorPayload | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def has_result(self) -> bool:
        return "result" in self.model_fields_set

    @classmethod
    def from_result(cls, request_id: RequestId, result: Any) -> "ResponseEnvelope":
        return cls(id=request_id, result=result)

    @classmethod
    def from_error(
        cls, request_id: RequestId | None, error: ErrorPayload
    ) -> "ResponseEnvelope":
        return cls(id=request_id, error=error)
