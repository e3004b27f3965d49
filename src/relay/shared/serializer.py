"""JSON rendering for outgoing requests.

Arguments may be any value pydantic knows how to dump (models, dataclasses,
enums, datetimes, UUIDs, plain containers). Anything else fails here, before
the transport is involved.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from relay.protocol.jsonrpc import JSONRPCRequest
from relay.shared.exceptions import SerializationError

logger = logging.getLogger(__name__)


class RequestSerializer:
    """Turns request models into JSON text.

    A single call is rendered as a bare object, a batch as an array of objects
    in the order the calls were added.
    """

    def serialize_request(self, request: JSONRPCRequest) -> str:
        """Render one request as a JSON object.

        Raises:
            SerializationError: If an argument has no JSON representation.
        """
        return self._dumps(self.to_payload(request))

    def serialize_batch(self, requests: Sequence[JSONRPCRequest]) -> str:
        """Render a batch as a JSON array.

        Raises:
            SerializationError: If any argument has no JSON representation.
        """
        return self._dumps([self.to_payload(request) for request in requests])

    def to_payload(self, request: JSONRPCRequest) -> dict[str, Any]:
        """Convert a request into plain JSON-compatible Python values."""
        payload = request.to_protocol()
        if "params" in payload:
            payload["params"] = self._to_jsonable(request.id, payload["params"])
        return payload

    def _to_jsonable(self, request_id: Any, params: Any) -> Any:
        try:
            return to_jsonable_python(params)
        except PydanticSerializationError as e:
            unsupported = _find_unsupported(params)
            type_name = type(unsupported).__name__ if unsupported is not None else "?"
            raise SerializationError(
                f"No serializer found for class '{type_name}' in params of "
                f"request with id='{request_id}': {e}"
            ) from e

    def _dumps(self, payload: Any) -> str:
        try:
            text = json.dumps(payload, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"No serializer found for request payload: {e}"
            ) from e
        logger.debug(f"Serialized request: {text}")
        return text


def _find_unsupported(value: Any) -> Any:
    """Locate the first nested value pydantic refuses to serialize."""
    if isinstance(value, dict):
        candidates = list(value.values())
    elif isinstance(value, (list, tuple, set, frozenset)):
        candidates = list(value)
    else:
        return value
    for candidate in candidates:
        try:
            to_jsonable_python(candidate)
        except PydanticSerializationError:
            return _find_unsupported(candidate)
    return None
