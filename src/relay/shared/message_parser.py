"""JSON-RPC response parsing and validation.

Turns raw response text into ResponseEnvelope objects, checking every rule the
client relies on before any result is handed to a caller: the text is JSON,
the root has the shape of what was sent, every element speaks JSON-RPC 2.0,
and every element carries exactly one of `result` or `error`.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from relay.protocol.base import PROTOCOL_VERSION, ErrorPayload, is_request_id
from relay.protocol.jsonrpc import ResponseEnvelope
from relay.shared.exceptions import (
    AmbiguousResponseError,
    MalformedResponseError,
    ProtocolVersionError,
    ResponseParseError,
    ResponseShapeError,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LENGTH = 256


def json_kind(value: Any) -> str:
    """Name the JSON kind of a decoded value."""
    if isinstance(value, dict):
        return "OBJECT"
    if isinstance(value, list):
        return "ARRAY"
    if isinstance(value, str):
        return "STRING"
    if isinstance(value, bool):
        return "BOOLEAN"
    if isinstance(value, (int, float)):
        return "NUMBER"
    return "NULL"


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by the json module but aren't JSON
    raise ValueError(f"Non-JSON constant: {name}")


class MessageParser:
    """Parses JSON-RPC response text into typed envelopes.

    Every failure here is fatal to the execution: a response that breaks the
    protocol can't be trusted to line up with the requests that were sent.
    """

    def __init__(self, excerpt_length: int = DEFAULT_EXCERPT_LENGTH):
        self.excerpt_length = excerpt_length

    def parse_response(self, text: str, expect_batch: bool) -> list[ResponseEnvelope]:
        """Parse response text into envelopes, in arrival order.

        Args:
            text: Raw response body returned by the transport
            expect_batch: True if a batch (array) was sent, False for a single
                request object

        Returns:
            One envelope per response object. A single response yields a
            one-element list.

        Raises:
            ResponseParseError: The text isn't JSON.
            ResponseShapeError: The root or an element is the wrong JSON kind.
            ProtocolVersionError: An element is missing `jsonrpc` or it isn't "2.0".
            AmbiguousResponseError: An element has both or neither of result/error.
            MalformedResponseError: An element has an invalid id or error object.
        """
        try:
            root = json.loads(text, parse_constant=_reject_constant)
        except (TypeError, ValueError) as e:
            raise ResponseParseError(
                f"Unable parse a JSON response: {self._excerpt(text)}"
            ) from e

        if expect_batch:
            if not isinstance(root, list):
                raise ResponseShapeError("array", json_kind(root))
            elements = root
        else:
            elements = [root]

        envelopes = [self.parse_envelope(element) for element in elements]
        logger.debug(f"Parsed {len(envelopes)} response envelope(s)")
        return envelopes

    def parse_envelope(self, payload: Any) -> ResponseEnvelope:
        """Validate one response object and build its envelope.

        Raises:
            ResponseShapeError: The payload isn't a JSON object.
            ProtocolVersionError: `jsonrpc` is absent or isn't "2.0".
            AmbiguousResponseError: Both or neither of result/error are set.
            MalformedResponseError: The id or error object is invalid.
        """
        if not isinstance(payload, dict):
            raise ResponseShapeError("object", json_kind(payload))

        if "jsonrpc" not in payload:
            raise ProtocolVersionError(
                f"Not a JSON-RPC response: {self._excerpt(json.dumps(payload))}"
            )
        version = payload["jsonrpc"]
        if version != PROTOCOL_VERSION:
            raise ProtocolVersionError(f"Bad protocol version: {version!r}")

        request_id = payload.get("id")
        has_result = "result" in payload
        has_error = "error" in payload

        if has_result and has_error:
            raise AmbiguousResponseError(
                f"Both result and error are set in response: id='{request_id}'"
            )
        if not has_result and not has_error:
            raise AmbiguousResponseError(
                f"Neither result or error is set in response: id='{request_id}'"
            )

        if has_error:
            if request_id is not None and not is_request_id(request_id):
                raise MalformedResponseError(f"Invalid id in response: {request_id!r}")
            return ResponseEnvelope.from_error(
                request_id, self._parse_error(request_id, payload["error"])
            )

        if not is_request_id(request_id):
            raise MalformedResponseError(f"Invalid id in response: {request_id!r}")
        return ResponseEnvelope.from_result(request_id, payload["result"])

    def is_valid_response(self, payload: Any) -> bool:
        """Check if payload is a valid JSON-RPC response object."""
        try:
            self.parse_envelope(payload)
        except (ResponseShapeError, MalformedResponseError):
            return False
        return True

    def _parse_error(self, request_id: Any, error: Any) -> ErrorPayload:
        try:
            return ErrorPayload.model_validate(error)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Malformed error object in response: id='{request_id}'"
            ) from e

    def _excerpt(self, text: Any) -> str:
        text = str(text)
        if len(text) <= self.excerpt_length:
            return text
        return text[: self.excerpt_length] + "..."
