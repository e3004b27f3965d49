"""
Core JSON-RPC 2.0 vocabulary shared by the request and response sides.

Identifiers are caller-chosen correlation tokens. JSON-RPC allows numbers and
strings, and a batch may pin every identifier to one of the two. Python's own
equality already keeps `10` and `"10"` apart. Subclasses are the trap: `bool`
compares equal to `1`, and enum members go on the wire as their plain value
but keep their own type, so responses could never be matched back. Only exact
`int` and `str` values are accepted.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from relay.shared.exceptions import ConfigurationError

PROTOCOL_VERSION = "2.0"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RequestId = Annotated[int, Field(strict=True)] | str
Params = tuple[Any, ...] | dict[str, Any]

ID_TYPES: tuple[type, ...] = (int, str)


class ProtocolModel(BaseModel):
    """Base class for wire-level models."""

    model_config = ConfigDict(extra="allow", frozen=True)


class ErrorPayload(ProtocolModel):
    """
    The `error` member of a failed JSON-RPC response.
    """

    code: Annotated[int, Field(strict=True)]
    """
    Integer error code. Values in -32768..-32000 are reserved by the protocol.
    """

    message: str
    """
    Short human-readable description of the error.
    """

    data: Any = None
    """
    Optional server-defined detail.
    """

    def to_protocol(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def is_request_id(value: Any) -> bool:
    """True if value can serve as a JSON-RPC identifier."""
    return type(value) in ID_TYPES


def validate_request_id(value: Any) -> RequestId:
    """Return the identifier unchanged, or raise if it can't be sent.

    Raises:
        ConfigurationError: For anything that isn't an int or a str.
    """
    if not is_request_id(value):
        raise ConfigurationError(f"Wrong id={value!r}")
    return value


def validate_keys_type(keys_type: Any) -> type:
    """Check a batch-wide identifier type is one JSON-RPC can carry."""
    if keys_type not in ID_TYPES:
        raise ConfigurationError(
            f"Unsupported keys type: {keys_type!r}. Should be 'int' or 'str'"
        )
    return keys_type


def check_id_type(request_id: RequestId, keys_type: type | None) -> None:
    """Raise if an identifier doesn't match the batch-wide identifier type.

    Args:
        request_id: Identifier supplied by the caller
        keys_type: Fixed identifier type for the batch, or None if unset

    Raises:
        ConfigurationError: If the identifier has the wrong type.
    """
    if keys_type is None or type(request_id) is keys_type:
        return
    raise ConfigurationError(
        f"Id: '{request_id}' has wrong type: '{type(request_id).__name__}'. "
        f"Should be: '{keys_type.__name__}'"
    )


def validate_method(method: Any) -> str:
    if not isinstance(method, str) or not method:
        raise ConfigurationError(f"Method name must be a non-empty string: {method!r}")
    return method


def build_params(
    request_id: RequestId, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> Params | None:
    """Pick the params style for a call.

    Positional arguments become an ordered array, keyword arguments a named
    object. A call with neither omits params entirely.

    Raises:
        ConfigurationError: If both positional and named params are supplied.
    """
    if args and kwargs:
        raise ConfigurationError(
            f"Both positional and named params are set for request with "
            f"id='{request_id}'"
        )
    if kwargs:
        return dict(kwargs)
    if args:
        return tuple(args)
    return None
