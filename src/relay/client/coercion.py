"""Conversion of raw result payloads into caller-requested types.

A return type is anything pydantic can build a TypeAdapter for: builtins,
generic containers like `list[int]`, pydantic models, dataclasses, TypedDicts,
or `typing.Any` to keep the decoded JSON untouched.
"""

from typing import Any

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from relay.protocol.base import RequestId
from relay.shared.exceptions import ConfigurationError, ResultCoercionError


class ResultCoercer:
    """Converts decoded JSON results into typed values.

    Adapters are cached per return type so a batch of N calls sharing one type
    builds its validator once.
    """

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def coerce(self, request_id: RequestId, result: Any, return_type: Any) -> Any:
        """Convert a result payload to the type requested for its call.

        Args:
            request_id: Identifier of the call the result answers
            result: Decoded JSON value of the `result` member
            return_type: Type the caller asked for

        Returns:
            The converted value.

        Raises:
            ResultCoercionError: If the payload doesn't fit the type.
        """
        adapter = self.adapter_for(return_type)
        try:
            return adapter.validate_python(result)
        except ValidationError as e:
            raise ResultCoercionError(
                request_id, return_type, _summarize(e)
            ) from e

    def adapter_for(self, return_type: Any) -> TypeAdapter[Any]:
        """Return the cached adapter for a type, building it on first use.

        Raises:
            ConfigurationError: If pydantic can't build a validator for the type.
        """
        try:
            return self._adapters[return_type]
        except KeyError:
            pass
        except TypeError:
            # Unhashable annotation; build a fresh adapter every time.
            return self._build_adapter(return_type)

        adapter = self._build_adapter(return_type)
        self._adapters[return_type] = adapter
        return adapter

    def _build_adapter(self, return_type: Any) -> TypeAdapter[Any]:
        try:
            return TypeAdapter(return_type)
        except (PydanticUserError, TypeError) as e:
            raise ConfigurationError(
                f"Unsupported return type: {return_type!r}"
            ) from e


def _summarize(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "result"
        parts.append(f"{location}: {detail['msg']}")
    return "; ".join(parts)
