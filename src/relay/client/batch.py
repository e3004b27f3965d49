"""Batch construction: a mutable builder that produces an immutable batch.

The builder collects calls and settings in any order. build() runs every local
check and freezes the result into a BatchRequest, which is all the rest of the
pipeline ever sees.

    results = (
        client.create_batch_request()
        .add(1, "findPlayer", "Steven", "Stamkos")
        .add(2, "findPlayer", "Vladimir", "Sobotka")
        .return_type(Player)
        .keys_type(int)
        .execute()
    )
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from relay.protocol.base import (
    Params,
    RequestId,
    build_params,
    check_id_type,
    validate_keys_type,
    validate_method,
    validate_request_id,
)
from relay.protocol.jsonrpc import JSONRPCRequest
from relay.shared.exceptions import ConfigurationError

if TYPE_CHECKING:
    from relay.client.client import JsonRpcClient


@dataclass(frozen=True)
class PendingCall:
    """One call waiting to be sent and answered.

    A return_type of None means "not set". Use `type(None)` for methods that
    are expected to return null.
    """

    id: RequestId
    method: str
    params: Params | None = None
    return_type: Any = None

    def validate(self) -> None:
        """Check the call can be sent on its own.

        Raises:
            ConfigurationError: If the id or method is invalid, or no return
                type is set.
        """
        validate_request_id(self.id)
        validate_method(self.method)
        if self.return_type is None:
            raise ConfigurationError(
                f"Return type isn't specified for request with id='{self.id}'"
            )

    def to_request(self) -> JSONRPCRequest:
        return JSONRPCRequest(id=self.id, method=self.method, params=self.params)


@dataclass(frozen=True)
class BatchRequest:
    """A validated, immutable batch ready for execution.

    Raises:
        ConfigurationError: On construction, if the batch is empty, ids clash
            or have the wrong type, or return types are missing or mixed.
    """

    calls: tuple[PendingCall, ...]
    return_type: Any = None
    keys_type: type | None = None
    _index: dict[RequestId, PendingCall] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.calls:
            raise ConfigurationError("Requests are not set")

        if self.keys_type is not None:
            validate_keys_type(self.keys_type)

        index: dict[RequestId, PendingCall] = {}
        for call in self.calls:
            validate_request_id(call.id)
            validate_method(call.method)
            check_id_type(call.id, self.keys_type)
            if call.id in index:
                raise ConfigurationError(f"Duplicate id: '{call.id}' in batch")
            index[call.id] = call

        if self.return_type is not None:
            if any(call.return_type is not None for call in self.calls):
                raise ConfigurationError(
                    "Common and detailed configurations of return types "
                    "shouldn't be mixed"
                )
        else:
            for call in self.calls:
                if call.return_type is None:
                    raise ConfigurationError(
                        f"Return type isn't specified for request with id='{call.id}'"
                    )

        object.__setattr__(self, "_index", index)

    @property
    def ids(self) -> list[RequestId]:
        return [call.id for call in self.calls]

    def get_call(self, request_id: RequestId) -> PendingCall | None:
        """Find the call for an identifier. Lookup is type-sensitive."""
        if isinstance(request_id, bool):
            return None
        call = self._index.get(request_id)
        # dict lookup treats 1 and 1.0 as equal
        if call is None or type(call.id) is not type(request_id):
            return None
        return call

    def return_type_for(self, call: PendingCall) -> Any:
        if call.return_type is not None:
            return call.return_type
        return self.return_type

    def to_requests(self) -> list[JSONRPCRequest]:
        return [call.to_request() for call in self.calls]


class BatchRequestBuilder:
    """Mutable staging area for a batch of calls.

    Owns its calls until build() freezes them. Identifier types are checked
    as calls are added if keys_type() was already called, and again at build
    time for calls added before it.
    """

    def __init__(self, client: "JsonRpcClient | None" = None):
        self._client = client
        self._calls: list[PendingCall] = []
        self._return_type: Any = None
        self._keys_type: type | None = None

    @property
    def calls(self) -> list[PendingCall]:
        return list(self._calls)

    def add(
        self,
        request_id: RequestId,
        method: str,
        /,
        *args: Any,
        return_type: Any = None,
        **kwargs: Any,
    ) -> Self:
        """Add a call to the batch.

        Positional arguments are sent as an ordered params array, keyword
        arguments as a named params object.

        Args:
            request_id: Caller-chosen identifier, unique within the batch
            method: Remote method name
            *args: Positional params
            return_type: Type for this call's result. Can't be combined with
                a batch-wide return_type().
            **kwargs: Named params

        Raises:
            ConfigurationError: If the id is invalid or has the wrong type, the
                method name is empty, or both params styles are used.
        """
        validate_request_id(request_id)
        check_id_type(request_id, self._keys_type)
        validate_method(method)
        params = build_params(request_id, args, kwargs)
        self._calls.append(
            PendingCall(
                id=request_id, method=method, params=params, return_type=return_type
            )
        )
        return self

    def return_type(self, return_type: Any) -> Self:
        """Set one return type for every call in the batch."""
        self._return_type = return_type
        return self

    def keys_type(self, keys_type: type) -> Self:
        """Require every identifier in the batch to be an int, or a str.

        Calls added from now on are checked immediately. Calls added earlier
        are checked by build().

        Raises:
            ConfigurationError: If keys_type isn't int or str.
        """
        validate_keys_type(keys_type)
        self._keys_type = keys_type
        return self

    def build(self) -> BatchRequest:
        """Freeze the staged calls into a validated batch.

        Raises:
            ConfigurationError: If the batch can't be sent as configured.
        """
        return BatchRequest(
            calls=tuple(self._calls),
            return_type=self._return_type,
            keys_type=self._keys_type,
        )

    def execute(self) -> dict[RequestId, Any]:
        """Build, send and reconcile the batch.

        Returns:
            Mapping of identifier to converted result.

        Raises:
            ConfigurationError: If the batch is misconfigured (nothing is sent).
            SerializationError: If an argument can't be rendered as JSON.
            TransportError: If the transport fails.
            ProtocolError: If the response can't be reconciled.
            ResultCoercionError: If a result doesn't fit its return type.
            BatchError: If any call came back with an error. The successes
                are available on the exception.
        """
        if self._client is None:
            raise ConfigurationError("Batch builder isn't bound to a client")
        return self._client.execute_batch(self.build())
