"""Single-call request construction.

    player = (
        client.create_request()
        .method("findPlayer")
        .params("Steven", "Stamkos")
        .return_as(Player)
        .execute()
    )
"""

from typing import TYPE_CHECKING, Any, Self

from relay.client.batch import PendingCall
from relay.protocol.base import RequestId, validate_method, validate_request_id
from relay.shared.exceptions import ConfigurationError

if TYPE_CHECKING:
    from relay.client.client import JsonRpcClient


class RequestBuilder:
    """Fluent builder for one JSON-RPC call.

    Params are either positional, set with params(), or named, set one at a
    time with param(). Using both is rejected at build time. Without an
    explicit id the client's id generator supplies one.
    """

    def __init__(self, client: "JsonRpcClient | None" = None):
        self._client = client
        self._id: RequestId | None = None
        self._method: str | None = None
        self._args: tuple[Any, ...] = ()
        self._named: dict[str, Any] = {}
        self._return_type: Any = None

    def id(self, request_id: RequestId) -> Self:
        self._id = validate_request_id(request_id)
        return self

    def method(self, method: str) -> Self:
        self._method = validate_method(method)
        return self

    def params(self, *args: Any) -> Self:
        """Set positional params, replacing any set before."""
        self._args = tuple(args)
        return self

    def param(self, name: str, value: Any) -> Self:
        """Add one named param."""
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Param name must be a non-empty string: {name!r}")
        self._named[name] = value
        return self

    def return_as(self, return_type: Any) -> Self:
        self._return_type = return_type
        return self

    def build(self) -> PendingCall:
        """Validate the staged call and freeze it.

        Raises:
            ConfigurationError: If the method or return type is missing, or both
                params styles were used.
        """
        request_id = self._id
        if request_id is None:
            if self._client is None:
                raise ConfigurationError("Id isn't set and no generator is available")
            request_id = self._client.next_id()

        if self._method is None:
            raise ConfigurationError(
                f"Method isn't set for request with id='{request_id}'"
            )
        if self._return_type is None:
            raise ConfigurationError(
                f"Return type isn't specified for request with id='{request_id}'"
            )
        if self._args and self._named:
            raise ConfigurationError(
                f"Both positional and named params are set for request with "
                f"id='{request_id}'"
            )

        params = dict(self._named) if self._named else (self._args or None)
        return PendingCall(
            id=request_id,
            method=self._method,
            params=params,
            return_type=self._return_type,
        )

    def execute(self) -> Any:
        """Build, send and reconcile the call.

        Returns:
            The converted result.

        Raises:
            ConfigurationError: If the call is misconfigured (nothing is sent).
            SerializationError: If an argument can't be rendered as JSON.
            TransportError: If the transport fails.
            ProtocolError: If the response can't be reconciled.
            ResultCoercionError: If the result doesn't fit the return type.
            JsonRpcError: If the server answered with an error.
        """
        if self._client is None:
            raise ConfigurationError("Request builder isn't bound to a client")
        return self._client.execute_request(self.build())
