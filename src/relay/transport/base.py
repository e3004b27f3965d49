from abc import ABC, abstractmethod
from types import TracebackType
from typing import Self


class Transport(ABC):
    """Abstract transport for JSON-RPC request delivery.

    Moves serialized request text to the peer and hands back the raw response
    text, without any knowledge of the protocol inside it. Each call to send()
    is one blocking round trip.

    Timeouts, retries and connection reuse are the transport's business. The
    client wraps any exception raised by send() in a TransportError.
    """

    @abstractmethod
    def send(self, request: str) -> str:
        """Deliver a request and wait for the response.

        Args:
            request: Serialized JSON-RPC request or batch

        Returns:
            The raw response body.

        Raises:
            ConnectionError: If the request couldn't be delivered or answered
        """

    @abstractmethod
    def close(self) -> None:
        """Release any resources held by the transport."""

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
