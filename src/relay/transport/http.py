"""HTTP transport: one POST per request or batch."""

import logging

import httpx

from relay.transport.base import Transport

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpTransport(Transport):
    """Sends JSON-RPC payloads to a single HTTP endpoint.

    The response body is returned as-is for the client to parse. Non-2xx
    statuses and network failures surface as ConnectionError.
    """

    def __init__(
        self,
        endpoint: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            endpoint: HTTP(S) URL of the JSON-RPC service
            headers: Additional HTTP headers sent with every request
            timeout: Request timeout in seconds
            client: Preconfigured httpx client. The transport closes it on
                close() either way.

        Raises:
            ValueError: If endpoint isn't an HTTP URL
        """
        if not isinstance(endpoint, str) or not endpoint.startswith(
            ("http://", "https://")
        ):
            raise ValueError("'endpoint' must be a valid HTTP URL")

        self.endpoint = endpoint
        self.headers = dict(headers or {})
        self.timeout = timeout
        self._http_client = client or httpx.Client()

    def send(self, request: str) -> str:
        """POST the request text and return the response body.

        Raises:
            ConnectionError: If the HTTP request fails or returns a non-2xx status
        """
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self.headers,
        }
        try:
            response = self._http_client.post(
                self.endpoint,
                content=request.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ConnectionError(
                f"HTTP {e.response.status_code} from {self.endpoint}"
            ) from e
        except httpx.HTTPError as e:
            raise ConnectionError(f"HTTP request to {self.endpoint} failed: {e}") from e

        logger.debug(f"HTTP {response.status_code} from {self.endpoint}")
        return response.text

    def close(self) -> None:
        """Close the underlying HTTP client. Safe to call multiple times."""
        if not self._http_client.is_closed:
            self._http_client.close()
            logger.debug("HTTP client closed")
