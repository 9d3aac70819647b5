"""
REST Client for reverse proxy communication.

Provides the shared HTTP client used to reach backend partitions through
the local reverse proxy. One connection pool is reused by every partition
call and every inbound request.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import httpx

logger = logging.getLogger(__name__)


@dataclass
class ProxyResponse:
    """Response from a proxy call."""
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    timed_out: bool = False
    latency_ms: float = 0.0

    @property
    def success(self) -> bool:
        """Check if request was successful."""
        return self.error is None and 200 <= self.status < 300

    @property
    def transport_failed(self) -> bool:
        """True when no response was received from the proxy at all."""
        return self.error is not None

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode body as JSON."""
        return json.loads(self.body)


class ProxyClient:
    """
    HTTP client for calls through the reverse proxy.

    Features:
    - Connection pooling
    - Timeout handling
    - Transport failures reported as responses instead of exceptions

    Retries are deliberately absent: writes are attempted at most once.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        max_connections: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize proxy client.

        Args:
            timeout: Request timeout in seconds
            max_connections: Size of the connection pool
            transport: Optional httpx transport (tests plug a MockTransport here)
        """
        self.timeout = timeout
        self.max_connections = max_connections
        self._transport = transport

        # Client (created lazily)
        self._client: Optional[httpx.AsyncClient] = None

        # Statistics
        self._request_count = 0
        self._error_count = 0
        self._timeout_count = 0

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_connections=self.max_connections),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ProxyResponse:
        """
        Make a single HTTP request.

        Args:
            method: HTTP method (GET, PUT)
            url: Absolute proxy URL
            data: JSON body
            headers: Additional headers

        Returns:
            ProxyResponse object
        """
        self._request_count += 1
        start_time = time.perf_counter()

        try:
            client = self._get_client()
            response = await client.request(
                method,
                url,
                json=data,
                headers=headers,
            )
            latency = (time.perf_counter() - start_time) * 1000

            logger.debug(f"{method} {url} -> {response.status_code} ({latency:.1f}ms)")

            return ProxyResponse(
                status=response.status_code,
                body=response.content,
                headers={k.lower(): v for k, v in response.headers.items()},
                latency_ms=latency,
            )

        except httpx.TimeoutException as e:
            self._error_count += 1
            self._timeout_count += 1
            logger.warning(f"Timeout calling {method} {url}: {e}")
            return ProxyResponse(
                status=504,
                error="Request timeout",
                timed_out=True,
                latency_ms=(time.perf_counter() - start_time) * 1000,
            )

        except httpx.HTTPError as e:
            self._error_count += 1
            logger.warning(f"Connection error calling {method} {url}: {e}")
            return ProxyResponse(
                status=502,
                error=f"Connection error: {str(e)}",
                latency_ms=(time.perf_counter() - start_time) * 1000,
            )

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> ProxyResponse:
        """Make GET request."""
        return await self.request("GET", url, headers=headers)

    async def put(
        self,
        url: str,
        data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ProxyResponse:
        """Make PUT request."""
        return await self.request("PUT", url, data=data, headers=headers)

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
            "timeout_count": self._timeout_count,
            "timeout_seconds": self.timeout,
            "max_connections": self.max_connections,
        }
