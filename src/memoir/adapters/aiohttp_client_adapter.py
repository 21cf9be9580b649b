# memoir/adapters/aiohttp_client_adapter.py
import asyncio
import aiohttp
from typing import Any, Dict, Optional

from memoir.core.interfaces.http_client import HttpClientPort
from memoir.core.exceptions import NetworkError, TransportError
from memoir.core.settings import logger


class AioHttpClientAdapter(HttpClientPort):
    """aiohttp implementation of HttpClientPort.

    The underlying ClientSession is created lazily on first use (or on
    `async with`) and shared by every concurrent caller. Creation is guarded
    by a lock so concurrent first requests never open two sessions.
    """

    def __init__(self, default_timeout: float = 30.0, sock_connect: float = 10.0):
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()
        self._default_total: float = default_timeout
        self._default_sock_connect: float = sock_connect
        # Pre-built ClientTimeout used when callers do not provide a timeout
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    async def open(self) -> aiohttp.ClientSession:
        """Return the shared session, creating it exactly once."""
        if self._session is not None and not self._session.closed:
            return self._session
        async with self._session_lock:
            if self._session is None or self._session.closed:
                logger.debug("[http] opening client session")
                self._session = aiohttp.ClientSession()
            return self._session

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._session.closed

    def _client_timeout(self, timeout: float | None) -> aiohttp.ClientTimeout:
        if timeout is None:
            return self._default_client_timeout
        # Keep adapter-level sock_connect but apply provided total
        return aiohttp.ClientTimeout(total=timeout, sock_connect=self._default_sock_connect)

    async def get(self, url: str, timeout: float | None = None) -> Dict[str, Any]:
        return await self._request("GET", url, timeout=timeout)

    async def post(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None, headers: Dict[str, str] | None = None) -> Dict[str, Any]:
        return await self._request("POST", url, timeout=timeout, json=json, headers=headers)

    async def _request(
        self,
        method: str,
        url: str,
        timeout: float | None = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Perform one request attempt and return status, headers and body.

        Translates timeouts and connection errors into TransportError so the
        job client can retry them. HTTP error statuses are returned as-is.
        """
        session = await self.open()

        try:
            async with session.request(method, url, timeout=self._client_timeout(timeout), **kwargs) as response:
                body = await self._read_body(response)
                return {
                    "status": response.status,
                    "headers": dict(response.headers),
                    "body": body,
                }

        except asyncio.TimeoutError:
            logger.error("Timeout when requesting backend. Method: %s, URL: %s", method, url)
            raise TransportError(
                f"Request to {url} timed out",
                status_code=504,
                diagnostic="timeout",
            )

        except aiohttp.ClientError as client_error:
            logger.error(
                "Connection error when requesting backend. Method: %s, URL: %s, Error: %s",
                method,
                url,
                str(client_error),
            )
            raise TransportError(
                f"Connection error requesting {url}: {client_error}",
                status_code=502,
                diagnostic=type(client_error).__name__,
            )

        except Exception as unexpected_error:
            logger.error(
                "Unexpected error when requesting backend. Method: %s, URL: %s, Error: %s",
                method,
                url,
                str(unexpected_error),
            )
            raise NetworkError(
                f"Unexpected error requesting {url}: {unexpected_error}",
                diagnostic=type(unexpected_error).__name__,
            ) from unexpected_error

    async def _read_body(self, response: aiohttp.ClientResponse) -> Any:
        """Parse JSON regardless of declared content type; fall back to text."""
        try:
            return await response.json(content_type=None)
        except ValueError:
            text = await response.text()
            logger.debug("[http] non-JSON body url=%s snippet=%r", response.url, text[:200])
            return text

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
