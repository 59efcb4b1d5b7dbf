"""
HTTP transport for the ShredMate API client.

A transport performs exactly one HTTP exchange for a PreparedRequest and
reports network-level failures as ClientError(TRANSPORT_ERROR). Status codes
are not interpreted here.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from shredmate_shared.exceptions import ClientError
from shredmate_shared.interfaces import ITransport
from shredmate_client.request_builder import PreparedRequest

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = 'ShredMateClient/1.0'


@dataclass(frozen=True)
class TransportResponse:
    """Raw response of one HTTP exchange."""
    status_code: int
    body: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class AiohttpTransport(ITransport):
    """
    Transport backed by a lazily created aiohttp ClientSession.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[ClientSession] = None
    ):
        self.timeout = ClientTimeout(total=timeout)
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=10,
                limit_per_host=5,
                keepalive_timeout=30,
                enable_cleanup_closed=True
            )
            self._session = ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers={'User-Agent': self.user_agent}
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()
        self._session = None

    async def send(self, request: PreparedRequest) -> TransportResponse:
        """
        Perform one HTTP exchange.

        Args:
            request: The request to dispatch

        Returns:
            TransportResponse with status code, body and headers

        Raises:
            ClientError: TRANSPORT_ERROR on connection failure or timeout
        """
        session = await self._ensure_session()

        logger.debug(f"Making {request.method} request to {request.url}")

        try:
            async with session.request(
                method=request.method,
                url=request.url,
                data=request.body,
                headers=request.headers
            ) as response:
                body = await response.read()
                logger.debug(f"{request.method} {request.url} -> {response.status} ({len(body)} bytes)")
                return TransportResponse(
                    status_code=response.status,
                    body=body,
                    headers=dict(response.headers)
                )
        except asyncio.TimeoutError as e:
            logger.warning(f"Request to {request.url} timed out")
            raise ClientError.transport_error("request timed out", cause=e) from e
        except (aiohttp.ClientError, OSError) as e:
            logger.warning(f"Network error for {request.method} {request.url}: {e}")
            raise ClientError.transport_error(str(e) or type(e).__name__, cause=e) from e
