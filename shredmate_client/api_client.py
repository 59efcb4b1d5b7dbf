"""
Authenticating HTTP client for the ShredMate API.

This module provides the client used for every authenticated call. It injects
bearer tokens, detects 401 responses and coordinates a single shared token
refresh for all requests that hit an expired token at the same time, then
retries each of those requests exactly once.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from shredmate_shared.exceptions import ClientError, ErrorCode
from shredmate_shared.interfaces import IAPIClient, ITokenProvider, ITransport
from shredmate_shared.json_coding import JSONCoding
from shredmate_shared.logging_config import AuditLogger, log_structured_error
from shredmate_shared.models import AuthTokens
from shredmate_client.endpoint import Endpoint
from shredmate_client.http_client import decode_response
from shredmate_client.request_builder import RequestBuilder

logger = logging.getLogger(__name__)

SessionInvalidationHandler = Callable[[], Awaitable[None]]


def _mask_token(token: str) -> str:
    return f"{token[:6]}..." if len(token) > 6 else "***"


class AuthenticatingHTTPClient(IAPIClient):
    """
    HTTP client that handles authentication automatically.

    - Injects ``Authorization: Bearer <token>`` for endpoints that require it
    - On a 401 from such an endpoint, refreshes the token pair and retries once
    - Concurrent 401s share one refresh: the first caller performs it and the
      others wait for its outcome
    - When a refresh fails, every waiting caller gets the same error and the
      session invalidation handler is called once

    The client is bound to the event loop it is first used on.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: ITokenProvider,
        transport: ITransport,
        coding: Optional[JSONCoding] = None,
        request_builder: Optional[RequestBuilder] = None,
        audit_logger: Optional[AuditLogger] = None
    ):
        self.base_url = base_url
        self.token_provider = token_provider
        self.transport = transport
        self.coding = coding or JSONCoding()
        self.request_builder = request_builder or RequestBuilder(self.coding)
        self.audit_logger = audit_logger or AuditLogger()

        # Single-flight refresh state, guarded by _lock
        self._lock = asyncio.Lock()
        self._is_refreshing = False
        self._refresh_waiters: List[asyncio.Future] = []

        self._on_session_invalidated: Optional[SessionInvalidationHandler] = None

        logger.info(f"Authenticating API client initialized for server: {base_url}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()

    def set_session_invalidation_handler(self, handler: Optional[SessionInvalidationHandler]) -> None:
        """
        Register the coroutine function called when a token refresh fails.

        The handler may be called once per failed refresh and must tolerate
        repeated calls.
        """
        self._on_session_invalidated = handler

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    async def send(self, endpoint: Endpoint) -> Any:
        """
        Send an endpoint request with automatic auth handling.

        Args:
            endpoint: Request descriptor

        Returns:
            The decoded response (EMPTY_RESPONSE for endpoints without a body)

        Raises:
            ClientError: On any failure of the call or of the token refresh
        """
        return await self._perform_request(endpoint, is_retry=False)

    async def _perform_request(self, endpoint: Endpoint, is_retry: bool) -> Any:
        request = self.request_builder.build(self.base_url, endpoint)

        if endpoint.requires_auth:
            token = await self.token_provider.get_access_token()
            if not token:
                logger.error(f"No access token for authenticated endpoint: {endpoint.path}")
                raise ClientError.unauthorized("no access token")
            request = request.with_header('Authorization', f'Bearer {token}')
            logger.debug(f"Token {_mask_token(token)} injected for: {endpoint.path}")

        logger.debug(f"{endpoint.method.value} {endpoint.path} (retry: {is_retry})")

        response = await self.transport.send(request)

        logger.debug(f"{response.status_code} {endpoint.path}")

        if response.status_code == 401 and endpoint.requires_auth:
            if is_retry:
                logger.error(f"Still unauthorized after token refresh: {endpoint.path}")
                raise ClientError.unauthorized("rejected after token refresh")

            logger.warning(f"Got 401 for {endpoint.path}, attempting token refresh")
            await self._perform_single_flight_refresh()
            return await self._perform_request(endpoint, is_retry=True)

        return decode_response(self.coding, endpoint, response)

    async def _perform_single_flight_refresh(self) -> AuthTokens:
        waiter: Optional[asyncio.Future] = None

        async with self._lock:
            if self._is_refreshing:
                waiter = asyncio.get_running_loop().create_future()
                self._refresh_waiters.append(waiter)
            else:
                self._is_refreshing = True

        if waiter is not None:
            logger.debug("Token refresh already in progress, waiting for its result")
            return await waiter

        return await self._lead_refresh()

    async def _lead_refresh(self) -> AuthTokens:
        outcome_delivered = False
        try:
            try:
                tokens = await self.token_provider.refresh_tokens()
            except Exception as e:
                error = self._map_refresh_error(e)
                waiters = await self._finish_refresh()
                self._fail_waiters(waiters, error)
                outcome_delivered = True

                if isinstance(error, ClientError):
                    log_structured_error(logger, error)
                else:
                    logger.error(f"Token refresh failed: {e}")
                self.audit_logger.log_token_refresh(
                    success=False,
                    waiters=len(waiters),
                    failure_reason=getattr(error, 'message', str(error))
                )

                await self._notify_session_invalidated()

                if error is e:
                    raise
                raise error from e

            waiters = await self._finish_refresh()
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(tokens)
            outcome_delivered = True

            logger.info(f"Token refresh successful ({len(waiters)} waiting requests resumed)")
            self.audit_logger.log_token_refresh(success=True, waiters=len(waiters))
            return tokens
        finally:
            if not outcome_delivered:
                # Leader was cancelled before the refresh produced an outcome
                waiters = await self._finish_refresh()
                self._fail_waiters(waiters, ClientError.transport_error("token refresh cancelled"))
                logger.warning(f"Token refresh cancelled, {len(waiters)} waiting requests failed")

    async def _finish_refresh(self) -> List[asyncio.Future]:
        async with self._lock:
            waiters = self._refresh_waiters
            self._refresh_waiters = []
            self._is_refreshing = False
        return waiters

    @staticmethod
    def _fail_waiters(waiters: List[asyncio.Future], error: BaseException) -> None:
        for waiter in waiters:
            # Skip waiters whose caller was cancelled meanwhile
            if not waiter.done():
                waiter.set_exception(error)

    @staticmethod
    def _map_refresh_error(error: Exception) -> Exception:
        if (
            isinstance(error, ClientError)
            and error.error_code == ErrorCode.REQUEST_FAILED
            and error.status_code == 401
        ):
            return ClientError.session_expired(cause=error)
        return error

    async def _notify_session_invalidated(self) -> None:
        self.audit_logger.log_session_invalidated("token refresh failed")
        handler = self._on_session_invalidated
        if handler is None:
            return
        try:
            await handler()
        except Exception as e:
            logger.error(f"Error in session invalidation handler: {e}")
