# -*- coding: utf-8 -*-
"""Async JSON-over-HTTP transport for the chain RPC: retries, 429 handling, fail-fast client errors."""

from __future__ import annotations

import asyncio
import random
import uuid
import aiohttp
import structlog
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from structlog.contextvars import bound_contextvars

from deposit_refund_relay.config import Settings
from deposit_refund_relay.exceptions import RateLimitError, RpcAPIError

# Client errors worth another attempt; any other 4xx fails immediately.
_RETRYABLE_CLIENT_STATUS = frozenset({408, 425, 429})


@dataclass(frozen=True, slots=True)
class _FailedAttempt:
    """Why a single POST did not produce a JSON body."""

    error: Optional[Exception] = None
    status_code: Optional[int] = None
    retry_after: Optional[float] = None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class AsyncHttpClient:
    """Transport under RpcClient.

    Injects Settings and optionally an aiohttp.ClientSession. If no session
    is provided, one is created lazily and must be closed via aclose() or by
    using the client as an async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the transport.

        Args:
            settings: Uses rpc.timeout_seconds and rpc.max_retries (total attempts).
            session: Optional shared aiohttp session. If None, the client
                creates and owns one (call aclose() when done).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.rpc.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @staticmethod
    def _backoff_delay(attempt: int) -> float:
        """Exponential backoff with jitter, capped at 4 seconds."""
        return min(4.0, 0.25 * (2**attempt)) + random.uniform(0.0, 0.15)

    @staticmethod
    def _parse_retry_after(response: aiohttp.ClientResponse) -> Optional[float]:
        header = response.headers.get("Retry-After")
        if not header:
            return None
        try:
            return max(0.0, float(header))
        except ValueError:
            return None

    async def _post_once(self, url: str, payload: Dict[str, Any]) -> tuple[Any, Optional[_FailedAttempt]]:
        """One POST. Returns (json, None) on success or (None, failure) when a retry may help.

        Raises:
            RpcAPIError: The server answered with a non-retryable client error.
        """
        try:
            session = await self._get_session()
            async with session.post(url, json=payload) as response:
                status = response.status
                if status < 400:
                    return await response.json(content_type=None), None
                if status < 500 and status not in _RETRYABLE_CLIENT_STATUS:
                    body = (await response.text())[:200]
                    self._logger.error("http_post_rejected", http_status_code=status, http_body=body)
                    raise RpcAPIError(
                        f"POST rejected with HTTP {status}",
                        url=url,
                        status_code=status,
                    )
                return None, _FailedAttempt(
                    status_code=status,
                    retry_after=self._parse_retry_after(response) if status == 429 else None,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            return None, _FailedAttempt(error=e)

    async def post(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """POST a JSON body and return the parsed JSON response.

        5xx answers, timeouts, connection errors and 408/425/429 are retried up to
        rpc.max_retries attempts in total; 429 honours Retry-After.

        Raises:
            RateLimitError: The last attempt was answered with 429.
            RpcAPIError: Any other failure after the final attempt, or a non-retryable 4xx.
        """
        payload = json or {}
        max_attempts = self._settings.rpc.max_retries
        failure: Optional[_FailedAttempt] = None

        with bound_contextvars(
            http_request_id=uuid.uuid4().hex[:12],
            http_max_attempts=max_attempts,
            rpc_method=payload.get("method"),
        ):
            for attempt in range(max_attempts):
                with bound_contextvars(http_attempt=attempt + 1):
                    result, failure = await self._post_once(url, payload)
                    if failure is None:
                        return result

                    if failure.rate_limited:
                        self._logger.warning(
                            "http_post_rate_limited",
                            http_retry_after_seconds=failure.retry_after,
                        )
                    else:
                        self._logger.debug(
                            "http_post_retry",
                            http_status_code=failure.status_code,
                            error_type=type(failure.error).__name__ if failure.error else None,
                            error_message=str(failure.error) if failure.error else None,
                        )
                    if attempt + 1 < max_attempts:
                        delay = failure.retry_after
                        await asyncio.sleep(delay if delay else self._backoff_delay(attempt))

            assert failure is not None
            if failure.rate_limited:
                self._logger.error("http_post_rate_limit_exhausted", http_attempts=max_attempts)
                raise RateLimitError(url=url, retry_after=failure.retry_after)

            self._logger.error(
                "http_post_failed",
                http_status_code=failure.status_code,
                http_attempts=max_attempts,
                error_type=type(failure.error).__name__ if failure.error else None,
                error_message=str(failure.error) if failure.error else None,
            )
            raise RpcAPIError(
                f"POST failed after {max_attempts} attempts",
                url=url,
                status_code=failure.status_code,
                cause=failure.error,
            ) from failure.error
