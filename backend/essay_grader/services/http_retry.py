"""
HTTP requests with exponential-backoff retry on transient failures.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from essay_grader.core.logging import get_logger

logger = get_logger()

RETRYABLE_STATUS_CODES = frozenset({429, 503})

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryState:
    """Remaining retries and the delay to wait before the next attempt."""

    retries_left: int
    delay: float

    @property
    def can_retry(self) -> bool:
        return self.retries_left > 0

    def next(self) -> "RetryState":
        return RetryState(self.retries_left - 1, self.delay * 2)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    retries: int = 3,
    backoff: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    **request_kwargs: Any,
) -> httpx.Response:
    """
    Send a request, retrying on 503/429 responses and network errors.

    Each retry waits ``backoff`` seconds, doubling the delay every time.
    Once retries are exhausted the last response is returned as-is (the caller
    interprets non-2xx statuses) or the last network error is re-raised.

    Args:
        client: HTTP client used for every attempt.
        method: HTTP method, e.g. "POST".
        url: Request URL.
        retries: Maximum number of retries after the first attempt.
        backoff: Initial delay in seconds.
        sleep: Awaitable delay function (injectable for tests).
        **request_kwargs: Passed through to ``client.request`` (json, headers, params...).

    Returns:
        The final HTTP response.

    Raises:
        httpx.TransportError: If the last attempt failed at the network level.
    """
    state = RetryState(retries, backoff)
    while True:
        try:
            response = await client.request(method, url, **request_kwargs)
        except httpx.TransportError as e:
            if not state.can_retry:
                raise
            logger.warning("Network error (%s), retrying in %.1fs...", e, state.delay)
        else:
            if response.status_code not in RETRYABLE_STATUS_CODES or not state.can_retry:
                return response
            logger.warning(
                "Server busy (%s), retrying in %.1fs...", response.status_code, state.delay
            )
            await response.aclose()

        await sleep(state.delay)
        state = state.next()
