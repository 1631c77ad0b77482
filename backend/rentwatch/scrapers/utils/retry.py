"""Retry utilities with exponential backoff."""

import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Failures of a single HTTP exchange worth another attempt
RETRYABLE_HTTP_ERRORS: Tuple[Type[BaseException], ...] = (
    httpx.HTTPStatusError,
    httpx.TransportError,
)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or ``max_attempts`` is reached.

    The wait before attempt ``n + 1`` is ``base_delay * 2 ** (n - 1)``
    seconds. When every attempt fails the last error is re-raised unchanged.

    Args:
        operation: Zero-argument coroutine function to call
        max_attempts: Total number of attempts (1 disables retrying)
        base_delay: Wait in seconds after the first failure
        retry_on: Exception types that trigger another attempt
        sleep: Awaitable sleep function (tests pass a no-op)

    Returns:
        The operation's result
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
    raise AssertionError("unreachable")  # pragma: no cover
