"""Retry utilities with exponential backoff for coroutine functions."""

import asyncio
from functools import wraps
from typing import Awaitable, Callable, Tuple, Type, TypeVar

import structlog

log = structlog.stdlib.get_logger()

T = TypeVar("T")


def exponential_backoff_retry(
    max_retries: int | Callable[..., int] = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator that retries a coroutine function with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts, or a callable receiving
                     the decorated function's arguments and returning it
                     (lets methods read the limit from instance config)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exceptions: Tuple of exception types to catch and retry

    Returns:
        Decorated coroutine function with retry logic
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            retries = max_retries(*args, **kwargs) if callable(max_retries) else max_retries

            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == retries:
                        log.error(
                            "max_retries_reached",
                            function=func.__name__,
                            max_retries=retries,
                            error=str(e),
                        )
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)

                    log.warning(
                        "retrying_after_error",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=retries,
                        delay_seconds=delay,
                        error=str(e),
                    )

                    await asyncio.sleep(delay)

            raise AssertionError("unreachable")

        return wrapper

    return decorator
