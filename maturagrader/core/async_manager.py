# maturagrader/core/async_manager.py
import asyncio
import logging
from functools import wraps
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from maturagrader.core.exceptions import ScoringServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_timeout(coro: Awaitable[T], timeout: float, operation: str = "scoring") -> T:
    """Await `coro`, turning a timeout into an ordinary scorer failure."""
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error(f"{operation} timed out after {timeout}s")
        raise ScoringServiceError(
            f"{operation} timed out",
            {"timeout_s": timeout},
        ) from exc


def async_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (ConnectionError,),
):
    """비동기 함수 재시도 데코레이터

    Only exceptions listed in `retry_on` are retried; anything else propagates
    on the first attempt.
    """
    def decorator(func: Callable[..., Awaitable[T]]):
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            current_delay = delay
            attempts = max(1, max_attempts)

            for attempt in range(attempts):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt == attempts - 1:
                        logger.error(f"Function {func.__name__} failed after {attempts} attempts")
                        raise

                    logger.warning(f"Function {func.__name__} failed (attempt {attempt + 1}/{attempts}): {e}")
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff
        return wrapper
    return decorator
