"""
Retry with exponential backoff over explicit result values.

An attempt returns Ok, Retryable or Fatal instead of raising, which keeps the
retry policy independent of the transport and testable on its own.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Retryable:
    """Transient failure: network error, timeout, 5xx"""
    error: BaseException


@dataclass(frozen=True)
class Fatal:
    """Failure that another attempt cannot fix"""
    error: BaseException


AttemptResult = Union[Ok[T], Retryable, Fatal]


def backoff_delay(retry_delay: float, attempt: int) -> float:
    """Delay after failed attempt number `attempt` (0-based)"""
    return retry_delay * (2 ** attempt)


async def retry_with_backoff(
    attempt_fn: Callable[[int], Awaitable[AttemptResult]],
    max_retries: int,
    retry_delay: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "operation",
) -> AttemptResult:
    """
    Run `attempt_fn` up to max_retries + 1 times.
    
    Sleeps retry_delay * 2**attempt between attempts. Returns the first Ok or
    Fatal result, or the last Retryable one once retries are exhausted.
    """
    result: AttemptResult = Retryable(RuntimeError(f"{label} was never attempted"))
    for attempt in range(max_retries + 1):
        result = await attempt_fn(attempt)
        if isinstance(result, (Ok, Fatal)):
            return result

        logger.warning(f"{label} attempt {attempt + 1} failed: {result.error}")
        if attempt < max_retries:
            delay = backoff_delay(retry_delay, attempt)
            logger.info(f"Retrying {label} in {delay:.2f}s...")
            await sleep(delay)
    return result
