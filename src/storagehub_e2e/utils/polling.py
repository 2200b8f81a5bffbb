"""
Fixed-interval polling for eventually consistent state.

The chain, the MSP and its indexer converge asynchronously, so the workflow
repeatedly asks "is it there yet?" with a fixed delay and a fixed attempt cap.
Delays are constant: no exponential backoff and no jitter.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from storagehub_e2e.errors import PollingTimeoutError
from storagehub_e2e.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


@dataclass(frozen=True)
class PollConfig:
    """
    Configuration for a poll loop.

    Example:
        ```python
        config = PollConfig(max_attempts=10, interval_ms=2000)
        ```
    """

    max_attempts: int = 10
    """Number of times the check runs before giving up."""

    interval_ms: int = 2000
    """Delay between attempts in milliseconds."""

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval_ms < 0:
            raise ValueError("interval_ms must be non-negative")

    @property
    def budget_ms(self) -> int:
        """Total sleep budget across all attempts."""
        return self.max_attempts * self.interval_ms


async def poll_until(
    check: Callable[[int], Awaitable[Optional[T]]],
    config: PollConfig,
    *,
    description: str,
) -> T:
    """
    Run ``check`` until it returns a value.

    ``check`` receives the one-based attempt number and either returns a
    non-None result (done), returns None (not yet, try again), or raises
    (abort immediately, the exception propagates unchanged).

    Args:
        check: Async callable evaluated once per attempt
        config: Attempt cap and interval
        description: What is being waited for, used in logs and the timeout

    Returns:
        The first non-None value produced by ``check``

    Raises:
        PollingTimeoutError: If every attempt returned None

    Example:
        ```python
        async def is_confirmed(attempt: int) -> Optional[bool]:
            record = await read_record()
            return True if record.confirmed else None

        await poll_until(is_confirmed, PollConfig(10, 2000), description="confirmation")
        ```
    """
    delay = config.interval_ms / 1000

    for attempt in range(1, config.max_attempts + 1):
        _logger.info(
            f"Waiting for {description}",
            extra={"attempt": attempt, "max_attempts": config.max_attempts},
        )
        result = await check(attempt)
        if result is not None:
            return result

        # Don't delay after last attempt
        if attempt < config.max_attempts:
            await asyncio.sleep(delay)

    raise PollingTimeoutError(description, config.max_attempts, config.interval_ms)
