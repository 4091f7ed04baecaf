"""
Retry Executor — Run an async operation with bounded retries.

Attempt i (1-indexed) that fails is logged; if attempts remain, the
executor sleeps base_delay * 2^(i-1) before the next one. After the
last attempt the final failure is raised as ExhaustedRetries.

## Usage

    from mirror_backup.reliability import run_with_retry

    page = await run_with_retry(
        lambda: fetch_page(url),
        config.retry,
        f"HTTP GET {url}",
    )

Success is not logged here; that is the caller's business.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from ..config import RetryPolicy
from ..errors import ExhaustedRetries

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Optional[Sleep] = None,
) -> T:
    """
    Await `operation()` up to policy.max_attempts times.

    Exceptions not matching `retry_on` propagate immediately.

    Raises:
        ExhaustedRetries: every attempt failed; `last_error` holds the
            final failure and is also chained as __cause__.
    """
    sleep = sleep or asyncio.sleep
    max_attempts = max(1, policy.max_attempts)
    last_error: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            last_error = e
            logger.error(
                f"{description} failed (attempt {attempt}/{max_attempts}): {e}",
                extra={"description": description, "attempt": attempt},
            )
            if attempt < max_attempts:
                wait = policy.delay_for(attempt)
                logger.info(f"Retrying {description} in {wait * 1000:.0f}ms")
                await sleep(wait)

    raise ExhaustedRetries(description, max_attempts, last_error) from last_error
