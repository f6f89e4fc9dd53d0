"""
Retry and refresh cadence of the sidecar.

Two nested loops drive a single-attempt function:

- The inner loop retries the attempt every `retry_period` seconds until
  it reports success. There is no retry cap and no backoff growth.
  A persistent failure needs an operator.
- The outer loop then sleeps `refresh_period` seconds and starts over,
  so drift on the main node (restarts, rescheduling) is corrected.

Attempts never overlap. Without a stop event the loop runs until the
process is killed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Attempt = Callable[[], Awaitable[bool]]
"""One reconciliation attempt. Returns True once converged."""


async def _sleep(seconds: float, stop: asyncio.Event | None) -> bool:
    """
    Sleep for `seconds`, waking early if `stop` is set.

    Returns:
        True if the loop should stop.
    """
    if stop is None:
        await asyncio.sleep(seconds)
        return False

    try:
        await asyncio.wait_for(stop.wait(), timeout=seconds)
    except TimeoutError:
        return False
    return True


async def run_forever(
    attempt: Attempt,
    refresh_period: float,
    retry_period: float,
    stop: asyncio.Event | None = None,
) -> None:
    """
    Run `attempt` on the retry/refresh cadence until `stop` is set.

    Args:
        attempt: Single reconciliation attempt.
        refresh_period: Seconds to wait after a successful attempt.
        retry_period: Seconds to wait after a failed attempt.
        stop: Optional event that ends the loop at the next sleep.
    """
    while stop is None or not stop.is_set():
        retries = 0
        while not await attempt():
            retries += 1
            logger.debug("Attempt failed, retry %d in %.1fs", retries, retry_period)
            if await _sleep(retry_period, stop):
                return

        logger.info("Peering verified, next check in %.0fs", refresh_period)
        if await _sleep(refresh_period, stop):
            return
