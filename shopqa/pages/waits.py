"""Condition polling used in place of fixed settling sleeps."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Predicate = Callable[[], Awaitable[bool]]


async def poll_until(
    predicate: Predicate,
    timeout_ms: int,
    interval_ms: int = 100,
    description: str = "",
) -> bool:
    """Await ``predicate`` until it returns True or ``timeout_ms`` elapses.

    The predicate is always evaluated at least once, and once more after the
    deadline passes, so a state reached during the final sleep still counts.
    Returns False on timeout instead of raising.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    while True:
        if await predicate():
            return True
        if time.monotonic() >= deadline:
            break
        await asyncio.sleep(interval_ms / 1000)
    if await predicate():
        return True
    logger.debug("Condition not met within %dms: %s", timeout_ms, description or "<unnamed>")
    return False
