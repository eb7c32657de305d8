"""Bounded admission of classification tasks."""

from __future__ import annotations

import asyncio
from pathlib import Path

from type_deps.errors import CapacityExceeded
from type_deps.models import OverflowStrategy


class CapacityGate:
    """Counts units admitted but not yet merged, up to ``limit``.

    Args:
        limit: Maximum number of in-flight units.
        strategy: ``ERROR`` rejects an admission beyond the limit right
            away; ``BLOCK`` waits for a free slot.
        timeout: Longest ``BLOCK`` wait in seconds before giving up
            (``None`` waits indefinitely).
    """

    def __init__(
        self,
        limit: int,
        strategy: OverflowStrategy = OverflowStrategy.ERROR,
        timeout: float | None = None,
    ):
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit!r}")
        self.limit = limit
        self.strategy = strategy
        self.timeout = timeout
        self._slots = asyncio.Semaphore(limit)
        self._in_flight = 0
        self.peak = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def remaining(self) -> int:
        return self.limit - self._in_flight

    async def acquire(self, unit: Path | None = None) -> None:
        """Admit one unit or raise ``CapacityExceeded``."""
        if self.strategy is OverflowStrategy.ERROR:
            if self._slots.locked():
                raise CapacityExceeded(self.limit, unit)
            await self._slots.acquire()
        else:
            try:
                await asyncio.wait_for(self._slots.acquire(), self.timeout)
            except asyncio.TimeoutError:
                raise CapacityExceeded(self.limit, unit) from None
        self._in_flight += 1
        self.peak = max(self.peak, self._in_flight)

    def release(self) -> None:
        if self._in_flight == 0:
            raise RuntimeError("release() called more times than acquire()")
        self._in_flight -= 1
        self._slots.release()
