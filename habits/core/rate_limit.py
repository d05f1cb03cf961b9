from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from fastapi import HTTPException, status


@dataclass
class _Window:
    start: float
    count: int = 1


@dataclass
class FixedWindowLimiter:
    """Per-process fixed-window counters keyed by caller (sync id or IP)."""

    max_keys: int = 20_000
    _windows: dict[str, _Window] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def hit(self, key: str, *, limit: int, window_seconds: int, now: float) -> bool:
        async with self._lock:
            if len(self._windows) > self.max_keys:
                self._windows.clear()

            w = self._windows.get(key)
            if w is None or (now - w.start) >= window_seconds:
                self._windows[key] = _Window(start=now)
                return True
            if w.count >= limit:
                return False
            w.count += 1
            return True

    def reset(self) -> None:
        self._windows.clear()


limiter = FixedWindowLimiter()


async def consume(*, key: str, limit: int, window_seconds: int) -> None:
    if limit <= 0:
        return
    allowed = await limiter.hit(
        key, limit=limit, window_seconds=window_seconds, now=time.time()
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "message": "Too many requests.",
                "hint": "Please slow down and try again.",
                "code": "RATE_LIMITED",
            },
        )
