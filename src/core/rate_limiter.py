"""Sliding-window request counting for message sends and public forms.

State is process local. Callers namespace their keys, for example
``message:<user_id>`` or ``form:<ip>``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    max_message_requests: int = 30
    max_form_requests: int = 5
    window_seconds: int = 60
    cleanup_interval_seconds: int = 300

    @classmethod
    def from_settings(cls) -> RateLimitConfig:
        from src.core.config import get_settings

        settings = get_settings()
        return cls(
            max_message_requests=settings.rate_limit_message_requests,
            max_form_requests=settings.rate_limit_form_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )


@dataclass
class RequestRecord:
    """Request times of one key, oldest first."""

    timestamps: list[float] = field(default_factory=list)

    def prune_old(self, window_seconds: int) -> None:
        cutoff = time.time() - window_seconds
        self.timestamps = [ts for ts in self.timestamps if ts > cutoff]

    def add_request(self) -> None:
        self.timestamps.append(time.time())

    def count_in_window(self, window_seconds: int) -> int:
        cutoff = time.time() - window_seconds
        return len([ts for ts in self.timestamps if ts > cutoff])

    def seconds_until_available(self, window_seconds: int, max_requests: int) -> int:
        """Whole seconds until one more request would fit in the window."""
        if len(self.timestamps) < max_requests:
            return 0
        blocking = sorted(self.timestamps)[-max_requests]
        wait = blocking + window_seconds - time.time()
        return max(0, int(wait) + 1)


class InMemoryRateLimitStorage:
    """Per-key request records behind a lock, swept periodically."""

    def __init__(self, config: RateLimitConfig | None = None) -> None:
        self.config = config or RateLimitConfig()
        self._storage: dict[str, RequestRecord] = {}
        self._lock = Lock()
        self._cleanup_task: asyncio.Task | None = None

    async def check_and_increment(
        self,
        key: str,
        max_requests: int,
        window_seconds: int | None = None,
    ) -> tuple[bool, int, int]:
        """Count a request for ``key`` unless the window is already full.

        Returns ``(allowed, remaining, retry_after)``. A refused request is
        not recorded.
        """
        window = window_seconds or self.config.window_seconds

        with self._lock:
            record = self._storage.setdefault(key, RequestRecord())
            record.prune_old(window)
            used = record.count_in_window(window)
            if used >= max_requests:
                return False, 0, record.seconds_until_available(window, max_requests)
            record.add_request()

        return True, max_requests - used - 1, 0

    async def cleanup(self) -> int:
        """Drop keys whose window is empty; returns how many were dropped."""
        with self._lock:
            for record in self._storage.values():
                record.prune_old(self.config.window_seconds)
            idle = [key for key, record in self._storage.items() if not record.timestamps]
            for key in idle:
                del self._storage[key]
        return len(idle)

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self.config.cleanup_interval_seconds)
            dropped = await self.cleanup()
            if dropped:
                logger.debug("Dropped %d idle rate limit keys", dropped)

    async def start_cleanup_task(self) -> None:
        if self._cleanup_task is not None:
            return
        self._cleanup_task = asyncio.create_task(self._sweep())
        logger.info("Rate limit sweep every %ss", self.config.cleanup_interval_seconds)

    async def stop_cleanup_task(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def get_stats(self) -> dict:
        with self._lock:
            keys = len(self._storage)
        return {
            "active_keys": keys,
            "config": {
                "max_message_requests": self.config.max_message_requests,
                "max_form_requests": self.config.max_form_requests,
                "window_seconds": self.config.window_seconds,
            },
        }


_rate_limiter: InMemoryRateLimitStorage | None = None


def get_rate_limiter() -> InMemoryRateLimitStorage:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = InMemoryRateLimitStorage(RateLimitConfig.from_settings())
    return _rate_limiter


async def init_rate_limiter() -> InMemoryRateLimitStorage:
    """Create the shared limiter and start its sweep (app startup)."""
    limiter = get_rate_limiter()
    await limiter.start_cleanup_task()
    return limiter


async def shutdown_rate_limiter() -> None:
    """Stop the sweep and forget the shared limiter (app shutdown)."""
    global _rate_limiter
    limiter, _rate_limiter = _rate_limiter, None
    if limiter is not None:
        await limiter.stop_cleanup_task()
