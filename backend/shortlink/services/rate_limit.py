"""Sliding-window admission control.

Each caller key owns a FIFO of monotonic timestamps covering the trailing
window. The key table is split into shards, each a plain ``dict`` guarded by
its own :class:`threading.Lock`, so unrelated callers never wait on one
global lock. Pruning, the allow/deny decision and recording the new
timestamp happen inside one critical section per key.
"""

from __future__ import annotations

import logging
import math
import threading
import time
import zlib
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

log = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """
    Outcome of one admission check.

    :ivar allowed: Whether the request may proceed.
    :ivar limit: Configured requests per window.
    :ivar remaining: Requests still admissible in the current window.
    :ivar reset_at: Wall-clock epoch seconds when the window resets: the
        expiry of the oldest stamp on denial, ``now + window`` on admission.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    def headers(self) -> dict[str, str]:
        """Render the ``X-RateLimit-*`` response headers."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }


class _Shard:
    __slots__ = ("lock", "windows")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.windows: dict[str, deque[float]] = {}


class SlidingWindowRateLimiter:
    """
    Per-key sliding-window rate limiter (single process, in memory).

    Parameters
    ----------
    limit : int
        Requests admitted per key within ``window``.
    window : datetime.timedelta | float
        Window length (a ``timedelta`` or seconds).
    name : str, optional
        Label used in logs (``"auth"``, ``"redirect"``).
    shards : int, optional
        Number of independently locked key tables.
    clock : Callable[[], float], optional
        Monotonic time source in seconds. Defaults to :func:`time.monotonic`.
    wall_clock : Callable[[], float], optional
        Epoch time source used only to render ``reset_at``.
    """

    def __init__(
        self,
        limit: int,
        window: timedelta | float,
        *,
        name: str = "default",
        shards: int = 16,
        clock: Clock = time.monotonic,
        wall_clock: Clock = time.time,
    ) -> None:
        if limit < 0:
            raise ValueError("limit must be >= 0")
        seconds = window.total_seconds() if isinstance(window, timedelta) else float(window)
        if seconds <= 0:
            raise ValueError("window must be positive")
        self.limit = int(limit)
        self.window = seconds
        self.name = name
        self._clock = clock
        self._wall_clock = wall_clock
        self._shards = tuple(_Shard() for _ in range(max(1, int(shards))))

    def _shard_for(self, key: str) -> _Shard:
        return self._shards[zlib.crc32(key.encode("utf-8")) % len(self._shards)]

    def _to_epoch(self, monotonic_ts: float, now: float) -> float:
        return self._wall_clock() + (monotonic_ts - now)

    def allow(self, key: str) -> RateLimitDecision:
        """
        Decide whether ``key`` may make one more request now.

        Timestamps at or before ``now - window`` are dropped first. A denied
        request is not recorded, so hammering a closed gate does not extend
        the caller's lockout.

        :param key: Caller identity (typically the network address).
        :returns: The decision with header metadata.
        :rtype: RateLimitDecision
        """
        shard = self._shard_for(key)
        with shard.lock:
            now = self._clock()
            window_start = now - self.window
            stamps = shard.windows.get(key)
            if stamps is None:
                stamps = shard.windows[key] = deque()
            while stamps and stamps[0] <= window_start:
                stamps.popleft()

            count = len(stamps)
            if count >= self.limit:
                oldest = stamps[0] if stamps else now
                return RateLimitDecision(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    reset_at=self._to_epoch(oldest + self.window, now),
                )

            stamps.append(now)
            return RateLimitDecision(
                allowed=True,
                limit=self.limit,
                remaining=self.limit - count - 1,
                reset_at=self._to_epoch(now + self.window, now),
            )

    def sweep(self) -> int:
        """
        Prune every key and drop keys whose window became empty.

        Locks one shard at a time; never changes a later allow/deny outcome
        because only timestamps already outside the window are removed.

        :returns: Number of keys removed.
        :rtype: int
        """
        removed = 0
        for shard in self._shards:
            with shard.lock:
                window_start = self._clock() - self.window
                for key in list(shard.windows):
                    stamps = shard.windows[key]
                    while stamps and stamps[0] <= window_start:
                        stamps.popleft()
                    if not stamps:
                        del shard.windows[key]
                        removed += 1
        if removed:
            log.debug("ratelimit.sweep", extra={"limiter": self.name, "removed": removed})
        return removed

    def tracked_keys(self) -> int:
        """Return the number of keys currently held in memory."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.windows)
        return total

    def reset(self) -> None:
        """Forget every key."""
        for shard in self._shards:
            with shard.lock:
                shard.windows.clear()
