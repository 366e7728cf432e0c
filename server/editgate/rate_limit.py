# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiter - per-client fixed window, in process memory
# ─────────────────────────────────────────────────────────────────────────────
# One RateWindow per client identity. The table lives in this process only:
# it is lost on restart and not shared between workers. A multi-instance
# deployment swaps in a shared store behind the same allow() interface.
#
# Fixed window, not sliding log: a client can burst up to 2x the limit
# across a window boundary.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cachetools import LRUCache  # type: ignore[import-untyped]
from starlette.requests import Request


@dataclass
class RateWindow:
    """Request count for one client inside one fixed window."""

    count: int
    window_end: float


@runtime_checkable
class RateLimiter(Protocol):
    """Anything that can gate a request by client identity."""

    def allow(self, client_id: str) -> bool: ...

    def retry_after(self, client_id: str) -> int: ...


class FixedWindowRateLimiter:
    """Thread-safe fixed-window counter keyed by client identity.

    Bounded: at most ``max_clients`` windows are kept; the least recently
    seen client is evicted first. Eviction only ever forgets a count, so it
    can make the limiter more permissive for that client, never stricter.
    """

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60.0,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._windows: LRUCache[str, RateWindow] = LRUCache(maxsize=max_clients)
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window

    def allow(self, client_id: str) -> bool:
        """Count one request for client_id; False once the window is full."""
        with self._lock:
            now = self._clock()
            entry = self._windows.get(client_id)
            if entry is None or now > entry.window_end:
                self._windows[client_id] = RateWindow(count=1, window_end=now + self._window)
                return True
            if entry.count < self._limit:
                entry.count += 1
                return True
            return False

    def retry_after(self, client_id: str) -> int:
        """Whole seconds until client_id's current window closes (at least 1)."""
        with self._lock:
            entry = self._windows.get(client_id)
            if entry is None:
                return 1
            return max(1, math.ceil(entry.window_end - self._clock()))

    def count(self, client_id: str) -> int:
        """Requests counted in client_id's live window (0 if none)."""
        with self._lock:
            entry = self._windows.get(client_id)
            if entry is None or self._clock() > entry.window_end:
                return 0
            return entry.count

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


def client_identity(request: Request, trust_forwarded_for: bool = False) -> str:
    """Rate-limit key for a request.

    The socket peer by default. Every X-Forwarded-For hop except the last is
    written by the client, so with a trusted proxy in front only the
    right-most hop (appended by that proxy) is used.
    """
    if trust_forwarded_for:
        hops = [hop.strip() for hop in request.headers.get("x-forwarded-for", "").split(",")]
        if hops[-1]:
            return hops[-1]
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
