# ─────────────────────────────────────────────────────────────────────────────
# Edit Metrics - thread-safe request outcome tracking
# ─────────────────────────────────────────────────────────────────────────────
# Counts edit requests by outcome ("success" or the error class name) and
# keeps recent end-to-end latencies for percentiles. Exposed via GET /metrics
# and bridged to Prometheus by routes/prometheus.py.
#
# Bounded: latency history uses deque(maxlen=1000), auto-evicts oldest.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any

SUCCESS = "success"


@dataclass
class EditMetrics:
    """Thread-safe edit request metrics."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    requests_total: int = 0
    successes: int = 0
    errors_total: int = 0
    images_returned: int = 0
    _outcomes: Counter[str] = field(default_factory=Counter, repr=False)

    _latency_history: deque[float] = field(default_factory=lambda: deque(maxlen=1000), repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def record(self, outcome: str, latency_ms: float, images: int = 0) -> None:
        """Record one finished edit request."""
        with self._lock:
            self.requests_total += 1
            self._outcomes[outcome] += 1
            self._latency_history.append(latency_ms)
            if outcome == SUCCESS:
                self.successes += 1
                self.images_returned += images
            else:
                self.errors_total += 1

    def outcomes(self) -> dict[str, int]:
        with self._lock:
            return dict(self._outcomes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize metrics for the /metrics endpoint."""
        with self._lock:
            latencies = sorted(self._latency_history)
            n = len(latencies)
            return {
                "requests_total": self.requests_total,
                "successes": self.successes,
                "errors_total": self.errors_total,
                "success_rate": round(self.successes / max(self.requests_total, 1), 3),
                "images_returned": self.images_returned,
                "outcomes": dict(self._outcomes),
                "latency_p50_ms": round(latencies[n // 2], 1) if n else 0,
                "latency_p95_ms": round(latencies[int(n * 0.95)], 1) if n else 0,
                "latency_mean_ms": round(sum(latencies) / n, 1) if n else 0,
                "uptime_seconds": int(time.time() - self._start_time),
            }
