"""In-process metrics for the memory engine.

Two kinds of signal are kept: how long the public engine operations take
(render, export, load) and how the mask evaluator resolved each render
(``mask.reuse``, ``mask.batch_drop``, ``mask.recompute``). A high reuse
ratio means the rendered prefix stayed cacheable.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class OperationLatency:
    """Running latency totals for one engine operation."""

    count: int = 0
    error_count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0
    last_ms: float = 0.0

    def add(self, duration_ms: float, *, ok: bool) -> None:
        self.count += 1
        self.error_count += 0 if ok else 1
        self.total_ms += duration_ms
        self.max_ms = max(self.max_ms, duration_ms)
        self.last_ms = duration_ms

    def as_dict(self) -> dict[str, float | int]:
        return {
            "count": self.count,
            "error_count": self.error_count,
            "avg_ms": round(self.total_ms / self.count, 3) if self.count else 0.0,
            "max_ms": round(self.max_ms, 3),
            "last_ms": round(self.last_ms, 3),
        }


class MemoryMetrics:
    """Thread-safe holder for operation latency and mask outcome counts."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._operations: dict[str, OperationLatency] = {}
        self._mask_events: Counter[str] = Counter()

    def observe(self, operation: str, duration_ms: float, *, ok: bool) -> None:
        duration_ms = max(float(duration_ms), 0.0)
        with self._lock:
            latency = self._operations.get(operation)
            if latency is None:
                latency = self._operations[operation] = OperationLatency()
            latency.add(duration_ms, ok=ok)
        if not ok:
            logger.debug("%s failed after %.3f ms", operation, duration_ms)

    def count(self, event: str) -> None:
        with self._lock:
            self._mask_events[event] += 1

    def snapshot(self) -> dict[str, dict]:
        with self._lock:
            return {
                "latency": {
                    name: self._operations[name].as_dict()
                    for name in sorted(self._operations)
                },
                "events": dict(sorted(self._mask_events.items())),
            }

    def clear(self) -> None:
        with self._lock:
            self._operations.clear()
            self._mask_events.clear()


_METRICS = MemoryMetrics()


def record_latency(*, operation: str, duration_ms: float, ok: bool = True) -> None:
    """Record how long one engine operation took."""
    _METRICS.observe(operation, duration_ms, ok=ok)


def record_mask_event(event: str) -> None:
    """Count one mask evaluator outcome."""
    _METRICS.count(event)


def metrics_snapshot() -> dict[str, dict]:
    """Return latency aggregates and mask event counts."""
    return _METRICS.snapshot()


def reset_metrics() -> None:
    """Clear all metrics (test helper)."""
    _METRICS.clear()
