"""In-process metrics for TaskTrail (task mutations, audit writes, DB queries)."""

from dataclasses import dataclass
from threading import Lock
from typing import Any

# Metric names
TASKS_CREATED = "tasks.created"
TASKS_UPDATED = "tasks.updated"
TASKS_DELETED = "tasks.deleted"
TASKS_LIST_DEGRADED = "tasks.list.degraded"
AUDIT_WRITTEN = "audit.records.written"
AUDIT_FAILED = "audit.records.failed"
RATELIMIT_REJECTED = "ratelimit.rejected"
TASKS_TOTAL = "tasks.total"


@dataclass
class Histogram:
    count: int = 0
    total: float = 0.0
    minimum: float | None = None
    maximum: float | None = None

    def observe(self, value: float) -> None:
        self.count += 1
        self.total += value
        if self.minimum is None or value < self.minimum:
            self.minimum = value
        if self.maximum is None or value > self.maximum:
            self.maximum = value

    def snapshot(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "min": self.minimum,
            "max": self.maximum,
            "avg": self.total / self.count if self.count else 0.0,
        }


class MetricsRegistry:
    """Thread-safe registry of counters, gauges and histograms."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.counters: dict[str, float] = {}
        self.gauges: dict[str, float] = {}
        self.histograms: dict[str, Histogram] = {}

    def inc_counter(self, name: str, amount: float = 1.0) -> None:
        with self._lock:
            self.counters[name] = self.counters.get(name, 0.0) + amount

    def counter(self, name: str) -> float:
        with self._lock:
            return self.counters.get(name, 0.0)

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self.gauges[name] = value

    def gauge(self, name: str) -> float | None:
        with self._lock:
            return self.gauges.get(name)

    def observe(self, name: str, value: float) -> None:
        with self._lock:
            self.histograms.setdefault(name, Histogram()).observe(value)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self.counters),
                "gauges": dict(self.gauges),
                "histograms": {name: hist.snapshot() for name, hist in self.histograms.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self.counters.clear()
            self.gauges.clear()
            self.histograms.clear()


metrics = MetricsRegistry()
