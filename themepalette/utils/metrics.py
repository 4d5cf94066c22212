"""
Theme Palette Metrics Collection
In-process counters and stage timings for a palette run.
"""
import time
from collections import Counter, defaultdict
from contextlib import contextmanager
from threading import Lock
from typing import Any, Dict, List

import numpy as np


class MetricsCollector:
    """Thread-safe counters and timing samples, shared by the render workers."""

    def __init__(self):
        self._lock = Lock()
        self._counters: Dict[str, int] = Counter()
        self._timings: Dict[str, List[float]] = defaultdict(list)

    def increment(self, name: str, amount: int = 1):
        """Increment a named counter."""
        with self._lock:
            self._counters[name] += amount

    def record_timing(self, operation: str, duration_ms: float):
        """Record one duration sample for an operation."""
        with self._lock:
            self._timings[f"{operation}_duration_ms"].append(duration_ms)

    def get_counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """Count, mean, min, max and p50/p95 per timed operation."""
        with self._lock:
            samples = {name: np.asarray(values) for name, values in self._timings.items() if values}

        stats = {}
        for name, values in samples.items():
            p50, p95 = np.percentile(values, [50, 95])
            stats[name] = {
                "count": int(values.size),
                "mean": float(values.mean()),
                "min": float(values.min()),
                "max": float(values.max()),
                "p50": float(p50),
                "p95": float(p95),
            }
        return stats

    def get_summary(self) -> Dict[str, Any]:
        return {"counters": self.get_counters(), "timing_stats": self.get_timing_stats()}

    def reset(self):
        """Drop all samples (for testing)."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()


_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Return the process-wide collector."""
    return _metrics


def reset_metrics():
    _metrics.reset()


@contextmanager
def timed(operation: str):
    """Record the wall-clock duration of the enclosed block in milliseconds."""
    start = time.perf_counter()
    try:
        yield
    finally:
        _metrics.record_timing(operation, (time.perf_counter() - start) * 1000)
