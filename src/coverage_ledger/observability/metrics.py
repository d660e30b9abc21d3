"""Call, rejection and latency metrics per ledger operation.

This module provides:
- LedgerMetrics: Aggregates outcomes per operation name
- Rejection counts by error code
- Latency percentile calculations over a bounded recent window
"""

import json
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Latency samples kept per operation for percentiles
LATENCY_WINDOW = 1000


@dataclass
class _OperationStats:
    """Running counters for one operation name."""

    total_calls: int = 0
    latency_total_ms: float = 0.0
    rejections_by_code: dict[str, int] = field(default_factory=dict)
    recent_latencies: deque = field(default_factory=lambda: deque(maxlen=LATENCY_WINDOW))


@dataclass
class OperationSummary:
    """Aggregated metrics for one operation name."""

    operation: str
    total_calls: int
    committed: int
    rejected: int
    rejections_by_code: dict[str, int] = field(default_factory=dict)
    avg_latency_ms: float = 0.0
    p50_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "total_calls": self.total_calls,
            "committed": self.committed,
            "rejected": self.rejected,
            "rejections_by_code": dict(self.rejections_by_code),
            "avg_latency_ms": self.avg_latency_ms,
            "p50_latency_ms": self.p50_latency_ms,
            "p95_latency_ms": self.p95_latency_ms,
        }


def _percentile(values: list[float], p: float) -> float:
    """Calculate the p-th percentile of values."""
    if not values:
        return 0.0
    sorted_values = sorted(values)
    k = (len(sorted_values) - 1) * p / 100
    f = int(k)
    c = f + 1
    if c >= len(sorted_values):
        return sorted_values[-1]
    return sorted_values[f] + (k - f) * (sorted_values[c] - sorted_values[f])


class LedgerMetrics:
    """Thread-safe collector of ledger operation outcomes.

    Counts and averages cover every call; percentiles cover the most recent
    ``latency_window`` calls of each operation.
    """

    def __init__(self, latency_window: int = LATENCY_WINDOW):
        self._lock = threading.RLock()
        self._latency_window = latency_window
        self._stats: dict[str, _OperationStats] = {}

    def record(self, operation: str, latency_ms: float = 0.0, error: str | None = None) -> None:
        """Record one call. ``error`` is the rejection code, or None if it committed."""
        with self._lock:
            stats = self._stats.get(operation)
            if stats is None:
                stats = _OperationStats(recent_latencies=deque(maxlen=self._latency_window))
                self._stats[operation] = stats
            stats.total_calls += 1
            stats.latency_total_ms += latency_ms
            stats.recent_latencies.append(latency_ms)
            if error is not None:
                stats.rejections_by_code[error] = stats.rejections_by_code.get(error, 0) + 1
        logger.debug(
            "[ledger_metric] operation=%s, latency=%.2fms, error=%s",
            operation,
            latency_ms,
            error,
        )

    def get_summary(self, operation: str) -> OperationSummary | None:
        with self._lock:
            stats = self._stats.get(operation)
            if stats is None:
                return None
            total = stats.total_calls
            latency_total = stats.latency_total_ms
            by_code = dict(stats.rejections_by_code)
            latencies = list(stats.recent_latencies)
        rejected = sum(by_code.values())
        return OperationSummary(
            operation=operation,
            total_calls=total,
            committed=total - rejected,
            rejected=rejected,
            rejections_by_code=by_code,
            avg_latency_ms=latency_total / total,
            p50_latency_ms=_percentile(latencies, 50),
            p95_latency_ms=_percentile(latencies, 95),
        )

    def get_all_summaries(self) -> list[OperationSummary]:
        with self._lock:
            names = list(self._stats.keys())
        return [s for s in (self.get_summary(n) for n in names) if s]

    def get_global_stats(self) -> dict[str, Any]:
        summaries = self.get_all_summaries()
        return {
            "total_calls": sum(s.total_calls for s in summaries),
            "committed": sum(s.committed for s in summaries),
            "rejected": sum(s.rejected for s in summaries),
            "operations": len(summaries),
        }

    def export_json(self) -> str:
        return json.dumps(
            {
                "global_stats": self.get_global_stats(),
                "operations": [s.to_dict() for s in self.get_all_summaries()],
            },
            indent=2,
            default=str,
        )


# Global metrics instance
_global_metrics: LedgerMetrics | None = None
_metrics_lock = threading.Lock()


def get_metrics() -> LedgerMetrics:
    """Get the global LedgerMetrics instance."""
    global _global_metrics
    with _metrics_lock:
        if _global_metrics is None:
            _global_metrics = LedgerMetrics()
        return _global_metrics


def reset_metrics() -> None:
    """Drop the global instance (used by tests)."""
    global _global_metrics
    with _metrics_lock:
        _global_metrics = None


def track_operation(operation: str, latency_ms: float = 0.0, error: str | None = None) -> None:
    """Convenience function to record a call on the global metrics instance."""
    get_metrics().record(operation, latency_ms=latency_ms, error=error)
