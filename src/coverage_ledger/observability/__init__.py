"""Observability module.

This module provides:
- Structured logging with caller/operation context
- Per-operation call, rejection and latency metrics
"""

from coverage_ledger.observability.logger import (
    LedgerLogger,
    get_logger,
    ledger_context,
    log_ledger_event,
)
from coverage_ledger.observability.metrics import (
    LedgerMetrics,
    get_metrics,
    reset_metrics,
    track_operation,
)

__all__ = [
    # Logger
    "LedgerLogger",
    "get_logger",
    "ledger_context",
    "log_ledger_event",
    # Metrics
    "LedgerMetrics",
    "get_metrics",
    "reset_metrics",
    "track_operation",
]
