"""Structured logging with ledger operation context for observability.

This module provides:
- LedgerLogger: A structured logger that attaches caller/operation to all log messages
- ledger_context: A context manager for setting operation context
- log_ledger_event: Helper for logging ledger events
"""

import json
import logging
import os
import sys
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

# Thread-local storage for operation context
_context = threading.local()


def _get_ledger_context() -> dict[str, Any]:
    """Get the current operation context from thread-local storage."""
    return getattr(_context, "ledger_data", {})


def _set_ledger_context(data: dict[str, Any]) -> None:
    """Set the operation context in thread-local storage."""
    _context.ledger_data = data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with operation context."""
        log_data: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        ctx = _get_ledger_context()
        if ctx:
            log_data["operation"] = ctx.get("operation")
            log_data["caller"] = ctx.get("caller")

        if getattr(record, "operation", None):
            log_data["operation"] = record.operation
        if getattr(record, "caller", None):
            log_data["caller"] = record.caller
        if getattr(record, "extra_data", None):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["source"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter with operation context prefix."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        ctx_parts = []
        ctx = _get_ledger_context()

        operation = getattr(record, "operation", None) or ctx.get("operation")
        if operation:
            ctx_parts.append(f"op={operation}")

        caller = getattr(record, "caller", None) or ctx.get("caller")
        if caller:
            ctx_parts.append(f"caller={caller}")

        ctx_str = f" [{', '.join(ctx_parts)}]" if ctx_parts else ""

        message = record.getMessage()
        if getattr(record, "extra_data", None):
            message += f" | {record.extra_data}"

        return f"{timestamp} {record.levelname:8}{ctx_str} {record.name}: {message}"


class LedgerLogger(logging.LoggerAdapter):
    """Logger adapter that adds operation context to all log messages."""

    def __init__(self, logger: logging.Logger, caller: str | None = None):
        super().__init__(logger, {})
        self._caller = caller

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        ctx = _get_ledger_context()
        caller = self._caller or ctx.get("caller")
        operation = ctx.get("operation")
        if caller:
            extra.setdefault("caller", caller)
        if operation:
            extra.setdefault("operation", operation)
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(
    name: str,
    caller: str | None = None,
    structured: bool | None = None,
) -> LedgerLogger:
    """Get a LedgerLogger instance.

    Args:
        name: Logger name (typically __name__)
        caller: Optional principal to attach to all logs
        structured: If True, use JSON format. If False, use human-readable.
                   If None, use LEDGER_LOG_FORMAT env var (default: human)

    Returns:
        LedgerLogger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        if structured is None:
            log_format = os.environ.get("LEDGER_LOG_FORMAT", "human").lower()
            structured = log_format == "json"

        handler = logging.StreamHandler(sys.stdout)
        if structured:
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(HumanReadableFormatter())

        logger.addHandler(handler)

        log_level = os.environ.get("LEDGER_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, log_level, logging.INFO))

        # Prevent duplicate logs from propagating to parent handlers
        logger.propagate = False

    return LedgerLogger(logger, caller)


@contextmanager
def ledger_context(operation: str, caller: str | None = None, **extra: Any):
    """Context manager for setting operation context on all logs within the block.

    Usage:
        with ledger_context(operation="file_claim", caller="SP1USER"):
            logger.info("Filing claim")  # Will include op and caller in output
    """
    old_context = _get_ledger_context()
    _set_ledger_context({"operation": operation, "caller": caller, **extra})
    try:
        yield
    finally:
        _set_ledger_context(old_context)


def log_ledger_event(
    logger: logging.Logger | LedgerLogger,
    event: str,
    level: int = logging.INFO,
    **data: Any,
) -> None:
    """Log a ledger event with structured data.

    Args:
        logger: Logger instance
        event: Event name (e.g., "policy_created", "claim_adjudicated")
        level: Log level
        **data: Additional event data
    """
    message = f"[{event}]"
    if data:
        details = ", ".join(f"{k}={v}" for k, v in data.items())
        message = f"{message} {details}"
    logger.log(level, message, extra={"extra_data": {"event": event, **data}})
