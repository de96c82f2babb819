"""Structured logging utilities for long-running catalog operations.

A run (one sync, import or recalculation) gets a correlation ID and an
operation name; every entry logged during the run carries both, plus the
milliseconds elapsed since the run started.
"""
import json
import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any


class StructuredLogger:
    """JSON-line logger that tags every entry with the current catalog run."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)
        self._correlation_id: str | None = None
        self._operation: str | None = None
        self._started: float | None = None

    def set_correlation_id(self, correlation_id: str):
        """Set correlation ID for current operation."""
        self._correlation_id = correlation_id

    def clear_correlation_id(self):
        """Clear correlation ID and any run context."""
        self._correlation_id = None
        self._operation = None
        self._started = None

    def generate_correlation_id(self, prefix: str = "RUN") -> str:
        return f"{prefix}_{uuid.uuid4().hex[:12]}"

    @contextmanager
    def run(self, operation: str, prefix: str = "RUN") -> Iterator[str]:
        """
        Scope log entries to one catalog operation.

        Logs ``<operation> failed`` with the error and re-raises when the body
        raises.

        Example:
            >>> with log.run("recalculate", prefix="RECALC") as run_id:
            ...     log.info("Recalculation completed", changed=12)
        """
        correlation_id = self.generate_correlation_id(prefix)
        self._correlation_id = correlation_id
        self._operation = operation
        self._started = time.monotonic()
        try:
            yield correlation_id
        except Exception as e:
            self.error(f"{operation} failed", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            self.clear_correlation_id()

    def elapsed_ms(self) -> int | None:
        if self._started is None:
            return None
        return int((time.monotonic() - self._started) * 1000)

    def _format_message(self, level: str, message: str, **kwargs: Any) -> dict:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "message": message,
            "correlation_id": self._correlation_id or "none",
        }

        if self._operation is not None:
            log_entry["operation"] = self._operation
            log_entry["elapsed_ms"] = self.elapsed_ms()

        if kwargs:
            log_entry["context"] = kwargs

        return log_entry

    def _emit(self, level: int, message: str, **kwargs: Any):
        entry = self._format_message(logging.getLevelName(level), message, **kwargs)
        # Decimal prices and datetimes serialise as strings
        self.logger.log(level, json.dumps(entry, default=str))

    def info(self, message: str, **kwargs: Any):
        self._emit(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any):
        self._emit(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any):
        self._emit(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any):
        self._emit(logging.DEBUG, message, **kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
