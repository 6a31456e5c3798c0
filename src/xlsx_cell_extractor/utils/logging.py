"""Structured logging for extraction runs.

Every line logged during a run carries the run ID, plus whatever a
``LogContext`` added (typically the sheet being streamed). Both live in
context variables, so worker threads started through
``contextvars.copy_context`` log with their caller's run ID.

Usage:
    logger = get_logger(__name__)

    with LogContext(run_id="abc-123"):
        with timed_operation(logger, "workbook_extraction") as metrics:
            metrics.records_emitted = len(records)
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

_run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_run_id() -> str | None:
    """Return the run ID bound to the current context, if any."""
    return _run_id_var.get()


def set_run_id(run_id: str | None) -> None:
    _run_id_var.set(run_id)


def get_extra_context() -> dict[str, Any]:
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    _extra_context_var.set(context)


@dataclass
class PerformanceMetrics:
    """Counters reported when a timed operation ends.

    Zero counters are left out of the logged summary, so a failed run only
    reports its duration and whatever it managed to count.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    sheets_processed: int = 0
    sheets_failed: int = 0
    records_emitted: int = 0

    def finish(self) -> None:
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        counters = {
            "sheets_processed": self.sheets_processed,
            "sheets_failed": self.sheets_failed,
            "records_emitted": self.records_emitted,
        }
        return {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
            **{name: value for name, value in counters.items() if value > 0},
        }


class StructuredLogFormatter(logging.Formatter):
    """Prefixes each message with ``[run_id=... key=value ...]``.

    The prefix is built from the context variables of the thread emitting
    the record. The record's own ``msg`` is restored after formatting so
    other handlers see it unchanged.
    """

    def format(self, record: logging.LogRecord) -> str:
        fields = []
        run_id = get_run_id()
        if run_id:
            fields.append(f"run_id={run_id}")
        fields.extend(f"{key}={value}" for key, value in get_extra_context().items())

        if not fields:
            return super().format(record)

        original_msg = record.msg
        record.msg = f"[{' '.join(fields)}] {original_msg}"
        try:
            return super().format(record)
        finally:
            record.msg = original_msg


class StructuredLogger:
    """Wrapper around ``logging.Logger`` taking keyword fields.

    ``logger.info("Sheet extracted", sheet="Data", records=5)`` logs
    ``"Sheet extracted | sheet=Data, records=5"``.
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    def _build_message(self, message: str, **kwargs: Any) -> str:
        if not kwargs:
            return message
        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        self.info(f"Performance: {metrics.operation}", **metrics.to_dict())

    def log_progress(
        self,
        stage: str,
        current: int,
        total: int,
        details: str | None = None,
    ) -> None:
        """Log ``current`` of ``total`` with a percentage.

        Args:
            stage: What is being counted (e.g. "sheets").
            current: Items finished so far.
            total: Items expected; 0 reports 0.0%.
            details: Optional label for the item just finished.
        """
        percentage = (current / total * 100) if total > 0 else 0
        kwargs: dict[str, Any] = {
            "current": current,
            "total": total,
            "percentage": f"{percentage:.1f}%",
        }
        if details:
            kwargs["details"] = details
        self.info(f"Progress: {stage}", **kwargs)


class LogContext:
    """Adds fields to every log line emitted inside the block.

    A ``run_id`` keyword sets the run ID; any other keyword is merged into
    the extra context. Both are restored on exit, so contexts nest.

    Usage:
        with LogContext(sheet="Sheet1"):
            logger.info("Streaming")  # [sheet=Sheet1] Streaming
    """

    def __init__(self, **kwargs: Any) -> None:
        self._run_id = kwargs.pop("run_id", None)
        self._fields = kwargs
        self._saved_context: dict[str, Any] = {}
        self._saved_run_id: str | None = None

    def __enter__(self) -> "LogContext":
        self._saved_context = get_extra_context()
        self._saved_run_id = get_run_id()
        if self._run_id is not None:
            set_run_id(self._run_id)
        set_extra_context({**self._saved_context, **self._fields})
        return self

    def __exit__(self, *args: Any) -> None:
        set_extra_context(self._saved_context)
        set_run_id(self._saved_run_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Time the enclosed block and log its metrics when it exits.

    The metrics are logged even when the block raises.

    Yields:
        PerformanceMetrics the block can fill in.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Send all log output to stderr through the structured formatter.

    Existing root handlers are replaced, so calling this twice does not
    duplicate lines.

    Args:
        level: Log level as an int or a name such as "INFO" or "debug".
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(StructuredLogFormatter(DEFAULT_FORMAT))
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
