"""Structured JSON logging for the lot ledger."""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

ROOT_LOGGER_NAME = "lot_ledger"


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_location: bool = False,
        extra_fields: Optional[dict] = None,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_location = include_location
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            log_data["timestamp"] = created.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"

        if self.include_level:
            log_data["level"] = record.levelname

        if self.include_logger:
            log_data["logger"] = record.name

        if self.include_location:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        log_data["message"] = record.getMessage()

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields from record
        for key, value in record.__dict__.items():
            if key not in (
                "name", "msg", "args", "created", "filename", "funcName",
                "levelname", "levelno", "lineno", "module", "msecs",
                "pathname", "process", "processName", "relativeCreated",
                "stack_info", "exc_info", "exc_text", "thread", "threadName",
                "message", "taskName",
            ):
                try:
                    json.dumps(value)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        for key, value in self.extra_fields.items():
            if key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class LedgerContextFilter(logging.Filter):
    """Add ledger processing context (e.g. the session strategy) to log records."""

    _context = threading.local()

    @classmethod
    def set_context(cls, **kwargs) -> None:
        """Set context values for current thread."""
        if not hasattr(cls._context, "data"):
            cls._context.data = {}
        cls._context.data.update(kwargs)

    @classmethod
    def clear_context(cls) -> None:
        """Clear context for current thread."""
        cls._context.data = {}

    @classmethod
    def get_context(cls) -> dict:
        """Get current context."""
        if not hasattr(cls._context, "data"):
            cls._context.data = {}
        return cls._context.data.copy()

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.get_context().items():
            setattr(record, key, value)
        return True


class LedgerLogger:
    """
    Configured logger for the lot ledger.

    Logs go to stderr by default, since stdout carries the lot records.
    """

    def __init__(
        self,
        name: str = ROOT_LOGGER_NAME,
        level: str = "WARNING",
        log_file: Optional[str] = None,
        json_format: bool = False,
        max_bytes: int = 10 * 1024 * 1024,  # 10 MB
        backup_count: int = 5,
        console_output: bool = True,
    ):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers = []

        # On handlers, so records from child loggers get the context too
        self.context_filter = LedgerContextFilter()

        if json_format:
            formatter = JSONFormatter(include_location=True)
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        if console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            console_handler.addFilter(self.context_filter)
            self.logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setFormatter(formatter)
            file_handler.addFilter(self.context_filter)
            self.logger.addHandler(file_handler)

    def set_context(self, **kwargs) -> None:
        LedgerContextFilter.set_context(**kwargs)

    def clear_context(self) -> None:
        LedgerContextFilter.clear_context()

    def get_logger(self) -> logging.Logger:
        return self.logger


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    json_format: bool = False,
    console_output: bool = True,
) -> logging.Logger:
    """
    Set up logging for the lot ledger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (optional)
        json_format: Use JSON formatting
        console_output: Output to stderr

    Returns:
        Configured logger
    """
    ledger_logger = LedgerLogger(
        name=ROOT_LOGGER_NAME,
        level=level,
        log_file=log_file,
        json_format=json_format,
        console_output=console_output,
    )
    return ledger_logger.get_logger()


class LogContext:
    """Context manager for scoped logging context."""

    def __init__(self, **kwargs):
        self.context = kwargs
        self.previous_context: dict = {}

    def __enter__(self):
        self.previous_context = LedgerContextFilter.get_context()
        LedgerContextFilter.set_context(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        LedgerContextFilter.clear_context()
        if self.previous_context:
            LedgerContextFilter.set_context(**self.previous_context)
        return False


# Ledger event helpers
def log_buy(
    logger: logging.Logger,
    lot_id: int,
    date: str,
    price: float,
    quantity: float,
    **kwargs,
) -> None:
    """Log an applied buy with structured data."""
    logger.info(
        f"BUY {quantity} @ {price:.2f} on {date} -> lot {lot_id}",
        extra={
            "event_type": "buy",
            "lot_id": lot_id,
            "date": date,
            "price": price,
            "quantity": quantity,
            **kwargs,
        },
    )


def log_sale(
    logger: logging.Logger,
    method: str,
    quantity: float,
    cost_basis: float,
    lots_depleted: list[int],
    **kwargs,
) -> None:
    """Log a committed sale with structured data."""
    logger.info(
        f"SELL {quantity} ({method}) from lots {lots_depleted}, cost basis {cost_basis:.2f}",
        extra={
            "event_type": "sale",
            "method": method,
            "quantity": quantity,
            "cost_basis": cost_basis,
            "lots_depleted": lots_depleted,
            **kwargs,
        },
    )


def log_rejection(
    logger: logging.Logger,
    error_kind: str,
    message: str,
    **kwargs,
) -> None:
    """Log an event the ledger refused to apply."""
    logger.error(
        f"Rejected event: {message}",
        extra={
            "event_type": "rejection",
            "error_kind": error_kind,
            **kwargs,
        },
    )
