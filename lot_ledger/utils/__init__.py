"""Utility modules for the lot ledger."""

from .logging import (
    setup_logging,
    LogContext,
    LedgerLogger,
    LedgerContextFilter,
    JSONFormatter,
    log_buy,
    log_sale,
    log_rejection,
)

__all__ = [
    "setup_logging",
    "LogContext",
    "LedgerLogger",
    "LedgerContextFilter",
    "JSONFormatter",
    "log_buy",
    "log_sale",
    "log_rejection",
]
