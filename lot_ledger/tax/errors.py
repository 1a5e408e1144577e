"""Errors raised by ledger operations."""

from typing import Optional


class LedgerError(Exception):
    """Base class for recoverable ledger errors."""

    kind = "ledger_error"


class InvalidDateError(LedgerError, ValueError):
    """Raised when a lot date is malformed or not a real calendar date."""

    kind = "invalid_date"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


class InvalidAmountError(LedgerError, ValueError):
    """Raised when a price or quantity is negative or not finite."""

    kind = "invalid_amount"

    def __init__(self, field_name: str, value: object):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid {field_name}: {value!r}")


class UnknownStrategyError(LedgerError, ValueError):
    """Raised when a sale names a cost basis method that is not supported."""

    kind = "unknown_strategy"

    def __init__(self, strategy: object, available: Optional[list[str]] = None):
        self.strategy = strategy
        self.available = available or []
        message = f"Unknown cost basis method: {strategy!r}"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(message)


class EmptyLedgerError(LedgerError):
    """Raised when a sale is attempted against a ledger with no lots."""

    kind = "empty_ledger"

    def __init__(self):
        super().__init__("No lots available for sale")


class InsufficientQuantityError(LedgerError):
    """Raised when the ledger holds less than the quantity being sold."""

    kind = "insufficient_quantity"

    def __init__(self, requested: float, available: float):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient lots for sale: requested {requested}, available {available}"
        )
