"""Tax lot ledger module."""

from .cost_basis import CostBasisMethod, LOT_ORDERINGS, order_lots
from .errors import (
    LedgerError,
    InvalidDateError,
    InvalidAmountError,
    UnknownStrategyError,
    EmptyLedgerError,
    InsufficientQuantityError,
)
from .lot_tracking import (
    Ledger,
    TaxLot,
    SaleRecord,
    LotDepletion,
    apply_buy,
    apply_sale,
)
from .validation import is_valid_date, parse_lot_date, validate_amount

__all__ = [
    # Ledger
    "Ledger",
    "TaxLot",
    "SaleRecord",
    "LotDepletion",
    "apply_buy",
    "apply_sale",
    # Cost basis
    "CostBasisMethod",
    "LOT_ORDERINGS",
    "order_lots",
    # Errors
    "LedgerError",
    "InvalidDateError",
    "InvalidAmountError",
    "UnknownStrategyError",
    "EmptyLedgerError",
    "InsufficientQuantityError",
    # Validation
    "is_valid_date",
    "parse_lot_date",
    "validate_amount",
]
