"""
Tax lot ledger for a single asset.

Applies buys and sales to an ordered collection of tax lots. Buys on an
existing date are merged into that lot at a weighted-average price; sales
deplete lots in the order chosen by a cost basis method and are
all-or-nothing.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterator, Optional, Union

import pandas as pd

from .cost_basis import CostBasisMethod, order_lots
from .errors import EmptyLedgerError, InsufficientQuantityError
from .validation import parse_lot_date, validate_amount

logger = logging.getLogger(__name__)

RECORD_COLUMNS = ["id", "date", "price", "quantity"]


@dataclass
class TaxLot:
    """A quantity of the asset acquired on one date at one (average) price."""
    lot_id: int
    date: date
    price: float
    quantity: float

    @property
    def cost_basis(self) -> float:
        """Total cost of the quantity still held."""
        return self.price * self.quantity

    def to_record(
        self,
        price_decimals: int = 2,
        quantity_decimals: int = 8,
    ) -> tuple[int, str, str, str]:
        """Output record ``(id, date, price, quantity)`` with fixed decimals."""
        return (
            self.lot_id,
            self.date.isoformat(),
            f"{self.price:.{price_decimals}f}",
            f"{self.quantity:.{quantity_decimals}f}",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.lot_id,
            "date": self.date.isoformat(),
            "price": self.price,
            "quantity": self.quantity,
        }


@dataclass
class LotDepletion:
    """Quantity taken from a single lot by a sale."""
    lot_id: int
    date: date
    price: float
    quantity: float

    @property
    def cost_basis(self) -> float:
        return self.price * self.quantity


@dataclass
class SaleRecord:
    """Record of a committed sale."""
    method: CostBasisMethod
    quantity: float
    depletions: list[LotDepletion] = field(default_factory=list)  # consumption order
    closed_lot_ids: list[int] = field(default_factory=list)

    @property
    def total_cost_basis(self) -> float:
        return sum(d.cost_basis for d in self.depletions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method.value,
            "quantity": self.quantity,
            "total_cost_basis": self.total_cost_basis,
            "lots_sold": [
                {
                    "lot_id": d.lot_id,
                    "date": d.date.isoformat(),
                    "price": d.price,
                    "quantity": d.quantity,
                    "cost_basis": d.cost_basis,
                }
                for d in self.depletions
            ],
            "closed_lot_ids": list(self.closed_lot_ids),
        }


@dataclass
class Ledger:
    """
    Ordered collection of tax lots for one asset.

    Lots are kept in ascending ``lot_id`` order, which is creation order.
    ``next_id`` only ever grows, so ids of removed lots are never handed out
    again. Mutate a ledger only through ``apply_buy`` and ``apply_sale``.
    """
    lots: list[TaxLot] = field(default_factory=list)
    next_id: int = 1

    def __len__(self) -> int:
        return len(self.lots)

    def __iter__(self) -> Iterator[TaxLot]:
        return iter(self.lots)

    @property
    def is_empty(self) -> bool:
        return not self.lots

    @property
    def total_quantity(self) -> float:
        return sum(lot.quantity for lot in self.lots)

    @property
    def total_cost_basis(self) -> float:
        return sum(lot.cost_basis for lot in self.lots)

    def find_lot(self, lot_date: Union[str, date]) -> Optional[TaxLot]:
        """Get the lot acquired on a date, if any."""
        lot_date = parse_lot_date(lot_date)
        for lot in self.lots:
            if lot.date == lot_date:
                return lot
        return None

    def open_lots(self) -> list[TaxLot]:
        """Lots with quantity still held, in id order."""
        return [lot for lot in self.lots if lot.quantity > 0]

    def snapshot(self) -> "Ledger":
        """Independent deep copy of the ledger."""
        return copy.deepcopy(self)

    def to_records(
        self,
        price_decimals: int = 2,
        quantity_decimals: int = 8,
    ) -> list[tuple[int, str, str, str]]:
        """Formatted output records for every open lot."""
        return [
            lot.to_record(price_decimals, quantity_decimals)
            for lot in self.open_lots()
        ]

    def to_frame(self) -> pd.DataFrame:
        """Open lots as a DataFrame with columns id, date, price, quantity."""
        return pd.DataFrame(
            [lot.to_dict() for lot in self.open_lots()],
            columns=RECORD_COLUMNS,
        )


def apply_buy(
    ledger: Ledger,
    lot_date: Union[str, date],
    price: float,
    quantity: float,
) -> TaxLot:
    """
    Record a purchase.

    A buy on a date that already has a lot is merged into it at the
    weighted-average price. Otherwise a new lot is appended.

    Args:
        ledger: Ledger to update
        lot_date: Acquisition date (``YYYY-MM-DD`` or ``datetime.date``)
        price: Price per unit
        quantity: Quantity bought

    Returns:
        The created or updated TaxLot

    Raises:
        InvalidDateError: If the date is malformed
        InvalidAmountError: If price or quantity is negative or not finite
    """
    parsed_date = parse_lot_date(lot_date)
    price = validate_amount("price", price)
    quantity = validate_amount("quantity", quantity)

    for lot in ledger.lots:
        if lot.date != parsed_date:
            continue

        total_cost = lot.price * lot.quantity + price * quantity
        new_quantity = lot.quantity + quantity
        lot.quantity = new_quantity
        if new_quantity > 0:
            lot.price = total_cost / new_quantity

        logger.debug(
            f"Aggregated buy into lot {lot.lot_id}: {quantity} @ {price:.2f}, "
            f"now {lot.quantity} @ {lot.price:.2f}"
        )
        return lot

    lot = TaxLot(
        lot_id=ledger.next_id,
        date=parsed_date,
        price=price,
        quantity=quantity,
    )
    ledger.lots.append(lot)
    ledger.next_id += 1

    logger.debug(f"Added tax lot {lot.lot_id}: {quantity} @ {price:.2f} on {parsed_date}")

    return lot


def apply_sale(
    ledger: Ledger,
    method: Union[str, CostBasisMethod],
    quantity: float,
) -> SaleRecord:
    """
    Record a sale, depleting lots in the order given by the cost basis method.

    The sale is simulated on a copy of the lots and only committed when the
    full quantity can be covered. Lots reduced to zero are removed.

    Args:
        ledger: Ledger to update
        method: Cost basis method (``CostBasisMethod`` or its name)
        quantity: Quantity sold

    Returns:
        SaleRecord describing the depleted lots

    Raises:
        InvalidAmountError: If quantity is negative or not finite
        UnknownStrategyError: If the method is not supported
        EmptyLedgerError: If the ledger has no lots
        InsufficientQuantityError: If the lots cannot cover the quantity
    """
    quantity = validate_amount("quantity", quantity)
    method = CostBasisMethod.parse(method)

    if ledger.is_empty:
        raise EmptyLedgerError()

    working = copy.deepcopy(ledger.lots)
    record = SaleRecord(method=method, quantity=quantity)
    remaining = quantity

    for lot in order_lots(method, working):
        if remaining == 0:
            break

        taken = min(lot.quantity, remaining)
        if taken <= 0:
            continue

        lot.quantity -= taken
        remaining -= taken

        record.depletions.append(
            LotDepletion(lot_id=lot.lot_id, date=lot.date, price=lot.price, quantity=taken)
        )
        if lot.quantity == 0:
            record.closed_lot_ids.append(lot.lot_id)

    if remaining > 0:
        raise InsufficientQuantityError(requested=quantity, available=ledger.total_quantity)

    working.sort(key=lambda lot: lot.lot_id)
    ledger.lots = [lot for lot in working if lot.quantity > 0]

    logger.debug(
        f"Sold {quantity} ({method.value}) from {len(record.depletions)} lot(s), "
        f"cost basis {record.total_cost_basis:.2f}"
    )

    return record
