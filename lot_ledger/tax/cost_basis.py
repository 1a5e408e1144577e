"""
Cost basis methods for choosing which lots a sale consumes.

Each method maps to an ordering function that returns the lots in the order
they should be depleted. Supporting another method only needs an enum member
and an entry in ``LOT_ORDERINGS``.
"""

from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Union

from .errors import UnknownStrategyError

if TYPE_CHECKING:
    from .lot_tracking import TaxLot


class CostBasisMethod(str, Enum):
    """Method for selecting which lots to sell."""
    FIFO = "fifo"  # First In, First Out
    HIFO = "hifo"  # Highest In, First Out (minimize gains)

    @classmethod
    def parse(cls, value: Union[str, "CostBasisMethod"]) -> "CostBasisMethod":
        """
        Resolve a method from its name.

        Raises:
            UnknownStrategyError: If the value is not a supported method
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnknownStrategyError(value, available=cls.names())

    @classmethod
    def names(cls) -> list[str]:
        return [method.value for method in cls]


def _fifo_order(lots: Iterable["TaxLot"]) -> list["TaxLot"]:
    # Creation order
    return sorted(lots, key=lambda lot: lot.lot_id)


def _hifo_order(lots: Iterable["TaxLot"]) -> list["TaxLot"]:
    # Highest price first, older lot wins a tie
    return sorted(lots, key=lambda lot: (-lot.price, lot.lot_id))


LOT_ORDERINGS: dict[CostBasisMethod, Callable[[Iterable["TaxLot"]], list["TaxLot"]]] = {
    CostBasisMethod.FIFO: _fifo_order,
    CostBasisMethod.HIFO: _hifo_order,
}


def order_lots(
    method: Union[str, CostBasisMethod],
    lots: Iterable["TaxLot"],
) -> list["TaxLot"]:
    """Return lots in the order the given method depletes them."""
    method = CostBasisMethod.parse(method)
    return LOT_ORDERINGS[method](lots)
