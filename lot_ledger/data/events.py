"""
Line-oriented ledger event input.

Each non-blank line is ``date,action,price,quantity``, for example::

    2021-01-01,buy,10000.00,1.00000000
    2021-02-01,sell,20000.00,0.50000000

The price of a sell line is not used and may be left empty.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

from ..tax.errors import LedgerError

FIELD_COUNT = 4


class EventAction(str, Enum):
    """Kind of ledger event."""
    BUY = "buy"
    SELL = "sell"


class EventParseError(LedgerError, ValueError):
    """Raised when an input line cannot be parsed into an event."""

    kind = "parse_error"

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason}: {line!r}")


@dataclass
class LedgerEvent:
    """A buy or sell read from input."""
    date: str
    action: EventAction
    price: float
    quantity: float
    line_number: int = 0


def _parse_number(value: str, name: str, line_number: int, line: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise EventParseError(line_number, line, f"{name} is not a number") from None


def parse_event(line: str, line_number: int = 0) -> Optional[LedgerEvent]:
    """
    Parse one input line.

    Returns None for blank lines. The date is kept as text and validated
    when the event is applied to a ledger.

    Raises:
        EventParseError: If the line is malformed
    """
    text = line.strip()
    if not text:
        return None

    fields = [part.strip() for part in text.split(",")]
    if len(fields) != FIELD_COUNT:
        raise EventParseError(
            line_number, text, f"expected {FIELD_COUNT} fields, got {len(fields)}"
        )

    date, action_name, price_text, quantity_text = fields

    try:
        action = EventAction(action_name.lower())
    except ValueError:
        raise EventParseError(line_number, text, f"unknown action {action_name!r}") from None

    if action == EventAction.SELL and not price_text:
        price = 0.0
    else:
        price = _parse_number(price_text, "price", line_number, text)
    quantity = _parse_number(quantity_text, "quantity", line_number, text)

    return LedgerEvent(
        date=date,
        action=action,
        price=price,
        quantity=quantity,
        line_number=line_number,
    )


def read_events(lines: Iterable[str]) -> Iterator[LedgerEvent]:
    """Yield events from a stream of lines, skipping blank ones."""
    for line_number, line in enumerate(lines, 1):
        event = parse_event(line, line_number)
        if event is None:
            continue
        yield event
