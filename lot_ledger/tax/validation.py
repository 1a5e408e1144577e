"""Input validation for lot dates and amounts."""

import math
import re
from datetime import date, datetime
from typing import Union

from .errors import InvalidAmountError, InvalidDateError

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_lot_date(value: Union[str, date]) -> date:
    """
    Parse an acquisition date.

    Accepts a ``datetime.date`` (datetimes are truncated to their date) or a
    string in strict ``YYYY-MM-DD`` form that names a real calendar day.

    Raises:
        InvalidDateError: If the value is malformed or not a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        raise InvalidDateError(value)

    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(value) from None


def is_valid_date(value: Union[str, date]) -> bool:
    """Check whether a value would be accepted as a lot date."""
    try:
        parse_lot_date(value)
    except InvalidDateError:
        return False
    return True


def validate_amount(field_name: str, value: float) -> float:
    """
    Validate a price or quantity.

    Negative, NaN and infinite values are rejected. Negative zero is
    normalised to ``0.0``.

    Raises:
        InvalidAmountError: If the value is not a finite non-negative number
    """
    if isinstance(value, bool):
        raise InvalidAmountError(field_name, value)
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidAmountError(field_name, value) from None

    if not math.isfinite(amount) or amount < 0:
        raise InvalidAmountError(field_name, value)

    return amount + 0.0
