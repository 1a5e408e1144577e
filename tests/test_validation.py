"""Tests for lot input validation and cost basis ordering."""

import math
from datetime import date, datetime

import pytest

from lot_ledger.tax.cost_basis import LOT_ORDERINGS, CostBasisMethod, order_lots
from lot_ledger.tax.errors import InvalidAmountError, InvalidDateError, UnknownStrategyError
from lot_ledger.tax.lot_tracking import TaxLot
from lot_ledger.tax.validation import is_valid_date, parse_lot_date, validate_amount


class TestDateValidation:
    """Tests for lot date parsing."""

    def test_parses_iso_date(self):
        assert parse_lot_date("2021-01-31") == date(2021, 1, 31)

    def test_leap_day(self):
        assert parse_lot_date("2024-02-29") == date(2024, 2, 29)

    def test_datetime_truncated(self):
        assert parse_lot_date(datetime(2021, 5, 6, 13, 45)) == date(2021, 5, 6)

    @pytest.mark.parametrize("value", [
        "invalid-date",
        "2021-1-01",
        "21-01-01",
        "2021/01/01",
        "2021-01-01T00:00:00",
        " 2021-01-01",
        "2021-13-01",
        "2021-00-10",
        "2023-02-29",
        "2021-04-31",
        "",
        None,
        20210101,
    ])
    def test_rejects_bad_dates(self, value):
        """Malformed and impossible dates raise InvalidDateError."""
        with pytest.raises(InvalidDateError):
            parse_lot_date(value)
        assert is_valid_date(value) is False

    def test_is_valid_date(self):
        assert is_valid_date("2021-12-31") is True

    def test_error_is_value_error(self):
        """Callers catching ValueError also see date errors."""
        with pytest.raises(ValueError):
            parse_lot_date("nope")


class TestAmountValidation:
    """Tests for price/quantity validation."""

    @pytest.mark.parametrize("value", [0, 0.0, 1, 2.5, "3.25", 1e-8])
    def test_accepts_non_negative(self, value):
        assert validate_amount("price", value) == float(value)

    def test_negative_zero_normalised(self):
        result = validate_amount("quantity", -0.0)
        assert result == 0.0
        assert math.copysign(1.0, result) == 1.0

    @pytest.mark.parametrize("value", [-0.01, -1, math.nan, math.inf, -math.inf, "abc", None, True])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_amount("quantity", value)
        assert exc_info.value.field_name == "quantity"


@pytest.fixture
def lots():
    """Three lots with a price tie between ids 2 and 3."""
    return [
        TaxLot(1, date(2021, 1, 1), 100.0, 1.0),
        TaxLot(2, date(2021, 1, 2), 300.0, 1.0),
        TaxLot(3, date(2021, 1, 3), 300.0, 1.0),
        TaxLot(4, date(2021, 1, 4), 200.0, 1.0),
    ]


class TestCostBasisMethod:
    """Tests for cost basis method parsing and lot ordering."""

    @pytest.mark.parametrize("value,expected", [
        ("fifo", CostBasisMethod.FIFO),
        ("HIFO", CostBasisMethod.HIFO),
        (" Fifo ", CostBasisMethod.FIFO),
        (CostBasisMethod.HIFO, CostBasisMethod.HIFO),
    ])
    def test_parse(self, value, expected):
        assert CostBasisMethod.parse(value) is expected

    @pytest.mark.parametrize("value", ["lifo", "specific", "", None, 1])
    def test_parse_unknown(self, value):
        with pytest.raises(UnknownStrategyError) as exc_info:
            CostBasisMethod.parse(value)
        assert exc_info.value.available == ["fifo", "hifo"]

    def test_every_method_has_ordering(self):
        assert set(LOT_ORDERINGS) == set(CostBasisMethod)

    def test_fifo_order(self, lots):
        assert [lot.lot_id for lot in order_lots("fifo", reversed(lots))] == [1, 2, 3, 4]

    def test_hifo_order(self, lots):
        """Highest price first, ties by ascending id."""
        assert [lot.lot_id for lot in order_lots("hifo", lots)] == [2, 3, 4, 1]

    def test_hifo_tie_independent_of_input_order(self, lots):
        assert [lot.lot_id for lot in order_lots("hifo", reversed(lots))] == [2, 3, 4, 1]

    def test_ordering_does_not_mutate_input(self, lots):
        order_lots(CostBasisMethod.HIFO, lots)
        assert [lot.lot_id for lot in lots] == [1, 2, 3, 4]
