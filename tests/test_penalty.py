"""Tests for late-fee arithmetic."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from loan_ledger import penalty
from loan_ledger.exceptions import InvalidDateError


class TestLatenessDays:
    def test_late_by_whole_days(self):
        assert penalty.lateness_days("2023-01-15", "2023-01-20") == 5

    def test_early_return_is_zero(self):
        assert penalty.lateness_days("2023-01-15", "2023-01-10") == 0

    def test_same_day_is_zero(self):
        assert penalty.lateness_days(date(2023, 1, 15), date(2023, 1, 15)) == 0

    def test_partial_day_is_floored(self):
        """A plain date counts as midnight, so the afternoon of the due date is not late."""
        assert penalty.lateness_days(date(2023, 1, 15), datetime(2023, 1, 15, 16, 30)) == 0
        assert penalty.lateness_days(date(2023, 1, 15), datetime(2023, 1, 16, 23, 59)) == 1

    def test_crosses_month_and_year(self):
        assert penalty.lateness_days(date(2023, 12, 30), date(2024, 1, 2)) == 3

    def test_aware_datetime_uses_wall_clock(self):
        actual = datetime(2023, 1, 17, 9, 0, tzinfo=timezone(timedelta(hours=7)))
        assert penalty.lateness_days(date(2023, 1, 15), actual) == 2


class TestFee:
    def test_fee_is_days_times_rate(self):
        assert penalty.fee(5, Decimal("5")) == Decimal("25.00")

    def test_zero_days_is_free(self):
        assert penalty.fee(0, Decimal("5")) == Decimal("0.00")

    def test_fractional_rate_rounds_to_cents(self):
        assert penalty.fee(3, Decimal("0.333")) == Decimal("1.00")

    def test_negative_days_rejected(self):
        with pytest.raises(ValueError):
            penalty.fee(-1, Decimal("5"))

    def test_assess_returns_days_and_fee(self):
        assert penalty.assess("2023-01-15", "2023-01-20", Decimal("5")) == (5, Decimal("25.00"))
        assert penalty.assess("2023-01-15", "2023-01-10", Decimal("5")) == (0, Decimal("0.00"))


class TestParseDate:
    def test_date_string(self):
        assert penalty.parse_date("2023-01-15") == date(2023, 1, 15)

    def test_datetime_string(self):
        assert penalty.parse_date("2023-01-15T10:30:00") == datetime(2023, 1, 15, 10, 30)

    def test_objects_pass_through(self):
        moment = datetime(2023, 1, 15, 8, 0)
        assert penalty.parse_date(moment) is moment
        assert penalty.parse_date(date(2023, 1, 15)) == date(2023, 1, 15)

    @pytest.mark.parametrize("value", ["not-a-date", "2023-13-01", "", None, 20230115])
    def test_invalid_values(self, value):
        with pytest.raises(InvalidDateError):
            penalty.parse_date(value)

    def test_invalid_date_in_assess(self):
        with pytest.raises(InvalidDateError):
            penalty.lateness_days("2023-01-15", "yesterday")
