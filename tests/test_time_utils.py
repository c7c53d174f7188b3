"""Tests for calendar helpers."""

from datetime import date, time

from app.utils.time import add_months, format_long_date, format_slot_time


class TestAddMonths:
    def test_same_day_of_month(self) -> None:
        assert add_months(date(2026, 1, 15), 3) == date(2026, 4, 15)

    def test_crosses_year_boundary(self) -> None:
        assert add_months(date(2026, 11, 2), 6) == date(2027, 5, 2)
        assert add_months(date(2026, 11, 2), 12) == date(2027, 11, 2)

    def test_clamps_to_last_day_of_short_month(self) -> None:
        """31 August + 3 months lands on 30 November, not 1 December."""
        assert add_months(date(2026, 8, 31), 3) == date(2026, 11, 30)

    def test_clamps_into_february(self) -> None:
        assert add_months(date(2026, 8, 31), 6) == date(2027, 2, 28)
        assert add_months(date(2027, 8, 31), 6) == date(2028, 2, 29)


def test_format_long_date() -> None:
    assert format_long_date(date(2027, 1, 5)) == "January 5, 2027"


def test_format_slot_time() -> None:
    assert format_slot_time(time(9, 5)) == "09:05"
    assert format_slot_time(time(14, 30)) == "14:30"
