from datetime import date

import pytest

from utils.date_helpers import (
    add_months,
    friendly_month,
    month_range,
    parse_date,
    parse_month,
    trailing_months,
)
from utils.currency import format_currency, format_months, format_signed


@pytest.mark.parametrize("text, expected", [
    ("2026-02-15", date(2026, 2, 15)),
    ("2026/02/15", date(2026, 2, 15)),
    (" 2026.02.15 ", date(2026, 2, 15)),
    ("2026-02-30", None),
    ("15/02/2026", None),
    ("", None),
    (None, None),
])
def test_parse_date(text, expected):
    assert parse_date(text) == expected


def test_parse_month():
    assert parse_month("2026-02") == date(2026, 2, 1)
    assert parse_month("Feb 2026") is None


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2026, 1, 15), -1) == date(2025, 12, 15)
    assert add_months(date(2026, 11, 30), 14) == date(2028, 1, 30)


def test_month_range_handles_leap_years():
    assert month_range("2024-02") == ("2024-02-01", "2024-02-29")
    assert month_range("2026-12") == ("2026-12-01", "2026-12-31")
    with pytest.raises(ValueError):
        month_range("2026-13")


def test_trailing_months_oldest_first():
    assert trailing_months(3, date(2026, 2, 15)) == ["2025-12", "2026-01", "2026-02"]
    assert trailing_months(1, date(2026, 2, 15)) == ["2026-02"]


def test_friendly_month():
    assert friendly_month("2026-02") == "February 2026"
    assert friendly_month("garbage") == "garbage"


def test_currency_formatting():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-20, "€") == "-€20.00"
    assert format_signed(-3.456) == "-$3.46"
    assert format_signed(0) == "+$0.00"
    assert format_months(7.44) == "7.4 months"
    assert format_months(float("inf")) == "∞"
