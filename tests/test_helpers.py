from datetime import date

import pytest

from app.services.progress_service import period_range
from app.utils.helpers import parse_month, previous_month, round_half_up, week_range


def test_parse_month():
    assert parse_month("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert parse_month("2025-12") == (date(2025, 12, 1), date(2025, 12, 31))


@pytest.mark.parametrize("value", ["2025-13", "2025-1", "202510", "", None, "2025-00"])
def test_parse_month_invalid(value):
    with pytest.raises(ValueError):
        parse_month(value)


def test_previous_month():
    assert previous_month(date(2025, 11, 3)) == "2025-10"
    assert previous_month(date(2025, 1, 31)) == "2024-12"


def test_week_range_is_monday_to_sunday():
    assert week_range(date(2025, 10, 15)) == (date(2025, 10, 13), date(2025, 10, 19))
    assert week_range(date(2025, 10, 19)) == (date(2025, 10, 13), date(2025, 10, 19))


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_period_range():
    today = date(2025, 10, 15)
    assert period_range(None, today) == (None, None)
    assert period_range("today", today) == (today, today)
    assert period_range("week", today) == (date(2025, 10, 13), date(2025, 10, 19))
    assert period_range("month", today) == (date(2025, 10, 1), date(2025, 10, 31))
    assert period_range("custom", today, "2025-09-01", "2025-09-10") == (date(2025, 9, 1), date(2025, 9, 10))


@pytest.mark.parametrize("args", [
    ("yearly",),
    ("custom",),
    ("custom", "2025-09-10", "2025-09-01"),
    ("custom", "2025/09/01", "2025-09-10"),
])
def test_period_range_invalid(args):
    with pytest.raises(ValueError):
        period_range(args[0], date(2025, 10, 15), *args[1:])
