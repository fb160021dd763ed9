"""DateService: business-calendar arithmetic in America/Los_Angeles."""

from datetime import UTC, date, datetime

import pytest

from dealflow.application.services.date_service import DateService


@pytest.fixture
def dates() -> DateService:
    return DateService("America/Los_Angeles")


def test_today_uses_business_timezone(dates: DateService) -> None:
    """03:00 UTC on Nov 28 is still Nov 27 in Los Angeles."""
    assert dates.today(datetime(2024, 11, 28, 3, 0, tzinfo=UTC)) == date(2024, 11, 27)
    assert dates.today(datetime(2024, 11, 28, 9, 0, tzinfo=UTC)) == date(2024, 11, 28)


def test_to_date_accepts_dates_datetimes_and_iso_strings(dates: DateService) -> None:
    assert dates.to_date(date(2024, 11, 20)) == date(2024, 11, 20)
    assert dates.to_date("2024-11-20") == date(2024, 11, 20)
    assert dates.to_date("2024-11-21T02:00:00Z") == date(2024, 11, 20)
    assert dates.to_date(datetime(2024, 11, 21, 2, 0, tzinfo=UTC)) == date(2024, 11, 20)
    assert dates.to_date(None) is None
    assert dates.to_date("") is None


def test_days_until_and_since(dates: DateService) -> None:
    today = date(2024, 11, 27)
    assert dates.days_until(date(2024, 11, 30), today) == 3
    assert dates.days_until(date(2024, 11, 25), today) == -2
    assert dates.days_since(date(2024, 11, 20), today) == 7
    assert dates.days_since(date(2024, 12, 1), today) == 0


def test_difference_functions_return_none_on_null(dates: DateService) -> None:
    assert dates.days_until(None, date(2024, 11, 27)) is None
    assert dates.days_since(None, date(2024, 11, 27)) is None


def test_same_day_past_future(dates: DateService) -> None:
    today = date(2024, 11, 27)
    assert dates.is_same_day("2024-11-27", today)
    assert not dates.is_same_day(None, today)
    assert dates.is_past(date(2024, 11, 26), today)
    assert dates.is_future(date(2024, 11, 28), today)
    assert not dates.is_future(None, today)


def test_add_days(dates: DateService) -> None:
    assert dates.add_days(date(2024, 12, 30), 3) == date(2025, 1, 2)
    with pytest.raises(ValueError):
        dates.add_days(None, 1)
