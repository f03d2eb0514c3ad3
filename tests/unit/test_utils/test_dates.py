"""Tests for calendar helpers."""

import pytest
from datetime import datetime, timedelta, timezone

from src.utils.dates import align_to, start_of_day, start_of_week, start_of_month, start_of_next_month


@pytest.mark.unit
def test_start_of_day():
    moment = datetime(2024, 12, 12, 15, 30, 45, 123, tzinfo=timezone.utc)
    assert start_of_day(moment) == datetime(2024, 12, 12, tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.parametrize("day,expected_sunday", [
    (8, 8),    # Sunday
    (9, 8),    # Monday
    (14, 8),   # Saturday
    (15, 15),  # next Sunday
])
def test_start_of_week_is_sunday(day, expected_sunday):
    moment = datetime(2024, 12, day, 18, 0)
    assert start_of_week(moment) == datetime(2024, 12, expected_sunday)


@pytest.mark.unit
def test_start_of_week_crosses_month():
    assert start_of_week(datetime(2025, 1, 2, 9, 0)) == datetime(2024, 12, 29)


@pytest.mark.unit
def test_month_bounds():
    moment = datetime(2024, 2, 29, 10, 0)
    assert start_of_month(moment) == datetime(2024, 2, 1)
    assert start_of_next_month(moment) == datetime(2024, 3, 1)
    assert start_of_next_month(datetime(2024, 12, 31, 23, 59)) == datetime(2025, 1, 1)


@pytest.mark.unit
def test_align_naive_to_aware_reference():
    reference = datetime(2024, 12, 12, tzinfo=timezone(timedelta(hours=2)))
    aligned = align_to(datetime(2024, 12, 12, 8, 0), reference)
    assert aligned.tzinfo == reference.tzinfo
    assert aligned.hour == 8


@pytest.mark.unit
def test_align_aware_to_aware_reference():
    reference = datetime(2024, 12, 12, tzinfo=timezone(timedelta(hours=2)))
    aligned = align_to(datetime(2024, 12, 12, 8, 0, tzinfo=timezone.utc), reference)
    assert aligned.hour == 10


@pytest.mark.unit
def test_align_aware_to_naive_reference():
    aligned = align_to(datetime(2024, 12, 12, 8, 0, tzinfo=timezone.utc), datetime(2024, 12, 12))
    assert aligned.tzinfo is None
