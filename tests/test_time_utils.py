"""Tests for time utilities."""

import pytest
from datetime import date, datetime, timezone, timedelta

from vencimiento.utils.time import to_utc_date, to_utc_z, utc_now_z, utc_today


def test_utc_now_z_always_ends_with_z():
    """Test that utc_now_z() always ends with Z."""
    result = utc_now_z()
    assert result.endswith('Z'), f"Expected result to end with 'Z', got: {result}"
    assert '+00:00Z' not in result, f"Result should not contain '+00:00Z', got: {result}"


def test_to_utc_z_raises_on_naive_datetime():
    """Test that to_utc_z() raises ValueError for naive datetime."""
    with pytest.raises(ValueError, match="Naive datetime not allowed"):
        to_utc_z(datetime(2026, 10, 19, 12, 0))


def test_to_utc_z_converts_non_utc_timezone():
    """Test that to_utc_z() converts a Bogotá (UTC-5) datetime to UTC."""
    bogota = timezone(timedelta(hours=-5))
    result = to_utc_z(datetime(2026, 10, 19, 12, 0, 0, tzinfo=bogota))
    assert result == '2026-10-19T17:00:00Z'


def test_to_utc_date_passes_plain_dates_through():
    assert to_utc_date(date(2026, 10, 19)) == date(2026, 10, 19)


def test_to_utc_date_truncates_after_conversion():
    """Test that the UTC date is taken after converting, not before."""
    bogota = timezone(timedelta(hours=-5))
    assert to_utc_date(datetime(2026, 10, 19, 22, 0, tzinfo=bogota)) == date(2026, 10, 20)
    assert to_utc_date(datetime(2026, 10, 19, 2, 0, tzinfo=timezone(timedelta(hours=5)))) == date(2026, 10, 18)


def test_to_utc_date_rejects_naive_datetime():
    with pytest.raises(ValueError, match="Naive datetime not allowed"):
        to_utc_date(datetime(2026, 10, 19, 12, 0))


def test_to_utc_date_rejects_other_types():
    with pytest.raises(TypeError):
        to_utc_date("2026-10-19")


def test_utc_today_is_a_date():
    today = utc_today()
    assert type(today) is date
    assert abs((today - datetime.now(timezone.utc).date()).days) <= 1
