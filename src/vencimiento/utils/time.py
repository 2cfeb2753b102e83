"""Time utilities: UTC timestamps and UTC calendar-date truncation."""

from datetime import date, datetime, timezone


def utc_now_z() -> str:
    """
    Get current UTC time as ISO 8601 string with Z suffix.

    Returns:
        ISO 8601 UTC timestamp ending with 'Z' (e.g., '2026-10-19T00:27:07.804867Z')
    """
    return to_utc_z(datetime.now(timezone.utc))


def to_utc_z(dt: datetime) -> str:
    """
    Convert datetime to ISO 8601 UTC string with Z suffix.

    Args:
        dt: Datetime object (must be timezone-aware)

    Returns:
        ISO 8601 UTC timestamp ending with 'Z'

    Raises:
        ValueError: If datetime is naive (not timezone-aware)
    """
    if dt.tzinfo is None:
        raise ValueError(
            f"Naive datetime not allowed. Got {dt}. "
            "Use datetime.now(timezone.utc) or dt.replace(tzinfo=timezone.utc)"
        )

    dt_utc = dt.astimezone(timezone.utc)
    return dt_utc.isoformat().replace('+00:00', 'Z')


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def to_utc_date(value: date | datetime) -> date:
    """
    Truncate a date or aware datetime to its UTC calendar date.

    A plain `date` is already a calendar date and is returned unchanged.
    An aware `datetime` is converted to UTC first, so 2026-10-19T22:00-05:00
    becomes 2026-10-20.

    Raises:
        ValueError: If value is a naive datetime
        TypeError: If value is not a date or datetime
    """
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError(
                f"Naive datetime not allowed. Got {value}. "
                "Pass a date or a timezone-aware datetime"
            )
        return value.astimezone(timezone.utc).date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")
