"""Day-offset arithmetic for vencimiento dates.

All comparisons are whole UTC calendar days:

  days_until = target_date - reference_date   (in days)

  < 0   overdue (vencido)
  == 0  due today
  > 0   days remaining

A missing target propagates as None, never as a sentinel date.
"""

from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from ..utils.time import to_utc_date

# Windows shared by the due-level ladder and the habilitación rules
IMMINENT_DAYS = 30
WARNING_DAYS = 90
RENEWAL_WINDOW_DAYS = 180

DEFAULT_NEAR_DUE_DAYS = 90


class InvalidReferenceError(ValueError):
    """The reference instant is missing or unusable (programming error)."""


class DueLevel(str, Enum):
    EXPIRED = "expired"
    DANGER = "danger"
    WARNING = "warning"
    NOTICE = "notice"
    SAFE = "safe"
    UNKNOWN = "unknown"


def reference_date(reference: date | datetime) -> date:
    """
    Validate a reference instant and reduce it to its UTC calendar date.

    Raises:
        InvalidReferenceError: If reference is None, a naive datetime, or not a date
    """
    if reference is None:
        raise InvalidReferenceError("Reference instant is required")
    try:
        return to_utc_date(reference)
    except (TypeError, ValueError) as exc:
        raise InvalidReferenceError(str(exc)) from exc


def days_until(reference: date | datetime, target: Optional[date | datetime]) -> Optional[int]:
    """
    Signed whole days from reference to target.

    Args:
        reference: Date or timezone-aware datetime standing for "now"
        target: Due date, or None when not applicable

    Returns:
        None if target is None or unusable (naive datetime, not a date),
        else negative (overdue), 0 (due today) or positive

    Raises:
        InvalidReferenceError: If reference is missing or unusable
    """
    ref = reference_date(reference)
    if target is None:
        return None
    try:
        target_date = to_utc_date(target)
    except (TypeError, ValueError):
        return None
    return (target_date - ref).days


def is_overdue(reference: date | datetime, target: Optional[date | datetime]) -> bool:
    days = days_until(reference, target)
    if days is None:
        return False
    return days < 0


def is_due_within(
    reference: date | datetime,
    target: Optional[date | datetime],
    days: int = DEFAULT_NEAR_DUE_DAYS,
) -> bool:
    """True when the target falls between today and `days` ahead, both ends inclusive."""
    remaining = days_until(reference, target)
    if remaining is None:
        return False
    return 0 <= remaining <= days


def due_state(
    reference: date | datetime,
    target: Optional[date | datetime],
    days: int = DEFAULT_NEAR_DUE_DAYS,
) -> Literal["vencido", "proximo", "vigente"]:
    if is_overdue(reference, target):
        return "vencido"
    if is_due_within(reference, target, days):
        return "proximo"
    return "vigente"


def due_level(days_remaining: Optional[int]) -> DueLevel:
    """Badge level for a day offset, aligned with the habilitación thresholds."""
    if days_remaining is None:
        return DueLevel.UNKNOWN
    if days_remaining < 0:
        return DueLevel.EXPIRED
    if days_remaining <= IMMINENT_DAYS:
        return DueLevel.DANGER
    if days_remaining <= WARNING_DAYS:
        return DueLevel.WARNING
    if days_remaining <= RENEWAL_WINDOW_DAYS:
        return DueLevel.NOTICE
    return DueLevel.SAFE


def is_renewal_eligible(days_remaining: Optional[int]) -> bool:
    """Renewal opens once 180 days or fewer remain (overdue licenses included)."""
    if days_remaining is None:
        return False
    return days_remaining <= RENEWAL_WINDOW_DAYS


def derive_plan_status(
    reference: date | datetime,
    due_date: Optional[date | datetime],
    progress: float | int | str | None,
) -> str:
    """Improvement-plan status from its due date and completion percentage.

    `progress` may arrive as a decimal string ("45.00"); unparseable values
    count as no progress.
    """
    try:
        progress = float(progress or 0)
    except (TypeError, ValueError):
        progress = 0.0
    if progress >= 100:
        return "COMPLETADO"
    if is_overdue(reference, due_date):
        return "VENCIDO"
    if progress > 0:
        return "EN_CURSO"
    return "PENDIENTE"


def format_due_date(value: Optional[date | datetime]) -> str:
    if value is None:
        return "N/A"
    return to_utc_date(value).strftime("%d/%m/%Y")


def describe_days(days_remaining: Optional[int]) -> str:
    """Short human label: '12 días', 'Vence hoy', 'Vencido hace 3 días', 'Sin fecha'."""
    if days_remaining is None:
        return "Sin fecha"
    if days_remaining < 0:
        return f"Vencido hace {abs(days_remaining)} días"
    if days_remaining == 0:
        return "Vence hoy"
    return f"{days_remaining} días"
