"""Pytest configuration and fixtures."""

from datetime import date, timedelta

import pytest

from vencimiento.alerts.alert_models import TrackedEntity

REFERENCE_DATE = date(2026, 10, 19)


@pytest.fixture
def reference():
    """Fixed reference date; tests never read the wall clock."""
    return REFERENCE_DATE


@pytest.fixture
def make_entity():
    """Factory for TrackedEntity with a due date relative to the reference."""

    def _make(kind, entity_id, days=None, status="", **metadata):
        due_date = REFERENCE_DATE + timedelta(days=days) if days is not None else None
        return TrackedEntity(
            id=entity_id,
            kind=kind,
            due_date=due_date,
            status=status,
            metadata=metadata,
        )

    return _make
