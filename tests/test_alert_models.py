"""Tests for alert and entity models."""

from datetime import date

import pytest
from pydantic import ValidationError

from vencimiento.alerts.alert_models import (
    AlertFeed,
    EntityKind,
    FeedOptions,
    Severity,
    TrackedEntity,
    severity_rank,
)


def test_severity_rank_order():
    assert [s.rank for s in Severity] == [0, 1, 2]
    assert severity_rank(Severity.CRITICAL) < severity_rank(Severity.INFO)


def test_tracked_entity_coerces_backend_values():
    """Test that integer ids and lowercase kinds from the backend are accepted."""
    entity = TrackedEntity(id=42, kind="plan_mejora", due_date="2026-12-01")

    assert entity.id == "42"
    assert entity.kind == EntityKind.PLAN_MEJORA
    assert entity.due_date == date(2026, 12, 1)
    assert entity.status == ""
    assert entity.metadata == {}


def test_tracked_entity_keeps_unknown_kind():
    entity = TrackedEntity(id="1", kind="LICENCIA_AMBIENTAL")

    assert entity.kind == "LICENCIA_AMBIENTAL"
    assert not isinstance(entity.kind, EntityKind)


def test_tracked_entity_is_read_only():
    entity = TrackedEntity(id="1", kind=EntityKind.HABILITACION)

    with pytest.raises(ValidationError):
        entity.status = "VENCIDO"


def test_feed_options_validation():
    assert FeedOptions().service_threshold_days == 90
    with pytest.raises(ValidationError):
        FeedOptions(plan_threshold_days=-1)
    with pytest.raises(ValidationError):
        FeedOptions(group_preview_size=0)


def test_empty_feed_defaults():
    feed = AlertFeed()

    assert feed.total_count == 0
    assert feed.count_by_severity == {Severity.CRITICAL: 0, Severity.WARNING: 0, Severity.INFO: 0}
