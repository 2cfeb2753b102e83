"""Tests for correlation keys and stable alert ids."""

import re

from vencimiento.alerts.alert_models import EntityKind, Severity
from vencimiento.alerts.correlation import build_alert_id, build_correlation_key
from vencimiento.utils.id_generator import hash_parts, stable_alert_id


def test_build_correlation_key_stable():
    """Test that correlation keys are stable and deterministic."""
    k1 = build_correlation_key(EntityKind.PLAN_MEJORA, Severity.CRITICAL, "vencido", ["3", "1"])
    k2 = build_correlation_key(EntityKind.PLAN_MEJORA, Severity.CRITICAL, "vencido", ["3", "1"])
    assert k1 == k2
    assert k1 == "PLAN_MEJORA|CRITICAL|vencido|1,3"


def test_correlation_key_ignores_member_order_and_duplicates():
    key_a = build_correlation_key(EntityKind.HALLAZGO, Severity.WARNING, "abierto", ["2", "10", "2"])
    key_b = build_correlation_key(EntityKind.HALLAZGO, Severity.WARNING, "abierto", ["10", "2"])
    assert key_a == key_b


def test_correlation_key_without_members():
    key = build_correlation_key(EntityKind.AUTOEVALUACION, Severity.INFO, "pendiente", [])
    assert key.endswith("|NONE")


def test_alert_id_format():
    """Test that ids carry the kind prefix and a 12-char hash."""
    alert_id = build_alert_id(EntityKind.SERVICIO, Severity.WARNING, "proximo", ["21"])
    assert re.fullmatch(r"SRV-[0-9a-f]{12}", alert_id)


def test_alert_id_depends_on_every_part():
    base = build_alert_id(EntityKind.HABILITACION, Severity.CRITICAL, "vencida", ["7"])
    assert base != build_alert_id(EntityKind.HABILITACION, Severity.CRITICAL, "inminente", ["7"])
    assert base != build_alert_id(EntityKind.HABILITACION, Severity.WARNING, "vencida", ["7"])
    assert base != build_alert_id(EntityKind.HABILITACION, Severity.CRITICAL, "vencida", ["8"])


def test_group_id_changes_with_membership():
    """Test that a plan joining the group produces a new id (and resurfaces)."""
    before = build_alert_id(EntityKind.PLAN_MEJORA, Severity.CRITICAL, "vencido", ["1", "2"])
    after = build_alert_id(EntityKind.PLAN_MEJORA, Severity.CRITICAL, "vencido", ["1", "2", "3"])
    assert before != after


def test_hash_parts_is_order_sensitive():
    assert hash_parts("a", "b") == hash_parts("a", "b")
    assert hash_parts("a", "b") != hash_parts("b", "a")


def test_stable_alert_id_default_prefix():
    assert stable_alert_id("key").startswith("ALERT-")
    assert stable_alert_id("key") == stable_alert_id("key")
