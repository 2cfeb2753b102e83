"""Unit tests for per-kind severity classification."""

import pytest

from vencimiento.alerts.alert_models import EntityKind, FeedOptions, Severity
from vencimiento.alerts.classifier import classify, coerce_kind, match_rule


@pytest.mark.parametrize(
    "days,severity,rule",
    [
        (-1, Severity.CRITICAL, "vencida"),
        (0, Severity.CRITICAL, "inminente"),
        (30, Severity.CRITICAL, "inminente"),
        (31, Severity.WARNING, "proxima"),
        (90, Severity.WARNING, "proxima"),
        (91, Severity.INFO, "renovacion"),
        (180, Severity.INFO, "renovacion"),
    ],
)
def test_habilitacion_thresholds(days, severity, rule):
    """Test each habilitación window boundary."""
    match = match_rule(EntityKind.HABILITACION, days)
    assert match is not None
    assert match.severity == severity
    assert match.rule == rule


def test_habilitacion_outside_windows():
    """Test that far-off or undated licenses produce no alert."""
    assert classify(EntityKind.HABILITACION, 181) is None
    assert classify(EntityKind.HABILITACION, None) is None


def test_habilitacion_ignores_status():
    """Test that an expired license is CRITICAL whatever its estado."""
    assert classify(EntityKind.HABILITACION, -10, status="SUSPENDIDA") == Severity.CRITICAL


class TestPlanMejora:
    def test_completed_plan_never_alerts(self):
        """Test that COMPLETADO suppresses the alert even when overdue."""
        assert classify(EntityKind.PLAN_MEJORA, -5, status="COMPLETADO") is None
        assert classify(EntityKind.PLAN_MEJORA, 0, status="completado") is None

    def test_vencido_status_is_critical(self):
        """Test that a VENCIDO plan is CRITICAL regardless of its date."""
        match = match_rule(EntityKind.PLAN_MEJORA, 10, status="VENCIDO")
        assert match.severity == Severity.CRITICAL
        assert match.rule == "vencido"
        assert classify(EntityKind.PLAN_MEJORA, None, status="vencido") == Severity.CRITICAL

    def test_vencido_not_double_counted_as_near_due(self):
        """Test that first match wins, so VENCIDO never lands in the WARNING bucket."""
        match = match_rule(EntityKind.PLAN_MEJORA, 5, status="VENCIDO")
        assert match.category == "planes-vencidos"

    @pytest.mark.parametrize("status", ["PENDIENTE", "EN_CURSO", "en_curso"])
    def test_open_plan_near_due(self, status):
        assert classify(EntityKind.PLAN_MEJORA, 0, status=status) == Severity.WARNING
        assert classify(EntityKind.PLAN_MEJORA, 30, status=status) == Severity.WARNING
        assert classify(EntityKind.PLAN_MEJORA, 31, status=status) is None

    def test_open_plan_without_date(self):
        assert classify(EntityKind.PLAN_MEJORA, None, status="PENDIENTE") is None

    def test_open_plan_past_date_without_vencido_status(self):
        """Test that overdue-ness for plans comes from the backend status."""
        assert classify(EntityKind.PLAN_MEJORA, -1, status="EN_CURSO") is None

    def test_custom_plan_window(self):
        options = FeedOptions(plan_threshold_days=45)
        assert classify(EntityKind.PLAN_MEJORA, 40, status="PENDIENTE", options=options) == Severity.WARNING


class TestServicio:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (-1, Severity.CRITICAL),
            (0, Severity.WARNING),
            (90, Severity.WARNING),
            (91, None),
            (None, None),
        ],
    )
    def test_default_window(self, days, expected):
        assert classify(EntityKind.SERVICIO, days) == expected

    def test_custom_window(self):
        options = FeedOptions(service_threshold_days=30)
        assert classify(EntityKind.SERVICIO, 30, options=options) == Severity.WARNING
        assert classify(EntityKind.SERVICIO, 31, options=options) is None


class TestAutoevaluacion:
    @pytest.mark.parametrize("status", ["BORRADOR", "EN_CURSO", "borrador"])
    def test_pending_statuses(self, status):
        assert classify(EntityKind.AUTOEVALUACION, None, status=status) == Severity.INFO

    @pytest.mark.parametrize("status", ["COMPLETADA", "VALIDADA", ""])
    def test_closed_statuses(self, status):
        assert classify(EntityKind.AUTOEVALUACION, None, status=status) is None


class TestHallazgo:
    def test_critical_open(self):
        match = match_rule(EntityKind.HALLAZGO, None, status="ABIERTO", metadata={"severidad": "CRÍTICA"})
        assert match.severity == Severity.CRITICAL
        assert match.rule == "critico"

    def test_critical_any_non_closed_status(self):
        """Test that a critical finding in treatment still alerts."""
        assert (
            classify(EntityKind.HALLAZGO, None, status="EN_TRATAMIENTO", metadata={"severidad": "critica"})
            == Severity.CRITICAL
        )

    def test_critical_closed(self):
        assert classify(EntityKind.HALLAZGO, None, status="CERRADO", metadata={"severidad": "CRÍTICA"}) is None

    def test_open_non_critical(self):
        match = match_rule(EntityKind.HALLAZGO, None, status="ABIERTO", metadata={"severidad": "MAYOR"})
        assert match.severity == Severity.WARNING
        assert match.rule == "abierto"

    def test_open_without_severity(self):
        assert classify(EntityKind.HALLAZGO, None, status="ABIERTO") == Severity.WARNING

    def test_closed_non_critical(self):
        assert classify(EntityKind.HALLAZGO, None, status="CERRADO", metadata={"severidad": "MENOR"}) is None


def test_unknown_kind_produces_no_alert():
    """Test that unrecognized kinds are excluded, not raised."""
    assert match_rule("LICENCIA_AMBIENTAL", -10) is None
    assert classify(None, -10) is None


def test_kind_strings_are_case_insensitive():
    assert coerce_kind("habilitacion") == EntityKind.HABILITACION
    assert classify("servicio", -1) == Severity.CRITICAL
    assert coerce_kind("nope") is None
