"""Correlation keys and stable ids for alert records."""

from typing import Iterable, List

from ..utils.id_generator import stable_alert_id
from .alert_models import EntityKind, Severity

ID_PREFIXES = {
    EntityKind.HABILITACION: "HAB",
    EntityKind.PLAN_MEJORA: "PLAN",
    EntityKind.SERVICIO: "SRV",
    EntityKind.AUTOEVALUACION: "AE",
    EntityKind.HALLAZGO: "HALL",
}


def _sorted_unique(ids: Iterable[str]) -> List[str]:
    return sorted({str(i) for i in ids if i is not None})


def build_correlation_key(
    kind: EntityKind,
    severity: Severity,
    rule: str,
    entity_ids: Iterable[str],
) -> str:
    """
    Create a stable correlation key:
      KIND|SEVERITY|RULE|id1,id2,...

    Entity ids are sorted and de-duplicated so the key does not depend on
    the order the backend returned them in.
    """
    members = ",".join(_sorted_unique(entity_ids)) or "NONE"
    return f"{kind.value}|{severity.value}|{rule}|{members}"


def build_alert_id(
    kind: EntityKind,
    severity: Severity,
    rule: str,
    entity_ids: Iterable[str],
) -> str:
    key = build_correlation_key(kind, severity, rule, entity_ids)
    return stable_alert_id(key, prefix=ID_PREFIXES.get(kind, "ALERT"))
