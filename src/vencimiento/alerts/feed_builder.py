"""Alert feed construction.

build_feed() is pure: it reads the entity snapshot and the injected reference
date and returns a fresh AlertFeed. Nothing is cached between calls.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .alert_models import (
    AlertFeed,
    AlertRecord,
    EntityKind,
    FeedOptions,
    Severity,
    TrackedEntity,
    empty_severity_counts,
)
from .classifier import CATEGORY_ORDER, RuleMatch, coerce_kind, match_rule
from .correlation import build_alert_id
from .due_dates import days_until, format_due_date, reference_date

# Kinds reported as one summary record per (kind, severity, rule)
GROUPED_KINDS = (
    EntityKind.PLAN_MEJORA,
    EntityKind.AUTOEVALUACION,
    EntityKind.HALLAZGO,
)

_AUTOEVALUACION_STATUS_LABELS = {
    "BORRADOR": "Borrador",
    "EN_CURSO": "En curso",
}

# (kind, rule) -> (title template, action label, action path)
_GROUP_TEXT: Dict[Tuple[EntityKind, str], Tuple[str, str, str]] = {
    (EntityKind.PLAN_MEJORA, "vencido"): (
        "{n} plan(es) de mejora vencido(s)", "Ver planes", "/habilitacion/planes-mejora",
    ),
    (EntityKind.PLAN_MEJORA, "proximo"): (
        "{n} plan(es) próximo(s) a vencer", "Ver planes", "/habilitacion/planes-mejora",
    ),
    (EntityKind.AUTOEVALUACION, "pendiente"): (
        "{n} autoevaluación(es) pendiente(s)", "Ver autoevaluaciones", "/habilitacion",
    ),
    (EntityKind.HALLAZGO, "critico"): (
        "{n} hallazgo(s) crítico(s) abierto(s)", "Ver hallazgos", "/habilitacion/hallazgos",
    ),
    (EntityKind.HALLAZGO, "abierto"): (
        "{n} hallazgo(s) abierto(s)", "Ver hallazgos", "/habilitacion/hallazgos",
    ),
}


def _meta(entity: TrackedEntity, key: str, default: str = "") -> str:
    value = entity.metadata.get(key)
    return value if value else default


def _display_identifier(kind: EntityKind, entity: TrackedEntity, days: Optional[int]) -> str:
    """Short label for one member of a grouped alert."""
    if kind == EntityKind.PLAN_MEJORA:
        label = _meta(entity, "numero_plan", entity.id)
        return f"{label} ({days}d)" if days is not None and days >= 0 else label
    if kind == EntityKind.AUTOEVALUACION:
        label = _meta(entity, "numero_autoevaluacion", entity.id)
        status_label = _AUTOEVALUACION_STATUS_LABELS.get(entity.status.strip().upper())
        return f"{label} ({status_label})" if status_label else label
    if kind == EntityKind.HALLAZGO:
        return _meta(entity, "numero_hallazgo", entity.id)
    return entity.id


def summarize_members(labels: List[str], preview_size: int) -> str:
    """'A, B, C y 2 más' for groups larger than the preview."""
    shown = ", ".join(labels[:preview_size])
    extra = len(labels) - preview_size
    if extra > 0:
        shown += f" y {extra} más"
    return shown


def _habilitacion_record(
    entity: TrackedEntity, match: RuleMatch, days: int
) -> AlertRecord:
    codigo = _meta(entity, "codigo_reps", entity.id)
    sede = _meta(entity, "sede", "Sin sede")
    fecha = format_due_date(entity.due_date)

    if match.rule == "vencida":
        title = "Habilitación vencida"
        detail = f"{codigo} ({sede}) - Venció el {fecha}"
        action_label = "Ver prestador"
    elif match.rule == "renovacion":
        title = f"Habilitación vence en {days} días"
        detail = f"{codigo} - Considere iniciar renovación"
        action_label = "Ver detalle"
    else:
        title = f"Habilitación vence en {days} días"
        detail = f"{codigo} ({sede}) - Vence el {fecha}"
        action_label = "Renovar"

    return AlertRecord(
        id=build_alert_id(EntityKind.HABILITACION, match.severity, match.rule, [entity.id]),
        severity=match.severity,
        kind=EntityKind.HABILITACION,
        rule=match.rule,
        category=match.category,
        title=title,
        detail=detail,
        days_remaining=days,
        entity_ref=dict(entity.metadata),
        entity_ids=[entity.id],
        action_label=action_label,
        action_path=f"/habilitacion/prestador/{entity.id}",
    )


def _servicio_record(
    entity: TrackedEntity, match: RuleMatch, days: int
) -> AlertRecord:
    nombre = " ".join(
        part for part in (_meta(entity, "codigo_servicio"), _meta(entity, "nombre_servicio")) if part
    ) or entity.id
    sede = _meta(entity, "sede", "Sin sede")
    fecha = format_due_date(entity.due_date)

    if match.rule == "vencido":
        title = "Servicio vencido"
        detail = f"{nombre} ({sede}) - Venció el {fecha}"
    else:
        title = f"Servicio vence en {days} días"
        detail = f"{nombre} ({sede}) - Vence el {fecha}"

    return AlertRecord(
        id=build_alert_id(EntityKind.SERVICIO, match.severity, match.rule, [entity.id]),
        severity=match.severity,
        kind=EntityKind.SERVICIO,
        rule=match.rule,
        category=match.category,
        title=title,
        detail=detail,
        days_remaining=days,
        entity_ref=dict(entity.metadata),
        entity_ids=[entity.id],
        action_label="Ver servicio",
        action_path=f"/habilitacion/servicios/{entity.id}",
    )


def _group_record(
    kind: EntityKind,
    match: RuleMatch,
    members: List[Tuple[TrackedEntity, Optional[int]]],
    options: FeedOptions,
) -> AlertRecord:
    title_template, action_label, action_path = _GROUP_TEXT[(kind, match.rule)]
    entity_ids = [entity.id for entity, _ in members]
    labels = [_display_identifier(kind, entity, days) for entity, days in members]

    return AlertRecord(
        id=build_alert_id(kind, match.severity, match.rule, entity_ids),
        severity=match.severity,
        kind=kind,
        rule=match.rule,
        category=match.category,
        title=title_template.format(n=len(members)),
        detail=summarize_members(labels, options.group_preview_size),
        days_remaining=None,
        entity_ids=entity_ids,
        action_label=action_label,
        action_path=action_path,
    )


def _count_by_severity(items: List[AlertRecord]) -> Dict[Severity, int]:
    counts = empty_severity_counts()
    for item in items:
        counts[item.severity] += 1
    return counts


def build_feed(
    entities: Iterable[TrackedEntity],
    reference: date | datetime,
    options: Optional[FeedOptions] = None,
) -> AlertFeed:
    """
    Classify a snapshot of entities into a severity-ordered alert feed.

    Habilitaciones and servicios yield one record per entity. Planes,
    autoevaluaciones and hallazgos are grouped into one record per
    (kind, severity, rule). Records are laid out in CATEGORY_ORDER, input
    order within a category, then stable-sorted CRITICAL -> WARNING -> INFO.

    Args:
        entities: Snapshot to classify; may be empty or partial
        reference: Date or timezone-aware datetime standing for "now"
        options: Plan/service windows and group preview size

    Returns:
        AlertFeed with items, total_count and count_by_severity

    Raises:
        InvalidReferenceError: If reference is missing or unusable
    """
    reference_date(reference)
    options = options or FeedOptions()

    by_category: Dict[str, List[AlertRecord]] = {category: [] for category in CATEGORY_ORDER}
    groups: Dict[Tuple[EntityKind, Severity, str], Tuple[RuleMatch, List[Tuple[TrackedEntity, Optional[int]]]]] = {}
    seen: set[Tuple[EntityKind, str]] = set()

    for entity in entities:
        kind = coerce_kind(entity.kind)
        if kind is None:
            continue
        # Same backend record fetched twice (e.g. list + filtered endpoint)
        if (kind, entity.id) in seen:
            continue
        seen.add((kind, entity.id))

        days = days_until(reference, entity.due_date)
        match = match_rule(kind, days, entity.status, entity.metadata, options)
        if match is None:
            continue

        if kind in GROUPED_KINDS:
            key = (kind, match.severity, match.rule)
            if key not in groups:
                groups[key] = (match, [])
            groups[key][1].append((entity, days))
        elif kind == EntityKind.HABILITACION:
            by_category[match.category].append(_habilitacion_record(entity, match, days))
        else:
            by_category[match.category].append(_servicio_record(entity, match, days))

    for (kind, _severity, _rule), (match, members) in groups.items():
        by_category[match.category].append(_group_record(kind, match, members, options))

    ordered = [record for category in CATEGORY_ORDER for record in by_category[category]]
    # sorted() is stable: category order survives within each severity
    items = sorted(ordered, key=lambda record: record.severity.rank)

    return AlertFeed(
        items=items,
        total_count=len(items),
        count_by_severity=_count_by_severity(items),
    )
