"""Severity classification per entity kind.

Each kind owns its own rule table; the tables are intentionally different
and must not be unified. Rules are evaluated in order and the first match
wins, so a VENCIDO plan never also lands in the near-due WARNING bucket.

  HABILITACION    d < 0                     CRITICAL  vencida
                  0 <= d <= 30              CRITICAL  inminente
                  31 <= d <= 90             WARNING   proxima
                  91 <= d <= 180            INFO      renovacion
  PLAN_MEJORA     COMPLETADO                (none)
                  VENCIDO                   CRITICAL  vencido
                  PENDIENTE/EN_CURSO, 0<=d<=plan window
                                            WARNING   proximo
  SERVICIO        d < 0                     CRITICAL  vencido
                  0 <= d <= service window  WARNING   proximo
  AUTOEVALUACION  BORRADOR/EN_CURSO         INFO      pendiente
  HALLAZGO        CRÍTICA and not CERRADO   CRITICAL  critico
                  ABIERTO and not CRÍTICA   WARNING   abierto
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from .alert_models import EntityKind, FeedOptions, Severity
from .due_dates import IMMINENT_DAYS, RENEWAL_WINDOW_DAYS, WARNING_DAYS

CATEGORY_ORDER: List[str] = [
    "habilitaciones-vencidas",
    "habilitaciones-proximas",
    "habilitaciones-renovacion",
    "servicios-vencidos",
    "servicios-proximos",
    "planes-vencidos",
    "planes-proximos",
    "autoevaluaciones-pendientes",
    "hallazgos-criticos",
    "hallazgos-abiertos",
]

PLAN_OPEN_STATUSES = ("PENDIENTE", "EN_CURSO")
AUTOEVALUACION_PENDING_STATUSES = ("BORRADOR", "EN_CURSO")
HALLAZGO_CRITICAL_SEVERITIES = ("CRÍTICA", "CRITICA")


@dataclass(frozen=True)
class RuleMatch:
    severity: Severity
    rule: str
    category: str


@dataclass(frozen=True)
class _Context:
    days: Optional[int]
    status: str
    severidad: str
    options: FeedOptions


# A rule returns a RuleMatch to emit, NO_ALERT to stop evaluation silently,
# or None to fall through to the next rule.
NO_ALERT = object()

Rule = Callable[[_Context], object]


def _normalize_code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def _in_range(days: Optional[int], low: int, high: int) -> bool:
    return days is not None and low <= days <= high


# --- HABILITACION ---------------------------------------------------------

def _habilitacion_vencida(ctx: _Context) -> Optional[RuleMatch]:
    if ctx.days is not None and ctx.days < 0:
        return RuleMatch(Severity.CRITICAL, "vencida", "habilitaciones-vencidas")
    return None


def _habilitacion_inminente(ctx: _Context) -> Optional[RuleMatch]:
    if _in_range(ctx.days, 0, IMMINENT_DAYS):
        return RuleMatch(Severity.CRITICAL, "inminente", "habilitaciones-proximas")
    return None


def _habilitacion_proxima(ctx: _Context) -> Optional[RuleMatch]:
    if _in_range(ctx.days, IMMINENT_DAYS + 1, WARNING_DAYS):
        return RuleMatch(Severity.WARNING, "proxima", "habilitaciones-proximas")
    return None


def _habilitacion_renovacion(ctx: _Context) -> Optional[RuleMatch]:
    if _in_range(ctx.days, WARNING_DAYS + 1, RENEWAL_WINDOW_DAYS):
        return RuleMatch(Severity.INFO, "renovacion", "habilitaciones-renovacion")
    return None


# --- PLAN_MEJORA ----------------------------------------------------------

def _plan_completado(ctx: _Context) -> object:
    if ctx.status == "COMPLETADO":
        return NO_ALERT
    return None


def _plan_vencido(ctx: _Context) -> Optional[RuleMatch]:
    if ctx.status == "VENCIDO":
        return RuleMatch(Severity.CRITICAL, "vencido", "planes-vencidos")
    return None


def _plan_proximo(ctx: _Context) -> Optional[RuleMatch]:
    if ctx.status in PLAN_OPEN_STATUSES and _in_range(ctx.days, 0, ctx.options.plan_threshold_days):
        return RuleMatch(Severity.WARNING, "proximo", "planes-proximos")
    return None


# --- SERVICIO -------------------------------------------------------------

def _servicio_vencido(ctx: _Context) -> Optional[RuleMatch]:
    if ctx.days is not None and ctx.days < 0:
        return RuleMatch(Severity.CRITICAL, "vencido", "servicios-vencidos")
    return None


def _servicio_proximo(ctx: _Context) -> Optional[RuleMatch]:
    if _in_range(ctx.days, 0, ctx.options.service_threshold_days):
        return RuleMatch(Severity.WARNING, "proximo", "servicios-proximos")
    return None


# --- AUTOEVALUACION -------------------------------------------------------

def _autoevaluacion_pendiente(ctx: _Context) -> Optional[RuleMatch]:
    if ctx.status in AUTOEVALUACION_PENDING_STATUSES:
        return RuleMatch(Severity.INFO, "pendiente", "autoevaluaciones-pendientes")
    return None


# --- HALLAZGO -------------------------------------------------------------

def _hallazgo_critico(ctx: _Context) -> Optional[RuleMatch]:
    if ctx.severidad in HALLAZGO_CRITICAL_SEVERITIES and ctx.status != "CERRADO":
        return RuleMatch(Severity.CRITICAL, "critico", "hallazgos-criticos")
    return None


def _hallazgo_abierto(ctx: _Context) -> Optional[RuleMatch]:
    if ctx.status == "ABIERTO" and ctx.severidad not in HALLAZGO_CRITICAL_SEVERITIES:
        return RuleMatch(Severity.WARNING, "abierto", "hallazgos-abiertos")
    return None


RULES: Dict[EntityKind, List[Rule]] = {
    EntityKind.HABILITACION: [
        _habilitacion_vencida,
        _habilitacion_inminente,
        _habilitacion_proxima,
        _habilitacion_renovacion,
    ],
    EntityKind.PLAN_MEJORA: [
        _plan_completado,
        _plan_vencido,
        _plan_proximo,
    ],
    EntityKind.SERVICIO: [
        _servicio_vencido,
        _servicio_proximo,
    ],
    EntityKind.AUTOEVALUACION: [
        _autoevaluacion_pendiente,
    ],
    EntityKind.HALLAZGO: [
        _hallazgo_critico,
        _hallazgo_abierto,
    ],
}


def coerce_kind(kind) -> Optional[EntityKind]:
    """EntityKind for a raw kind value, or None when unrecognized."""
    if isinstance(kind, EntityKind):
        return kind
    try:
        return EntityKind(_normalize_code(kind))
    except (ValueError, AttributeError):
        return None


def match_rule(
    kind: EntityKind | str,
    days_remaining: Optional[int],
    status: Optional[str] = None,
    metadata: Optional[Mapping[str, str]] = None,
    options: Optional[FeedOptions] = None,
) -> Optional[RuleMatch]:
    """
    Find the first rule of `kind` that matches.

    Args:
        kind: Entity kind (unknown kinds never match)
        days_remaining: Output of days_until, or None when the entity has no date
        status: Entity state (estado); compared case-insensitively
        metadata: Entity metadata; HALLAZGO reads "severidad" from it
        options: Caller windows for plan and service rules

    Returns:
        RuleMatch, or None when no alert applies
    """
    entity_kind = coerce_kind(kind)
    if entity_kind is None:
        return None

    ctx = _Context(
        days=days_remaining,
        status=_normalize_code(status),
        severidad=_normalize_code((metadata or {}).get("severidad")),
        options=options or FeedOptions(),
    )
    for rule in RULES[entity_kind]:
        match = rule(ctx)
        if match is NO_ALERT:
            return None
        if match is not None:
            return match
    return None


def classify(
    kind: EntityKind | str,
    days_remaining: Optional[int],
    status: Optional[str] = None,
    metadata: Optional[Mapping[str, str]] = None,
    options: Optional[FeedOptions] = None,
) -> Optional[Severity]:
    """Severity for an entity, or None when no alert applies."""
    match = match_rule(kind, days_remaining, status, metadata, options)
    return match.severity if match else None
