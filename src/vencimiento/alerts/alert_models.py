from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Sort rank: CRITICAL first, INFO last."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


def severity_rank(severity: Severity) -> int:
    return _SEVERITY_RANK[severity]


class EntityKind(str, Enum):
    HABILITACION = "HABILITACION"
    PLAN_MEJORA = "PLAN_MEJORA"
    SERVICIO = "SERVICIO"
    AUTOEVALUACION = "AUTOEVALUACION"
    HALLAZGO = "HALLAZGO"


class TrackedEntity(BaseModel):
    """Read-only snapshot of one backend record, reduced to what classification needs.

    `kind` falls back to the raw string when upstream sends a kind this
    version does not know; such entities classify to no alert.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    kind: EntityKind | str
    due_date: Optional[date] = None
    status: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # Backend ids are integers
        return str(value) if value is not None else value

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, value):
        if isinstance(value, str) and not isinstance(value, EntityKind):
            try:
                return EntityKind(value.strip().upper())
            except ValueError:
                return value
        return value


class FeedOptions(BaseModel):
    """Caller-configurable windows for the feed builder."""
    service_threshold_days: int = Field(default=90, ge=0)
    plan_threshold_days: int = Field(default=30, ge=0)
    group_preview_size: int = Field(default=3, ge=1)


class AlertRecord(BaseModel):
    """One entry of the alert feed.

    Per-entity records (habilitación, servicio) carry `days_remaining` and the
    entity metadata in `entity_ref`. Grouped records (planes, autoevaluaciones,
    hallazgos) leave `days_remaining` as None and list members in `entity_ids`.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    severity: Severity
    kind: EntityKind
    rule: str
    category: str
    title: str
    detail: str
    days_remaining: Optional[int] = None
    entity_ref: Dict[str, str] = Field(default_factory=dict)
    entity_ids: List[str] = Field(default_factory=list)
    action_label: Optional[str] = None
    action_path: Optional[str] = None


def empty_severity_counts() -> Dict[Severity, int]:
    return {severity: 0 for severity in Severity}


class AlertFeed(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[AlertRecord] = Field(default_factory=list)
    total_count: int = 0
    count_by_severity: Dict[Severity, int] = Field(default_factory=empty_severity_counts)
