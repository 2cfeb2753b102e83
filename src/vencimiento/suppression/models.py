"""Pydantic models for alert dismissal rules and results."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..alerts.alert_models import AlertRecord, Severity, empty_severity_counts


class DismissalRule(BaseModel):
    """A standing rule that hides matching alerts from the visible feed."""

    id: str = Field(..., description="Unique rule identifier")
    enabled: bool = Field(default=True, description="Whether this rule is active")
    kind: Literal["exact", "prefix", "category"] = Field(
        ..., description="Match kind: exact alert id, alert id prefix, or alert category"
    )
    pattern: str = Field(..., description="Pattern to match against")
    note: Optional[str] = Field(default=None, description="Optional human-readable note")


class DismissalResult(BaseModel):
    """Result of dismissal evaluation for one alert."""

    is_dismissed: bool = Field(..., description="Whether the alert is hidden")
    primary_rule_id: Optional[str] = Field(default=None, description="First matching rule ID (deterministic)")
    matched_rule_ids: List[str] = Field(default_factory=list, description="All matching rule IDs")
    dismissed_by_id: bool = Field(default=False, description="Whether the alert id is in the caller's dismissed set")


class VisibleFeed(BaseModel):
    """The slice of a feed a caller should show after dismissals and limits.

    Counts describe the whole feed, not only the visible items.
    """

    items: List[AlertRecord] = Field(default_factory=list)
    dismissed_count: int = 0
    hidden_by_limit: int = 0
    total_count: int = 0
    count_by_severity: Dict[Severity, int] = Field(default_factory=empty_severity_counts)
