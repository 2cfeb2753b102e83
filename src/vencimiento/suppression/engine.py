"""Dismissal engine: filter an alert feed through caller-held dismissal state.

Dismissal is caller-owned UI state. Nothing here persists it; it relies on
alert ids being stable across refetches of the same entity state.
"""

from typing import Iterable, List, Optional

from ..alerts.alert_models import AlertFeed, AlertRecord
from .models import DismissalResult, DismissalRule, VisibleFeed

DEFAULT_MAX_ALERTS = 20


def _evaluate_rule(rule: DismissalRule, alert: AlertRecord) -> bool:
    """
    Evaluate a single dismissal rule against an alert.

    Returns:
        True if rule matches, False otherwise
    """
    if not rule.enabled:
        return False

    if rule.kind == "exact":
        return alert.id == rule.pattern
    elif rule.kind == "prefix":
        return alert.id.startswith(rule.pattern)
    elif rule.kind == "category":
        return alert.category == rule.pattern
    else:
        return False


def evaluate_dismissal(
    alert: AlertRecord,
    dismissed_ids: Iterable[str] = (),
    rules: Iterable[DismissalRule] = (),
) -> DismissalResult:
    """
    Decide whether an alert is hidden.

    The caller's dismissed-id set is checked first, then rules in order.
    First matching rule becomes the primary_rule_id; all matching rules are
    collected for auditability.
    """
    dismissed_by_id = alert.id in set(dismissed_ids)
    matched_rules: List[DismissalRule] = [rule for rule in rules if _evaluate_rule(rule, alert)]

    if not matched_rules:
        return DismissalResult(
            is_dismissed=dismissed_by_id,
            dismissed_by_id=dismissed_by_id,
        )

    return DismissalResult(
        is_dismissed=True,
        primary_rule_id=matched_rules[0].id,
        matched_rule_ids=[rule.id for rule in matched_rules],
        dismissed_by_id=dismissed_by_id,
    )


def apply_dismissals(
    feed: AlertFeed,
    dismissed_ids: Iterable[str] = (),
    rules: Iterable[DismissalRule] = (),
    max_alerts: Optional[int] = DEFAULT_MAX_ALERTS,
) -> VisibleFeed:
    """
    Filter dismissed alerts out of a feed and cap the result.

    Args:
        feed: Output of build_feed
        dismissed_ids: Alert ids the user dismissed this session
        rules: Standing dismissal rules (from config)
        max_alerts: Maximum visible items; None for no limit

    Returns:
        VisibleFeed whose counts still describe the full feed

    Raises:
        ValueError: If max_alerts is negative
    """
    if max_alerts is not None and max_alerts < 0:
        raise ValueError(f"max_alerts must be >= 0 or None, got {max_alerts}")

    dismissed = set(dismissed_ids)
    rules = list(rules)

    visible: List[AlertRecord] = []
    dismissed_count = 0
    for alert in feed.items:
        if evaluate_dismissal(alert, dismissed, rules).is_dismissed:
            dismissed_count += 1
            continue
        visible.append(alert)

    hidden_by_limit = 0
    if max_alerts is not None and len(visible) > max_alerts:
        hidden_by_limit = len(visible) - max_alerts
        visible = visible[:max_alerts]

    return VisibleFeed(
        items=visible,
        dismissed_count=dismissed_count,
        hidden_by_limit=hidden_by_limit,
        total_count=feed.total_count,
        count_by_severity=dict(feed.count_by_severity),
    )


def dismiss(dismissed_ids: Iterable[str], alert_id: str) -> frozenset[str]:
    """Return a new dismissed-id set including alert_id."""
    return frozenset(dismissed_ids) | {alert_id}
