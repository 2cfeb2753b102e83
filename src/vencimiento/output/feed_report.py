"""Alert feed rendering (markdown and JSON).

This module is renderer-only. Classification and filtering live in
alerts/feed_builder.py and suppression/engine.py.
"""

import json
from datetime import date, datetime
from typing import Dict

from ..alerts.alert_models import AlertFeed, Severity
from ..alerts.due_dates import describe_days, reference_date
from ..suppression.models import VisibleFeed
from ..utils.time import utc_now_z

EXPORT_SCHEMA_VERSION = "1"

SEVERITY_HEADINGS = {
    Severity.CRITICAL: "Critical",
    Severity.WARNING: "Warning",
    Severity.INFO: "Info",
}


def _as_visible(feed: AlertFeed | VisibleFeed) -> VisibleFeed:
    if isinstance(feed, VisibleFeed):
        return feed
    return VisibleFeed(
        items=list(feed.items),
        total_count=feed.total_count,
        count_by_severity=dict(feed.count_by_severity),
    )


def feed_to_dict(feed: AlertFeed | VisibleFeed, reference: date | datetime) -> Dict:
    """
    Wrap a feed in the export envelope.

    Returns:
        Dict with export_schema_version, exported_at_utc, reference_date and data
    """
    visible = _as_visible(feed)
    data = visible.model_dump(mode="json")
    # Always list all severities, in rank order
    data["count_by_severity"] = {
        severity.value: visible.count_by_severity.get(severity, 0) for severity in Severity
    }
    return {
        "export_schema_version": EXPORT_SCHEMA_VERSION,
        "exported_at_utc": utc_now_z(),
        "reference_date": reference_date(reference).isoformat(),
        "data": data,
    }


def render_json(export_data: Dict) -> str:
    """Render export data as JSON."""
    return json.dumps(export_data, indent=2, sort_keys=True, ensure_ascii=False)


def render_markdown(feed: AlertFeed | VisibleFeed, reference: date | datetime) -> str:
    """Render a feed as a markdown report."""
    visible = _as_visible(feed)
    ref = reference_date(reference)
    lines = []

    lines.append(f"# Alertas de habilitación - {ref.isoformat()}")
    lines.append("")

    counts = visible.count_by_severity
    lines.append("## Summary")
    lines.append("")
    lines.append(
        f"- **Critical:** {counts.get(Severity.CRITICAL, 0)} | "
        f"**Warning:** {counts.get(Severity.WARNING, 0)} | "
        f"**Info:** {counts.get(Severity.INFO, 0)}"
    )
    lines.append(f"- **Total:** {visible.total_count}")
    if visible.dismissed_count > 0:
        lines.append(f"- **Dismissed:** {visible.dismissed_count}")
    if visible.hidden_by_limit > 0:
        lines.append(f"- **Not shown (limit):** {visible.hidden_by_limit}")
    lines.append("")

    if not visible.items:
        lines.append("## Quiet Day")
        lines.append("")
        if visible.total_count > 0:
            lines.append("All alerts have been dismissed.")
        else:
            lines.append("No vencimientos, pending self-assessments or open findings need attention.")
        lines.append("")
        return "\n".join(lines)

    for severity in Severity:
        section = [alert for alert in visible.items if alert.severity == severity]
        if not section:
            continue
        lines.append(f"## {SEVERITY_HEADINGS[severity]}")
        lines.append("")
        for alert in section:
            lines.append(f"- **{alert.title}**")
            lines.append(f"  - {alert.detail}")
            if alert.days_remaining is not None:
                lines.append(f"  - **Días:** {describe_days(alert.days_remaining)}")
            action = f" | **{alert.action_label}:** {alert.action_path}" if alert.action_label else ""
            lines.append(f"  - **Id:** {alert.id}{action}")
            lines.append("")

    return "\n".join(lines)
