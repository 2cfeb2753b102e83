from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml
from pydantic import ValidationError

from ..alerts.alert_models import FeedOptions
from ..suppression.engine import DEFAULT_MAX_ALERTS
from ..suppression.models import DismissalRule

DEFAULT_CONFIG_PATH = Path("config/vencimiento.yaml")
EXAMPLE_CONFIG_PATH = Path("config/vencimiento.example.yaml")

BASE_DEFAULTS: Dict[str, Any] = {
    "thresholds": {
        "service_days": 90,
        "plan_days": 30,
    },
    "feed": {
        "max_alerts": DEFAULT_MAX_ALERTS,
        "group_preview_size": 3,
    },
    "dismissal": {
        "dismissed_ids": [],
        "rules": [],
    },
}


def _merge_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay user sections on the built-in defaults, one level deep."""
    merged = deepcopy(BASE_DEFAULTS)
    for section, defaults in merged.items():
        user_section = config.get(section) or {}
        if not isinstance(user_section, dict):
            raise ValueError(f"Config section '{section}' must be a dictionary")
        defaults.update(user_section)
    for key, value in config.items():
        if key not in merged:
            merged[key] = value
    return merged


def _validate_non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Config '{name}' must be an integer")
    if value < 0:
        raise ValueError(f"Config '{name}' must be >= 0")
    return value


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load vencimiento configuration from YAML file.

    Args:
        path: Optional path to config file. Defaults to config/vencimiento.yaml

    Returns:
        Dictionary with every section present (defaults applied)

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")
    if "version" not in config:
        raise ValueError("Config must have 'version' field")

    merged = _merge_defaults(config)

    thresholds = merged["thresholds"]
    _validate_non_negative_int(thresholds["service_days"], "thresholds.service_days")
    _validate_non_negative_int(thresholds["plan_days"], "thresholds.plan_days")

    feed = merged["feed"]
    if feed["max_alerts"] is not None:
        _validate_non_negative_int(feed["max_alerts"], "feed.max_alerts")
    if _validate_non_negative_int(feed["group_preview_size"], "feed.group_preview_size") < 1:
        raise ValueError("Config 'feed.group_preview_size' must be >= 1")

    dismissal = merged["dismissal"]
    if not isinstance(dismissal["dismissed_ids"], list):
        raise ValueError("Config 'dismissal.dismissed_ids' must be a list")
    if not isinstance(dismissal["rules"], list):
        raise ValueError("Config 'dismissal.rules' must be a list")

    return merged


def default_config() -> Dict[str, Any]:
    """Built-in configuration, used when no config file is present."""
    return _merge_defaults({"version": 1})


def get_feed_options(config: Dict[str, Any] | None = None) -> FeedOptions:
    """
    Build FeedOptions from a loaded config.

    Args:
        config: Output of load_config(); None means built-in defaults
    """
    if config is None:
        config = default_config()
    thresholds = config.get("thresholds", {})
    feed = config.get("feed", {})
    return FeedOptions(
        service_threshold_days=thresholds.get("service_days", 90),
        plan_threshold_days=thresholds.get("plan_days", 30),
        group_preview_size=feed.get("group_preview_size", 3),
    )


def get_max_alerts(config: Dict[str, Any] | None = None) -> int | None:
    if config is None:
        config = default_config()
    return config.get("feed", {}).get("max_alerts", DEFAULT_MAX_ALERTS)


def get_dismissal_settings(
    config: Dict[str, Any] | None = None,
) -> Tuple[List[str], List[DismissalRule]]:
    """
    Extract the standing dismissed ids and rules.

    Returns:
        Tuple of (dismissed_ids, rules)

    Raises:
        ValueError: If a rule entry is malformed
    """
    if config is None:
        config = default_config()
    dismissal = config.get("dismissal", {})
    dismissed_ids = [str(alert_id) for alert_id in dismissal.get("dismissed_ids", [])]

    rules: List[DismissalRule] = []
    for entry in dismissal.get("rules", []):
        if not isinstance(entry, dict):
            raise ValueError("Each dismissal rule must be a dictionary")
        try:
            rules.append(DismissalRule(**entry))
        except (ValidationError, TypeError) as e:
            raise ValueError(f"Invalid dismissal rule {entry.get('id')!r}: {e}") from e
    return dismissed_ids, rules
