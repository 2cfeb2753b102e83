"""CLI entrypoint for the vencimiento alert feed."""

import argparse
import json
import logging
import shutil
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from vencimiento import __version__
from vencimiento.alerts.due_dates import (
    days_until,
    describe_days,
    due_level,
    due_state,
    is_renewal_eligible,
)
from vencimiento.alerts.feed_builder import build_feed
from vencimiento.config.loader import (
    DEFAULT_CONFIG_PATH,
    default_config,
    get_dismissal_settings,
    get_feed_options,
    get_max_alerts,
    load_config,
)
from vencimiento.output.feed_report import feed_to_dict, render_json, render_markdown
from vencimiento.parsing.normalizer import normalize_snapshot
from vencimiento.suppression.engine import apply_dismissals
from vencimiento.utils.logging import configure_logging, get_logger
from vencimiento.utils.time import utc_today

logger = get_logger(__name__)


def _parse_date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}', expected an integer")
    if number < 0:
        raise argparse.ArgumentTypeError(f"Invalid value {number}, must be >= 0")
    return number


def _resolve_config(config_path: Optional[Path]) -> Dict[str, Any]:
    """Explicit path must exist; the default path is optional."""
    if config_path is not None:
        return load_config(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.debug(f"No config at {DEFAULT_CONFIG_PATH}, using built-in defaults")
    return default_config()


def _load_snapshot(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Input snapshot not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        document = json.load(f)
    # A bare list is treated as pre-normalized entities
    if isinstance(document, list):
        return {"entities": document}
    return document


def _emit(output: str, out: Optional[Path]) -> None:
    if out:
        out.write_text(output, encoding="utf-8")
        print(f"Exported to {out}")
    else:
        print(output)


def cmd_feed(args: argparse.Namespace) -> None:
    """Build the alert feed for a snapshot file and render it."""
    reference = args.today or utc_today()
    config = _resolve_config(args.config)
    options = get_feed_options(config)
    dismissed_ids, rules = get_dismissal_settings(config)
    dismissed_ids = dismissed_ids + list(args.dismiss or [])
    max_alerts = args.limit if args.limit is not None else get_max_alerts(config)

    document = _load_snapshot(args.input)
    entities = normalize_snapshot(document, reference=reference)
    feed = build_feed(entities, reference, options)
    visible = apply_dismissals(feed, dismissed_ids, rules, max_alerts=max_alerts)

    logger.info(
        f"Classified {len(entities)} entities into {feed.total_count} alerts "
        f"({visible.dismissed_count} dismissed, {len(visible.items)} shown)"
    )

    if args.format == "json":
        output = render_json(feed_to_dict(visible, reference))
    else:
        output = render_markdown(visible, reference)
    _emit(output, args.out)


def cmd_days(args: argparse.Namespace) -> None:
    """Print day offset, due state and renewal eligibility for one date."""
    reference = args.today or utc_today()
    remaining = days_until(reference, args.date)
    result = {
        "reference_date": reference.isoformat(),
        "due_date": args.date.isoformat(),
        "days_remaining": remaining,
        "label": describe_days(remaining),
        "state": due_state(reference, args.date, args.window),
        "level": due_level(remaining).value,
        "renewal_eligible": is_renewal_eligible(remaining),
    }
    if args.format == "json":
        print(json.dumps(result, indent=2, sort_keys=True, ensure_ascii=False))
        return
    for key in ("due_date", "days_remaining", "label", "state", "level", "renewal_eligible"):
        print(f"{key}: {result[key]}")


def cmd_init(args: argparse.Namespace) -> None:
    """Initialize vencimiento configuration from the example file."""
    config_dir = Path("config")
    config_dir.mkdir(exist_ok=True)

    example = config_dir / "vencimiento.example.yaml"
    target = config_dir / "vencimiento.yaml"

    if not example.exists():
        logger.error(f"Example file not found: {example}")
        logger.error("Please ensure config/vencimiento.example.yaml exists")
        return

    if target.exists() and not args.force:
        print(f"Skipped {target} (already exists, use --force to overwrite)")
        return

    shutil.copy(example, target)
    print(f"Created {target}")
    print("  Next steps:")
    print("  1. Review thresholds and dismissal rules in config/vencimiento.yaml")
    print("  2. Run: vencimiento feed --input snapshot.json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vencimiento",
        description="Classify habilitación due dates into a prioritized alert feed",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # feed command
    feed_parser = subparsers.add_parser("feed", help="Build the alert feed for a snapshot")
    feed_parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="JSON snapshot with habilitaciones, servicios, planes_mejora, autoevaluaciones, hallazgos",
    )
    feed_parser.add_argument(
        "--today",
        type=_parse_date_arg,
        help="Reference date YYYY-MM-DD (default: current UTC date)",
    )
    feed_parser.add_argument(
        "--config",
        type=Path,
        help=f"Config file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    feed_parser.add_argument(
        "--format",
        type=str,
        choices=["md", "json"],
        default="md",
        help="Output format: md or json (default: md)",
    )
    feed_parser.add_argument(
        "--limit",
        type=_non_negative_int,
        help="Maximum number of alerts shown (default: from config, 20)",
    )
    feed_parser.add_argument(
        "--dismiss",
        action="append",
        metavar="ALERT_ID",
        help="Alert id to hide (repeatable)",
    )
    feed_parser.add_argument(
        "--out",
        type=Path,
        help="Output file path (if not provided, prints to stdout)",
    )
    feed_parser.set_defaults(func=cmd_feed)

    # days command
    days_parser = subparsers.add_parser("days", help="Days remaining until a due date")
    days_parser.add_argument("--date", type=_parse_date_arg, required=True, help="Due date YYYY-MM-DD")
    days_parser.add_argument(
        "--today",
        type=_parse_date_arg,
        help="Reference date YYYY-MM-DD (default: current UTC date)",
    )
    days_parser.add_argument(
        "--window",
        type=_non_negative_int,
        default=90,
        help="Near-due window in days for the due state (default: 90)",
    )
    days_parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    days_parser.set_defaults(func=cmd_days)

    # init command
    init_parser = subparsers.add_parser("init", help="Create config/vencimiento.yaml from the example")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing config file",
    )
    init_parser.set_defaults(func=cmd_init)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    if not args.command:
        parser.print_help()
        return

    try:
        args.func(args)
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
