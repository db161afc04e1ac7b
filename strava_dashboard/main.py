from __future__ import annotations

import argparse
import logging
from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from .config import DEFAULT_DATA_SOURCE, OUTPUT_FILE, OUTPUT_FILE_TIMESTAMP_ENABLED
from .coordinator import SelectActivityType, SetDateRange
from .geometry import Bounds
from .pipeline import Dashboard
from .report_writer import write_dashboard_report


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    elif verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _resolve_output_paths() -> Tuple[str, str]:
    stem = OUTPUT_FILE
    if OUTPUT_FILE_TIMESTAMP_ENABLED:
        stem = f"{OUTPUT_FILE}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    return f"{stem}.xlsx", f"{stem}.html"


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM-DD, got {value!r}") from exc


def _parse_bounds(value: str) -> Bounds:
    try:
        return Bounds.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strava-dashboard",
        description=(
            "Build route map, KPIs, personal bests, monthly chart and "
            "geographic summary from a Strava activity export."
        ),
    )
    parser.add_argument(
        "--input",
        default=None,
        help=f"CSV export path or URL (default: {DEFAULT_DATA_SOURCE})",
    )
    parser.add_argument(
        "--upload",
        default=None,
        help="CSV export to load instead of the default data",
    )
    parser.add_argument("--type", dest="activity_type", default="all")
    parser.add_argument("--start", type=_parse_date, default=None)
    parser.add_argument("--end", type=_parse_date, default=None)
    parser.add_argument(
        "--viewport",
        type=_parse_bounds,
        default=None,
        help="Pan the map to 'south,west,north,east' after the routes are fitted",
    )
    parser.add_argument("--report", default=None, help="Workbook output path")
    parser.add_argument("--map-html", default=None, help="HTML map output path")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    report_path, map_path = _resolve_output_paths()
    report_path = args.report or report_path
    map_path = args.map_html or map_path

    dashboard = Dashboard()
    if args.upload:
        loaded = dashboard.upload(args.upload)
    else:
        loaded = dashboard.load_default(args.input)
    if not loaded:
        if dashboard.upload_required:
            logging.error(
                "Default data unavailable; rerun with --upload <export.csv>"
            )
        return 1

    if args.start or args.end:
        dashboard.dispatch(SetDateRange(args.start, args.end))
    if args.activity_type != "all":
        if args.activity_type not in dashboard.coordinator.activity_type_options:
            logging.warning(
                "Unknown activity type %r (available: %s)",
                args.activity_type,
                ", ".join(dashboard.coordinator.activity_type_options),
            )
        dashboard.dispatch(SelectActivityType(args.activity_type))
    if args.viewport is not None:
        dashboard.map.pan_to(args.viewport)

    views = dashboard.views
    if views is None:
        logging.error("No views were rendered")
        return 1
    write_dashboard_report(report_path, views)
    dashboard.map.save(map_path)
    logging.info(
        "Dashboard saved (activities=%d, distance=%.1f km, report=%s, map=%s)",
        views.totals.count,
        views.totals.total_km,
        report_path,
        map_path,
    )
    return 0
