"""Activity export reading layer (tabular parsing + row coercion).

Rows come from a Strava bulk export flattened to CSV. Each row is validated
and coerced into an :class:`ActivityRecord`; rows that cannot be used are
skipped without aborting the rest of the table.
"""

from __future__ import annotations

import io
import logging
import math
import re
from datetime import date, datetime
from os import PathLike
from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd
import requests

from .activity_types import normalize_activity_type
from .config import POLYLINE_PRECISION, REGISTER_UNDATED_ACTIVITY_TYPES, REQUEST_TIMEOUT
from .errors import DataLoadError, GeometryDecodeError, TableFormatError
from .geometry import decode_polyline, route_bounds
from .models import ActivityRecord
from .store import ActivityStore, IngestionStats

LOGGER = logging.getLogger(__name__)

POLYLINE_COL = "map.summary_polyline"
TYPE_COL = "sport_type"
ELEVATION_COL = "total_elevation_gain"
DISTANCE_COL = "distance"
MOVING_TIME_COL = "moving_time"
START_DATE_COL = "start_date_local"
COUNTRY_COL = "location_country"
NAME_COL = "name"

RawRow = Mapping[str, Any]
PathInput = str | Path | PathLike[str]

# Leading numeric prefix, as JavaScript's parseFloat reads it ("12.5 km" -> 12.5).
_NUMERIC_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
# Calendar date first; relative words such as "now" or "today" are rejected.
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}(?:$|[T ])")


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def _clean_text(value: object) -> Optional[str]:
    if _is_blank(value):
        return None
    return str(value).strip()


def _coerce_float(value: object) -> float:
    """Parse a numeric cell, returning ``0.0`` for anything unusable.

    Negative and non-finite values also become ``0.0``: distances, climbs and
    durations are never below zero.
    """

    if _is_blank(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        numeric = float(value)
    else:
        match = _NUMERIC_PREFIX.match(str(value))
        if match is None:
            return 0.0
        try:
            numeric = float(match.group(1))
        except ValueError:
            return 0.0
    if not math.isfinite(numeric) or numeric < 0:
        return 0.0
    return numeric


def _parse_start_date(value: object) -> Optional[datetime]:
    """Return a naive local datetime, or ``None`` when missing/unparseable.

    ``start_date_local`` already holds wall-clock time; a trailing ``Z`` or
    offset is dropped rather than converted.
    """

    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        parsed = pd.Timestamp(value)
    elif isinstance(value, date):
        parsed = pd.Timestamp(datetime(value.year, value.month, value.day))
    else:
        text = str(value).strip()
        if not _ISO_DATE_PREFIX.match(text):
            return None
        parsed = pd.to_datetime(text, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed.to_pydatetime()


def ingest(
    rows: Iterable[RawRow],
    *,
    precision: int = POLYLINE_PRECISION,
    register_undated_types: bool = REGISTER_UNDATED_ACTIVITY_TYPES,
) -> ActivityStore:
    """Build a fresh :class:`ActivityStore` from header-keyed rows.

    Args:
        rows: Raw rows keyed by export column name.
        precision: Polyline precision the export was encoded with.
        register_undated_types: Keep the type bucket of rows that are dropped
            for lacking a valid date (or route) so the type stays selectable.

    Returns:
        The new store. The caller decides whether to publish it.
    """

    buckets: Dict[str, List[ActivityRecord]] = {}
    rows_seen = skipped_no_geometry = skipped_bad_geometry = skipped_no_date = 0

    for row_number, row in enumerate(rows, start=2):
        rows_seen += 1
        encoded = row.get(POLYLINE_COL)
        if _is_blank(encoded):
            skipped_no_geometry += 1
            continue

        sport = normalize_activity_type(row.get(TYPE_COL))
        bucket = buckets.setdefault(sport, [])

        try:
            route = decode_polyline(str(encoded).strip(), precision)
        except GeometryDecodeError as exc:
            skipped_bad_geometry += 1
            LOGGER.warning(
                "Skipping row %d (%s): invalid polyline: %s", row_number, sport, exc
            )
            continue

        start_date = _parse_start_date(row.get(START_DATE_COL))
        if start_date is None:
            skipped_no_date += 1
            LOGGER.debug(
                "Dropping row %d (%s): missing or invalid start date %r",
                row_number,
                sport,
                row.get(START_DATE_COL),
            )
            continue

        points = tuple(route)
        bucket.append(
            ActivityRecord(
                activity_type=sport,
                start_date=start_date,
                distance_m=_coerce_float(row.get(DISTANCE_COL)),
                elevation_gain_m=_coerce_float(row.get(ELEVATION_COL)),
                moving_time_s=_coerce_float(row.get(MOVING_TIME_COL)),
                country=_clean_text(row.get(COUNTRY_COL)),
                name=_clean_text(row.get(NAME_COL)),
                route=points or None,
                bounds=route_bounds(points),
            )
        )

    if not register_undated_types:
        buckets = {sport: records for sport, records in buckets.items() if records}

    stats = IngestionStats(
        rows_seen=rows_seen,
        stored=sum(len(records) for records in buckets.values()),
        skipped_no_geometry=skipped_no_geometry,
        skipped_bad_geometry=skipped_bad_geometry,
        skipped_no_date=skipped_no_date,
    )
    LOGGER.info(
        "Ingested %d of %d rows across %d activity types "
        "(no route=%d, bad route=%d, no date=%d)",
        stats.stored,
        stats.rows_seen,
        len(buckets),
        stats.skipped_no_geometry,
        stats.skipped_bad_geometry,
        stats.skipped_no_date,
    )
    return ActivityStore(buckets, stats)


def _frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if POLYLINE_COL not in df.columns:
        LOGGER.warning(
            "Column '%s' missing; every row will be skipped. Present: %s",
            POLYLINE_COL,
            list(df.columns),
        )
    return df.to_dict(orient="records")


def _read_csv(buffer: Any, label: str) -> List[Dict[str, Any]]:
    try:
        df = pd.read_csv(buffer, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        LOGGER.warning("Activity table %s is empty", label)
        return []
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
        raise TableFormatError(f"Unable to parse activity table {label}: {exc}") from exc
    return _frame_to_rows(df)


def read_activity_table(source: PathInput | IO[Any]) -> List[Dict[str, Any]]:
    """Read a CSV export from a path or an open file into header-keyed rows.

    Raises:
        DataLoadError: If the path does not exist or cannot be opened.
        TableFormatError: If the content is not valid CSV.
    """

    if hasattr(source, "read"):
        return _read_csv(source, getattr(source, "name", "<upload>"))
    path = Path(source)  # type: ignore[arg-type]
    if not path.is_file():
        raise DataLoadError(f"Activity export not found: {path}")
    try:
        return _read_csv(path, str(path))
    except OSError as exc:
        raise DataLoadError(f"Unable to read activity export {path}: {exc}") from exc


def parse_activity_csv(content: str | bytes) -> List[Dict[str, Any]]:
    """Parse CSV content already held in memory."""

    buffer: IO[Any]
    if isinstance(content, bytes):
        buffer = io.BytesIO(content)
    else:
        buffer = io.StringIO(content)
    return _read_csv(buffer, "<memory>")


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def fetch_table_text(source: PathInput) -> str:
    """Return the raw text of the bundled default export.

    URLs are fetched once with ``requests`` (no retry); anything else is read
    from disk.

    Raises:
        DataLoadError: On network failures, non-2xx responses or missing files.
    """

    source_str = str(source)
    if _is_url(source_str):
        LOGGER.info("Loading default data from: %s", source_str)
        try:
            response = requests.get(source_str, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DataLoadError(
                f"Could not load default file {source_str}: {exc}"
            ) from exc
        return response.text
    path = Path(source_str)
    LOGGER.info("Loading default data from: %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Could not load default file {path}: {exc}") from exc


__all__ = [
    "ingest",
    "read_activity_table",
    "parse_activity_csv",
    "fetch_table_text",
    "POLYLINE_COL",
    "TYPE_COL",
    "ELEVATION_COL",
    "DISTANCE_COL",
    "MOVING_TIME_COL",
    "START_DATE_COL",
    "COUNTRY_COL",
    "NAME_COL",
]
