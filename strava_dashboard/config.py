"""Central configuration for the activity dashboard.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Overrides are read from environment variables
(optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Input/Output
# ---------------------------------------------------------------------------
# Bundled activity export loaded at startup. Local path or http(s) URL.
DEFAULT_DATA_SOURCE = os.getenv("DASHBOARD_DATA_SOURCE", "data/activities.csv")

# Output stem for the workbook report and the HTML map.
OUTPUT_FILE = os.getenv("DASHBOARD_OUTPUT_FILE", "activity_dashboard")

# Append _YYYYMMDD_HHMMSS to the output names when True.
OUTPUT_FILE_TIMESTAMP_ENABLED = _env_bool("DASHBOARD_OUTPUT_TIMESTAMP", True)

# Request timeout in seconds when the default source is a URL. No retries.
REQUEST_TIMEOUT = _env_int("DASHBOARD_REQUEST_TIMEOUT", 15)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------
# Decimal digits encoded in summary polylines (Strava and Google use 5).
POLYLINE_PRECISION = _env_int("POLYLINE_PRECISION", 5)

# Rows that carry a route but no usable start date are dropped. When True the
# activity type of such rows is still registered (empty bucket, selectable).
REGISTER_UNDATED_ACTIVITY_TYPES = _env_bool("REGISTER_UNDATED_ACTIVITY_TYPES", True)

# Label used when a row has no activity type.
FALLBACK_ACTIVITY_TYPE = "Other"

# strftime pattern for dates shown in tables, tooltips and fallback names.
DATE_DISPLAY_FORMAT = os.getenv("DATE_DISPLAY_FORMAT", "%Y-%m-%d")


# ---------------------------------------------------------------------------
# Map rendering
# ---------------------------------------------------------------------------
MAP_TILES = "CartoDB positron"
ROUTE_COLOR = "blue"
ROUTE_WEIGHT = 2
ROUTE_OPACITY = 0.6

# Pixel padding applied by Leaflet when fitting to the route bounds.
MAP_FIT_PADDING = (20, 20)

# Viewport used before any data is drawn and after a filter reset.
WORLD_BOUNDS = (-85.0, -180.0, 85.0, 180.0)

HEATMAP_RADIUS = 8
HEATMAP_BLUR = 7
HEATMAP_MAX_ZOOM = 17
HEATMAP_MIN_OPACITY = 0.4
HEATMAP_GRADIENT = {0.0: "blue", 0.25: "cyan", 0.5: "lime", 0.75: "yellow", 1.0: "red"}

# Route points are merged into one heat point after rounding to this many
# decimals; intensity never drops below HEATMAP_MIN_INTENSITY.
HEATMAP_KEY_DECIMALS = _env_int("HEATMAP_KEY_DECIMALS", 5)
HEATMAP_MIN_INTENSITY = _env_float("HEATMAP_MIN_INTENSITY", 0.3)


# ---------------------------------------------------------------------------
# Optional training consistency view
# ---------------------------------------------------------------------------
# Off by default; the geographic summary is the canonical secondary view.
STRATEGIC_KPIS_ENABLED = _env_bool("STRATEGIC_KPIS_ENABLED", False)
CONSISTENCY_WEEKS = _env_int("CONSISTENCY_WEEKS", 12)
VOLUME_TREND_DAYS = _env_int("VOLUME_TREND_DAYS", 30)


# ---------------------------------------------------------------------------
# Workbook report
# ---------------------------------------------------------------------------
# Column widths follow the longest value in each report column.
EXCEL_AUTOSIZE_COLUMNS = _env_bool("REPORT_AUTOSIZE_COLUMNS", True)
EXCEL_AUTOSIZE_MAX_WIDTH = 60
EXCEL_AUTOSIZE_MIN_WIDTH = 8
EXCEL_AUTOSIZE_PADDING = 2
# The Activities sheet can be long; above this many rows widths stay default.
EXCEL_AUTOSIZE_MAX_ROWS = _env_int("REPORT_AUTOSIZE_MAX_ROWS", 10000)
