"""Strava activity dashboard package."""

from .main import main
from .models import ActivityRecord, FilteredActivity, FilterState
from .pipeline import Dashboard, DashboardConfig
from .errors import DataLoadError, GeometryDecodeError, TableFormatError

__all__ = [
    "main",
    "ActivityRecord",
    "FilteredActivity",
    "FilterState",
    "Dashboard",
    "DashboardConfig",
    "DataLoadError",
    "GeometryDecodeError",
    "TableFormatError",
]
