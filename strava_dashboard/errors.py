"""Central error types used across the application."""

from __future__ import annotations


class DashboardError(RuntimeError):
    """Base error for dashboard failures."""


class GeometryDecodeError(DashboardError, ValueError):
    """Raised when an encoded route polyline is malformed or truncated."""


class TableFormatError(DashboardError):
    """Raised when the activity export cannot be parsed into header-keyed rows."""


class DataLoadError(DashboardError):
    """Raised when the bundled activity export cannot be fetched or read."""


__all__ = [
    "DashboardError",
    "GeometryDecodeError",
    "TableFormatError",
    "DataLoadError",
]
