"""Utilities for classifying activity types."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Mapping

from .config import FALLBACK_ACTIVITY_TYPE
from .models import ALL_ACTIVITY_TYPES, ActivityRecord

__all__ = [
    "MonthlyMetric",
    "MONTHLY_METRIC_BY_TYPE",
    "metric_for_type",
    "normalize_activity_type",
]

_WHITESPACE = re.compile(r"\s+")


def normalize_activity_type(value: Any) -> str:
    """Return the type label with every whitespace character removed.

    Exports sometimes carry ``"Gravel Ride"`` and ``"GravelRide"`` for the same
    sport; stripping whitespace makes them one bucket. Missing or blank labels
    fall back to :data:`FALLBACK_ACTIVITY_TYPE`.
    """

    if value is None:
        return FALLBACK_ACTIVITY_TYPE
    if isinstance(value, float) and value != value:
        return FALLBACK_ACTIVITY_TYPE
    normalized = _WHITESPACE.sub("", str(value))
    return normalized or FALLBACK_ACTIVITY_TYPE


class MonthlyMetric(Enum):
    """Measurement plotted per month, with its chart label and display unit."""

    COUNT = ("Activity Frequency (Count)", 1.0)
    ELEVATION = ("Elevation Gained (m)", 1.0)
    DISTANCE = ("Distance (km)", 1000.0)
    MOVING_TIME = ("Moving Time (hours)", 3600.0)

    def __init__(self, label: str, divisor: float) -> None:
        self.label = label
        self.divisor = divisor

    def raw_value(self, record: ActivityRecord) -> float:
        if self is MonthlyMetric.COUNT:
            return 1.0
        if self is MonthlyMetric.ELEVATION:
            return record.elevation_gain_m
        if self is MonthlyMetric.DISTANCE:
            return record.distance_m
        return record.moving_time_s

    def to_display(self, raw_total: float) -> float:
        return round(raw_total / self.divisor, 1)


MONTHLY_METRIC_BY_TYPE: Mapping[str, MonthlyMetric] = {
    "Ride": MonthlyMetric.ELEVATION,
    "Hike": MonthlyMetric.ELEVATION,
    "GravelRide": MonthlyMetric.ELEVATION,
    "Run": MonthlyMetric.DISTANCE,
    "Walk": MonthlyMetric.DISTANCE,
    "StandUpPaddling": MonthlyMetric.MOVING_TIME,
    "Snowboard": MonthlyMetric.MOVING_TIME,
}


def metric_for_type(activity_type: str) -> MonthlyMetric:
    """Return the monthly metric for a selection; ``"all"`` and unmapped types count."""

    if activity_type == ALL_ACTIVITY_TYPES:
        return MonthlyMetric.COUNT
    return MONTHLY_METRIC_BY_TYPE.get(activity_type, MonthlyMetric.COUNT)
