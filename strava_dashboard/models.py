from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from .geometry import Bounds, LatLon

ALL_ACTIVITY_TYPES = "all"


@dataclass(frozen=True, slots=True)
class ActivityRecord:
    activity_type: str
    start_date: datetime
    distance_m: float = 0.0
    elevation_gain_m: float = 0.0
    moving_time_s: float = 0.0
    country: Optional[str] = None
    name: Optional[str] = None
    # Route and its bounding box travel with the metadata, never separately.
    route: Optional[Tuple[LatLon, ...]] = None
    bounds: Optional[Bounds] = None


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar-date window; either side may be open."""

    start: Optional[date] = None
    end: Optional[date] = None

    def contains(self, moment: datetime | date) -> bool:
        day = moment.date() if isinstance(moment, datetime) else moment
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


@dataclass(frozen=True, slots=True)
class FilterState:
    activity_type: str = ALL_ACTIVITY_TYPES
    date_start: Optional[date] = None
    date_end: Optional[date] = None

    @property
    def date_range(self) -> DateRange:
        return DateRange(start=self.date_start, end=self.date_end)


@dataclass(frozen=True, slots=True)
class FilteredActivity:
    record: ActivityRecord
    sport: str
    original_index: int
