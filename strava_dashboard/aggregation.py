"""Aggregate views over a filtered activity set.

Pure transformations: every function takes the output of
:func:`strava_dashboard.filtering.query` and returns a value object. Nothing
here renders; callers hand the results to the map, chart or report writer.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from .activity_types import MonthlyMetric, metric_for_type
from .config import CONSISTENCY_WEEKS, DATE_DISPLAY_FORMAT, VOLUME_TREND_DAYS
from .models import ActivityRecord, FilteredActivity

MONTH_LABELS: Tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
PACE_PLACEHOLDER = "--:--"
NO_DATA_PLACEHOLDER = "--"
NO_ACTIVITIES_MESSAGE = "No activities found in the selected area."
CITY_PLACEHOLDER_WORD = "activity"


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------
def format_pace(seconds_per_km: Optional[float]) -> str:
    """Format a pace as ``M:SS``; undefined or non-positive pace shows ``--:--``."""

    if seconds_per_km is None or not math.isfinite(seconds_per_km):
        return PACE_PLACEHOLDER
    if seconds_per_km <= 0:
        return PACE_PLACEHOLDER
    mins, secs = divmod(int(round(seconds_per_km)), 60)
    return f"{mins}:{secs:02d}"


def format_hms(seconds: float) -> str:
    """Format a duration as ``HH:MM:SS``, or ``MM:SS`` below one hour."""

    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    mins, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{mins:02d}:{secs:02d}"
    return f"{mins:02d}:{secs:02d}"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return NO_DATA_PLACEHOLDER
    return value.strftime(DATE_DISPLAY_FORMAT)


def display_name(record: ActivityRecord) -> str:
    """Activity name, falling back to its date's display form."""

    return record.name or format_date(record.start_date)


def _records(activities: Sequence[FilteredActivity]) -> List[ActivityRecord]:
    return [activity.record for activity in activities]


# ---------------------------------------------------------------------------
# Summary totals
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SummaryTotals:
    count: int = 0
    total_distance_m: float = 0.0
    total_elevation_m: float = 0.0
    total_moving_time_s: float = 0.0

    @property
    def total_km(self) -> float:
        return self.total_distance_m / 1000.0

    @property
    def total_hours(self) -> float:
        return self.total_moving_time_s / 3600.0

    @property
    def avg_speed_kmh(self) -> float:
        """Average speed over moving time; ``0.0`` when no time was recorded."""

        hours = self.total_hours
        return self.total_km / hours if hours > 0 else 0.0

    @property
    def avg_pace_s_per_km(self) -> Optional[float]:
        """Seconds per kilometre; ``None`` when no distance was recorded."""

        if self.total_distance_m <= 0:
            return None
        return self.total_moving_time_s / self.total_km

    @property
    def has_data(self) -> bool:
        return self.count > 0

    def as_row(self) -> Dict[str, object]:
        return {
            "Activities": self.count,
            "Total Distance (km)": round(self.total_km, 1),
            "Total Elevation (m)": round(self.total_elevation_m),
            "Total Moving Time (h)": round(self.total_hours, 2),
            "Avg Pace (min/km)": format_pace(self.avg_pace_s_per_km),
            "Avg Speed (km/h)": round(self.avg_speed_kmh, 1),
        }


def summarize(activities: Sequence[FilteredActivity]) -> SummaryTotals:
    total_distance = 0.0
    total_elevation = 0.0
    total_time = 0.0
    for record in _records(activities):
        total_distance += record.distance_m
        total_elevation += record.elevation_gain_m
        total_time += record.moving_time_s
    return SummaryTotals(
        count=len(activities),
        total_distance_m=total_distance,
        total_elevation_m=total_elevation,
        total_moving_time_s=total_time,
    )


# ---------------------------------------------------------------------------
# Personal bests
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PersonalBest:
    label: str
    value: float
    date: datetime
    name: str
    sport: str


@dataclass(frozen=True, slots=True)
class PersonalBests:
    """Longest distance and longest duration in the filtered set.

    ``has_data`` is ``False`` for an empty selection. A best may still be
    ``None`` when every activity recorded zero for that metric.
    """

    has_data: bool = False
    longest_distance: Optional[PersonalBest] = None
    longest_duration: Optional[PersonalBest] = None
    message: Optional[str] = NO_ACTIVITIES_MESSAGE

    def rows(self) -> List[Dict[str, object]]:
        if not self.has_data:
            return [{"PB Type": self.message, "Value": "", "Date": "", "Activity Name": ""}]
        distance = self.longest_distance
        duration = self.longest_duration
        return [
            {
                "PB Type": "Longest Distance",
                "Value": f"{(distance.value if distance else 0.0) / 1000.0:.2f} km",
                "Date": format_date(distance.date) if distance else NO_DATA_PLACEHOLDER,
                "Activity Name": distance.name if distance else NO_DATA_PLACEHOLDER,
            },
            {
                "PB Type": "Longest Duration",
                "Value": format_hms(duration.value if duration else 0.0),
                "Date": format_date(duration.date) if duration else NO_DATA_PLACEHOLDER,
                "Activity Name": duration.name if duration else NO_DATA_PLACEHOLDER,
            },
        ]


def personal_bests(activities: Sequence[FilteredActivity]) -> PersonalBests:
    if not activities:
        return PersonalBests()
    best_distance: Optional[FilteredActivity] = None
    best_duration: Optional[FilteredActivity] = None
    max_distance = 0.0
    max_duration = 0.0
    for activity in activities:
        record = activity.record
        # Strict comparison: on ties the earlier activity keeps the record.
        if record.distance_m > max_distance:
            max_distance = record.distance_m
            best_distance = activity
        if record.moving_time_s > max_duration:
            max_duration = record.moving_time_s
            best_duration = activity
    return PersonalBests(
        has_data=True,
        longest_distance=_to_best("Longest Distance", best_distance, max_distance),
        longest_duration=_to_best("Longest Duration", best_duration, max_duration),
        message=None,
    )


def _to_best(
    label: str, activity: Optional[FilteredActivity], value: float
) -> Optional[PersonalBest]:
    if activity is None:
        return None
    return PersonalBest(
        label=label,
        value=value,
        date=activity.record.start_date,
        name=display_name(activity.record),
        sport=activity.sport,
    )


# ---------------------------------------------------------------------------
# Monthly series
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MonthlySeries:
    """Twelve month-of-year buckets; years are folded together."""

    label: str
    metric: MonthlyMetric
    values: Tuple[float, ...]
    months: Tuple[str, ...] = MONTH_LABELS

    @property
    def has_data(self) -> bool:
        return any(value for value in self.values)

    def value_for(self, month: int) -> float:
        """Value for a calendar month numbered 1-12."""

        return self.values[month - 1]


def monthly_series(
    activities: Sequence[FilteredActivity], activity_type: str
) -> MonthlySeries:
    metric = metric_for_type(activity_type)
    totals = [0.0] * 12
    for record in _records(activities):
        totals[record.start_date.month - 1] += metric.raw_value(record)
    return MonthlySeries(
        label=metric.label,
        metric=metric,
        values=tuple(metric.to_display(total) for total in totals),
    )


# ---------------------------------------------------------------------------
# Geographic cardinality
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GeographicSummary:
    """Distinct countries and city proxies.

    The city proxy is the first word of the activity name paired with its
    country. It is an approximation: exports carry no city column, and names
    such as "Morning Run" proxy to "Morning".
    """

    countries: Tuple[str, ...] = ()
    city_proxies: Tuple[Tuple[str, str], ...] = ()

    @property
    def country_count(self) -> int:
        return len(self.countries)

    @property
    def city_count(self) -> int:
        return len(self.city_proxies)

    @property
    def has_data(self) -> bool:
        return bool(self.countries or self.city_proxies)


def _city_proxy(record: ActivityRecord) -> Optional[str]:
    if not record.name:
        return None
    words = record.name.split()
    if not words:
        return None
    first = words[0]
    if first.lower() == CITY_PLACEHOLDER_WORD:
        return None
    return first


def geographic_summary(activities: Sequence[FilteredActivity]) -> GeographicSummary:
    countries: Dict[str, None] = {}
    cities: Dict[Tuple[str, str], None] = {}
    for record in _records(activities):
        country = (record.country or "").strip()
        if country:
            countries.setdefault(country, None)
        proxy = _city_proxy(record)
        if proxy is not None:
            cities.setdefault((country, proxy), None)
    return GeographicSummary(countries=tuple(countries), city_proxies=tuple(cities))


# ---------------------------------------------------------------------------
# Training consistency (optional view)
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TrainingConsistency:
    latest_date: datetime
    active_weeks: int
    weeks_analyzed: int
    consistency_pct: float
    volume_recent_m: float
    volume_previous_m: float
    volume_trend_pct: float
    active_week_indices: FrozenSet[int] = frozenset()

    @property
    def consistency_rating(self) -> str:
        if self.consistency_pct >= 80:
            return "good"
        if self.consistency_pct >= 50:
            return "fair"
        return "poor"

    @property
    def trend_direction(self) -> str:
        if self.volume_trend_pct > 5:
            return "up"
        if self.volume_trend_pct < -5:
            return "down"
        return "flat"

    def as_row(self) -> Dict[str, object]:
        sign = "+" if self.volume_trend_pct >= 0 else ""
        return {
            "Latest Activity": format_date(self.latest_date),
            f"Consistency (last {self.weeks_analyzed} weeks)": f"{self.consistency_pct:.0f}%",
            "Consistency Rating": self.consistency_rating,
            f"Volume Trend ({VOLUME_TREND_DAYS} days)": f"{sign}{self.volume_trend_pct:.1f}%",
            "Trend Direction": self.trend_direction,
        }


def training_consistency(
    activities: Sequence[FilteredActivity],
    *,
    weeks: int = CONSISTENCY_WEEKS,
    trend_days: int = VOLUME_TREND_DAYS,
) -> Optional[TrainingConsistency]:
    """Weekly consistency and recent volume trend, anchored at the latest activity.

    Returns ``None`` for an empty selection.
    """

    records = _records(activities)
    if not records or weeks <= 0:
        return None
    latest = max(record.start_date for record in records)
    week = timedelta(weeks=1)
    active: Set[int] = set()
    for record in records:
        index = (latest - record.start_date) // week
        if 0 <= index < weeks:
            active.add(index)

    recent_start = latest - timedelta(days=trend_days)
    previous_start = latest - timedelta(days=2 * trend_days)
    recent = sum(r.distance_m for r in records if r.start_date >= recent_start)
    previous = sum(
        r.distance_m
        for r in records
        if previous_start <= r.start_date < recent_start
    )
    trend = ((recent - previous) / previous) * 100 if previous > 0 else 0.0
    return TrainingConsistency(
        latest_date=latest,
        active_weeks=len(active),
        weeks_analyzed=weeks,
        consistency_pct=len(active) / weeks * 100,
        volume_recent_m=recent,
        volume_previous_m=previous,
        volume_trend_pct=trend,
        active_week_indices=frozenset(active),
    )


__all__ = [
    "MONTH_LABELS",
    "PACE_PLACEHOLDER",
    "SummaryTotals",
    "PersonalBest",
    "PersonalBests",
    "MonthlySeries",
    "GeographicSummary",
    "TrainingConsistency",
    "summarize",
    "personal_bests",
    "monthly_series",
    "geographic_summary",
    "training_consistency",
    "format_pace",
    "format_hms",
    "format_date",
    "display_name",
]
