"""Filter engine shared by the map layer and every aggregate view.

Keeping a single predicate here guarantees the routes drawn, the KPIs and
the chart all agree on which activities are visible.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .geometry import Bounds
from .models import ALL_ACTIVITY_TYPES, ActivityRecord, DateRange, FilteredActivity
from .store import ActivityStore


def _types_to_use(store: ActivityStore, activity_type: str) -> Sequence[str]:
    if activity_type == ALL_ACTIVITY_TYPES:
        return store.activity_types
    return (activity_type,)


def matches(
    record: ActivityRecord,
    bounds: Optional[Bounds] = None,
    date_range: Optional[DateRange] = None,
) -> bool:
    if date_range is not None and not date_range.contains(record.start_date):
        return False
    if bounds is not None:
        # Inclusion cannot be judged without a route.
        if record.bounds is None:
            return False
        if not record.bounds.intersects(bounds):
            return False
    return True


def query(
    store: ActivityStore,
    activity_type: str = ALL_ACTIVITY_TYPES,
    bounds: Optional[Bounds] = None,
    date_range: Optional[DateRange] = None,
) -> List[FilteredActivity]:
    """Return the activities visible under the given filters.

    Args:
        store: Snapshot to read from.
        activity_type: ``"all"`` or one type label. Unknown labels match nothing.
        bounds: Viewport rectangle. Routes whose bounding box intersects it are
            kept; ``None`` disables the spatial filter.
        date_range: Inclusive calendar-date window; ``None`` keeps every date.

    Returns:
        Matches ordered by type (store order) then ingestion order.
    """

    results: List[FilteredActivity] = []
    for sport in _types_to_use(store, activity_type):
        for index, record in enumerate(store.records(sport)):
            if not matches(record, bounds, date_range):
                continue
            results.append(
                FilteredActivity(record=record, sport=sport, original_index=index)
            )
    return results


__all__ = ["query", "matches"]
