"""View coordinator: applies filter commands and refreshes views in order.

A full render runs three steps in a fixed order:

1. ``FILTERING``: query with the type and date filters only, redraw routes
   and heatmap, then fit the map to the drawn routes.
2. ``RENDERING``: read the viewport the fit produced.
3. Recompute every viewport-dependent view with that viewport and push the
   monthly series to the chart.

The fit in step 1 moves the map, which fires a settle event. Events that
arrive outside ``IDLE`` are recorded and dropped, so a filter-driven move
never re-enters step 1. Settle events that arrive while ``IDLE`` come from
the user and refresh the views only.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Deque, Optional, Sequence, Tuple, Union

from .aggregation import (
    GeographicSummary,
    MonthlySeries,
    PersonalBests,
    SummaryTotals,
    TrainingConsistency,
    geographic_summary,
    monthly_series,
    personal_bests,
    summarize,
    training_consistency,
)
from .chart import ChartWidget
from .config import STRATEGIC_KPIS_ENABLED
from .filtering import query
from .geometry import Bounds, union_bounds
from .heatmap import density_points
from .map_view import MapWidget, ViewportEvent, ViewportOrigin
from .models import ALL_ACTIVITY_TYPES, FilteredActivity, FilterState
from .store import ActivityStore, StorePublisher


class CoordinatorState(Enum):
    IDLE = "idle"
    FILTERING = "filtering"
    RENDERING = "rendering"


@dataclass(frozen=True, slots=True)
class SelectActivityType:
    activity_type: str


@dataclass(frozen=True, slots=True)
class SetDateStart:
    value: Optional[date]


@dataclass(frozen=True, slots=True)
class SetDateEnd:
    value: Optional[date]


@dataclass(frozen=True, slots=True)
class SetDateRange:
    start: Optional[date]
    end: Optional[date]


@dataclass(frozen=True, slots=True)
class ResetFilters:
    pass


@dataclass(frozen=True, slots=True)
class _StoreReplaced:
    pass


Command = Union[
    SelectActivityType, SetDateStart, SetDateEnd, SetDateRange, ResetFilters
]


@dataclass(frozen=True, slots=True)
class DashboardViews:
    """Everything rendered for one filter state and viewport."""

    filters: FilterState
    viewport: Bounds
    activities: Tuple[FilteredActivity, ...]
    totals: SummaryTotals
    bests: PersonalBests
    monthly: MonthlySeries
    geography: GeographicSummary
    consistency: Optional[TrainingConsistency] = None


class ViewCoordinator:
    def __init__(
        self,
        publisher: StorePublisher,
        map_widget: MapWidget,
        chart: ChartWidget | None = None,
        *,
        strategic_kpis: bool = STRATEGIC_KPIS_ENABLED,
    ) -> None:
        self._log = logging.getLogger(self.__class__.__name__)
        self._publisher = publisher
        self._map = map_widget
        self._chart = chart
        self._strategic_kpis = strategic_kpis
        self._state = CoordinatorState.IDLE
        self._filters = FilterState()
        self._views: Optional[DashboardViews] = None
        self._options = publisher.store.selector_options()
        self._pending: Deque[Union[Command, _StoreReplaced]] = deque()
        self.layout_passes = 0
        self.view_refreshes = 0
        self.suppressed_viewport_events = 0
        publisher.subscribe(self._on_store_published)
        map_widget.subscribe(self._on_viewport_settled)

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def views(self) -> Optional[DashboardViews]:
        return self._views

    @property
    def activity_type_options(self) -> Sequence[str]:
        return list(self._options)

    def dispatch(self, command: Command) -> Optional[DashboardViews]:
        """Apply a filter command; commands arriving mid-cycle run afterwards."""

        if self._state is not CoordinatorState.IDLE:
            self._log.debug("Queueing %r while %s", command, self._state.value)
            self._pending.append(command)
            return None
        self._apply(command)
        self._drain()
        return self._views

    def _apply(self, command: Union[Command, _StoreReplaced]) -> None:
        if isinstance(command, SelectActivityType):
            self._filters = replace(self._filters, activity_type=command.activity_type)
        elif isinstance(command, SetDateStart):
            self._filters = replace(self._filters, date_start=command.value)
        elif isinstance(command, SetDateEnd):
            self._filters = replace(self._filters, date_end=command.value)
        elif isinstance(command, SetDateRange):
            self._filters = replace(
                self._filters, date_start=command.start, date_end=command.end
            )
        elif isinstance(command, ResetFilters):
            self._filters = FilterState()
            self._state = CoordinatorState.FILTERING
            try:
                self._map.reset_view()
            finally:
                self._state = CoordinatorState.IDLE
        elif isinstance(command, _StoreReplaced):
            self._filters = replace(self._filters, activity_type=ALL_ACTIVITY_TYPES)
        else:
            raise TypeError(f"Unsupported command: {command!r}")
        self._render_all()

    def _drain(self) -> None:
        while self._pending and self._state is CoordinatorState.IDLE:
            self._apply(self._pending.popleft())

    def _render_all(self) -> None:
        store = self._publisher.store
        filters = self._filters
        self._state = CoordinatorState.FILTERING
        try:
            visible = query(store, filters.activity_type, None, filters.date_range)
            self._draw_routes(visible)
            self.layout_passes += 1
            self._state = CoordinatorState.RENDERING
            viewport = self._map.get_bounds()
            self._refresh_views(store, viewport)
        finally:
            self._state = CoordinatorState.IDLE

    def _draw_routes(self, visible: Sequence[FilteredActivity]) -> None:
        self._map.clear_routes()
        routes = []
        for activity in visible:
            if not activity.record.route:
                continue
            self._map.add_route(activity)
            routes.append(activity.record.route)
        self._map.set_heat_points(density_points(routes))
        fitted = union_bounds(activity.record.bounds for activity in visible)
        if fitted is not None:
            self._map.fit_bounds(fitted)
        self._log.debug("Drew %d routes; fitted bounds=%s", len(routes), fitted)

    def _refresh_views(self, store: ActivityStore, viewport: Bounds) -> None:
        filters = self._filters
        activities = query(store, filters.activity_type, viewport, filters.date_range)
        monthly = monthly_series(activities, filters.activity_type)
        if self._chart is not None:
            self._chart.update(monthly.label, monthly.values)
        self._views = DashboardViews(
            filters=filters,
            viewport=viewport,
            activities=tuple(activities),
            totals=summarize(activities),
            bests=personal_bests(activities),
            monthly=monthly,
            geography=geographic_summary(activities),
            consistency=(
                training_consistency(activities) if self._strategic_kpis else None
            ),
        )
        self.view_refreshes += 1
        self._log.debug(
            "Refreshed views: type=%s activities=%d viewport=%s",
            filters.activity_type,
            len(activities),
            viewport,
        )

    def _on_viewport_settled(self, event: ViewportEvent) -> None:
        if self._state is not CoordinatorState.IDLE:
            # Filter-driven move; the running cycle reads the viewport itself.
            self.suppressed_viewport_events += 1
            return
        if event.origin is ViewportOrigin.PROGRAMMATIC:
            self._log.debug("Programmatic viewport change outside a render cycle")
        self._state = CoordinatorState.RENDERING
        try:
            self._refresh_views(self._publisher.store, event.bounds)
        finally:
            self._state = CoordinatorState.IDLE
        self._drain()

    def _on_store_published(self, store: ActivityStore) -> None:
        self._options = store.selector_options()
        self._log.info("Activity types available: %s", ", ".join(self._options))
        if self._state is not CoordinatorState.IDLE:
            self._pending.append(_StoreReplaced())
            return
        self._apply(_StoreReplaced())
        self._drain()


__all__ = [
    "Command",
    "CoordinatorState",
    "DashboardViews",
    "ResetFilters",
    "SelectActivityType",
    "SetDateEnd",
    "SetDateRange",
    "SetDateStart",
    "ViewCoordinator",
]
