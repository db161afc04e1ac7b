"""Tests for the view coordinator's render cycle and feedback suppression."""

from __future__ import annotations

from datetime import date

import pytest

from strava_dashboard.aggregation import summarize
from strava_dashboard.chart import MonthlyChart
from strava_dashboard.coordinator import (
    CoordinatorState,
    ResetFilters,
    SelectActivityType,
    SetDateEnd,
    SetDateRange,
    SetDateStart,
    ViewCoordinator,
)
from strava_dashboard.filtering import query
from strava_dashboard.geometry import Bounds
from strava_dashboard.ingestion import ingest
from strava_dashboard.map_view import FoliumMapWidget, world_bounds
from strava_dashboard.models import DateRange, FilterState
from strava_dashboard.store import StorePublisher

ALL_ROUTES = Bounds(south=48.80, west=-0.12, north=51.51, east=2.40)
PARIS_VIEW = Bounds(south=48.7, west=2.2, north=49.0, east=2.5)


def _assert_bounds(actual: Bounds, expected: Bounds) -> None:
    assert actual.south == pytest.approx(expected.south)
    assert actual.west == pytest.approx(expected.west)
    assert actual.north == pytest.approx(expected.north)
    assert actual.east == pytest.approx(expected.east)


@pytest.fixture
def wired(sample_rows):
    publisher = StorePublisher()
    map_widget = FoliumMapWidget()
    chart = MonthlyChart()
    coordinator = ViewCoordinator(publisher, map_widget, chart, strategic_kpis=True)
    publisher.publish(publisher.begin_load(), ingest(sample_rows))
    return coordinator, map_widget, chart, publisher


def test_publish_runs_one_layout_pass(wired) -> None:
    coordinator, map_widget, chart, _ = wired
    assert coordinator.state is CoordinatorState.IDLE
    assert coordinator.activity_type_options == ["all", "Run", "Ride", "Walk", "Snowboard"]
    assert coordinator.layout_passes == 1
    assert coordinator.view_refreshes == 1
    # The fit inside the filtering step must not trigger a second pass.
    assert coordinator.suppressed_viewport_events >= 1
    assert len(map_widget.routes) == 5
    assert map_widget.heat_visible
    _assert_bounds(map_widget.get_bounds(), ALL_ROUTES)
    assert chart.revision == 1
    assert chart.label == "Activity Frequency (Count)"


def test_views_match_fitted_viewport_query(wired) -> None:
    coordinator, map_widget, _, publisher = wired
    views = coordinator.views
    assert views is not None
    assert views.viewport == map_widget.get_bounds()
    expected = summarize(query(publisher.store, "all", None, DateRange()))
    assert views.totals == expected
    assert views.totals.count == 5
    assert views.geography.country_count == 2
    assert views.consistency is not None


def test_user_pan_refreshes_views_without_relayout(wired) -> None:
    coordinator, map_widget, chart, _ = wired
    map_widget.pan_to(PARIS_VIEW)
    views = coordinator.views
    assert coordinator.layout_passes == 1
    assert coordinator.view_refreshes == 2
    assert views.viewport == PARIS_VIEW
    assert [a.record.name for a in views.activities] == [
        "Paris Run",
        "Paris Ride",
        "Activity 1",
    ]
    # Routes outside the viewport stay drawn.
    assert len(map_widget.routes) == 5
    assert chart.revision == 2


def test_selecting_type_relayouts_and_refits(wired) -> None:
    coordinator, map_widget, chart, _ = wired
    views = coordinator.dispatch(SelectActivityType("Run"))
    assert coordinator.layout_passes == 2
    assert views is coordinator.views
    assert views.filters.activity_type == "Run"
    assert [a.sport for a in map_widget.routes] == ["Run", "Run", "Run"]
    _assert_bounds(
        map_widget.fitted_bounds,
        Bounds(south=48.85, west=-0.12, north=51.51, east=2.36),
    )
    assert chart.label == "Distance (km)"
    assert chart.values[8] == 30.0
    assert views.totals.total_distance_m == pytest.approx(30000)


def test_date_commands_narrow_the_selection(wired) -> None:
    coordinator, _, _, _ = wired
    coordinator.dispatch(SetDateStart(date(2023, 1, 1)))
    views = coordinator.dispatch(SetDateEnd(date(2023, 12, 31)))
    assert views.filters == FilterState("all", date(2023, 1, 1), date(2023, 12, 31))
    assert sorted(a.record.name for a in views.activities) == [
        "London Run",
        "Paris Ride",
        "Paris Run",
    ]


def test_empty_selection_keeps_previous_viewport(wired) -> None:
    coordinator, map_widget, _, _ = wired
    before = map_widget.get_bounds()
    views = coordinator.dispatch(SetDateRange(date(2030, 1, 1), None))
    assert views.totals.count == 0
    assert map_widget.routes == []
    assert not map_widget.heat_visible
    assert map_widget.get_bounds() == before
    assert views.bests.has_data is False


def test_reset_restores_defaults_and_world_view_then_refits(wired) -> None:
    coordinator, map_widget, _, _ = wired
    coordinator.dispatch(SelectActivityType("Ride"))
    coordinator.dispatch(SetDateRange(date(2023, 1, 1), date(2023, 6, 30)))
    suppressed = coordinator.suppressed_viewport_events
    views = coordinator.dispatch(ResetFilters())
    assert views.filters == FilterState()
    assert coordinator.suppressed_viewport_events >= suppressed + 2
    assert views.totals.count == 5
    _assert_bounds(map_widget.get_bounds(), ALL_ROUTES)
    assert map_widget.get_bounds() != world_bounds()


def test_new_store_resets_type_and_options(wired, sample_rows) -> None:
    coordinator, _, _, publisher = wired
    coordinator.dispatch(SelectActivityType("Ride"))
    publisher.publish(publisher.begin_load(), ingest(sample_rows[:2]))
    assert coordinator.activity_type_options == ["all", "Run"]
    assert coordinator.filters.activity_type == "all"
    assert coordinator.views.totals.count == 2


class _ReentrantChart(MonthlyChart):
    """Chart that issues a command the first time it is updated."""

    def __init__(self) -> None:
        super().__init__()
        self.coordinator = None
        self.dispatch_results = []

    def update(self, label, values) -> None:
        super().update(label, values)
        if self.coordinator is not None and not self.dispatch_results:
            self.dispatch_results.append(
                self.coordinator.dispatch(SelectActivityType("Ride"))
            )


def test_command_during_render_is_queued(sample_rows) -> None:
    publisher = StorePublisher()
    chart = _ReentrantChart()
    coordinator = ViewCoordinator(publisher, FoliumMapWidget(), chart)
    chart.coordinator = coordinator
    publisher.publish(publisher.begin_load(), ingest(sample_rows))
    assert chart.dispatch_results == [None]
    assert coordinator.filters.activity_type == "Ride"
    assert coordinator.layout_passes == 2
    assert coordinator.state is CoordinatorState.IDLE
    assert chart.label == "Elevation Gained (m)"


def test_strategic_view_off_by_default(sample_rows) -> None:
    publisher = StorePublisher()
    coordinator = ViewCoordinator(publisher, FoliumMapWidget())
    publisher.publish(publisher.begin_load(), ingest(sample_rows))
    assert coordinator.views.consistency is None


def test_chart_rejects_wrong_length() -> None:
    with pytest.raises(ValueError):
        MonthlyChart().update("Distance (km)", [1.0, 2.0])
