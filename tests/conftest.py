"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable activity rows, stores and
record factories so tests do not rebuild exports by hand.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from strava_dashboard.geometry import encode_polyline, route_bounds
from strava_dashboard.ingestion import ingest
from strava_dashboard.models import ActivityRecord, FilteredActivity

PARIS_ROUTE = [(48.85, 2.35), (48.86, 2.36)]
PARIS_LOOP = [(48.80, 2.30), (48.90, 2.40)]
LONDON_ROUTE = [(51.50, -0.12), (51.51, -0.10)]


# --- Factory helpers -------------------------------------------------
def make_row(
    sport: str,
    start: str,
    *,
    distance: object = 0,
    elevation: object = 0,
    moving_time: object = 0,
    route: Optional[Sequence[Tuple[float, float]]] = PARIS_ROUTE,
    name: str = "",
    country: str = "",
    polyline: Optional[str] = None,
) -> dict:
    if polyline is None:
        polyline = encode_polyline(route) if route is not None else ""
    return {
        "name": name,
        "sport_type": sport,
        "distance": str(distance),
        "moving_time": str(moving_time),
        "total_elevation_gain": str(elevation),
        "start_date_local": start,
        "location_country": country,
        "map.summary_polyline": polyline,
    }


def make_sample_rows() -> List[dict]:
    return [
        make_row("Run", "2023-09-05T07:00:00Z", distance=10000, elevation=50,
                 moving_time=3000, route=PARIS_ROUTE, name="Paris Run", country="FR"),
        make_row("Run", "2023-09-20T07:00:00Z", distance=12000, elevation=80,
                 moving_time=3600, route=LONDON_ROUTE, name="London Run", country="GB"),
        make_row("Ride", "2023-06-10T09:00:00Z", distance=40000, elevation=600,
                 moving_time=5400, route=PARIS_LOOP, name="Paris Ride", country="FR"),
        make_row("Walk", "2024-09-02T12:00:00Z", distance=5000, elevation=20,
                 moving_time=3000, route=PARIS_ROUTE, name="Activity 1", country="FR"),
        make_row("Run", "2022-09-15T18:00:00Z", distance=8000, elevation=40,
                 moving_time=2400, route=LONDON_ROUTE, name="Morning Run", country="GB"),
        # No route: never stored, type never registered.
        make_row("Hike", "2023-05-01T08:00:00Z", distance=9000, route=None),
        # Route but no date: dropped, type still registered.
        make_row("Snowboard", "", distance=3000, moving_time=7200),
        # Truncated polyline: dropped.
        make_row("Run", "2023-09-21T07:00:00Z", distance=99999, polyline="_p~iF~ps|U_"),
    ]


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def sample_rows() -> List[dict]:
    return make_sample_rows()


@pytest.fixture
def sample_store(sample_rows):
    return ingest(sample_rows)


@pytest.fixture
def make_activity() -> Callable[..., FilteredActivity]:
    counter = {"index": 0}

    def _make(
        sport: str = "Run",
        start: datetime = datetime(2024, 1, 1, 8, 0),
        *,
        distance: float = 0.0,
        elevation: float = 0.0,
        moving_time: float = 0.0,
        name: Optional[str] = None,
        country: Optional[str] = None,
        route: Optional[Sequence[Tuple[float, float]]] = PARIS_ROUTE,
    ) -> FilteredActivity:
        points = tuple(route) if route else None
        record = ActivityRecord(
            activity_type=sport,
            start_date=start,
            distance_m=distance,
            elevation_gain_m=elevation,
            moving_time_s=moving_time,
            country=country,
            name=name,
            route=points,
            bounds=route_bounds(points),
        )
        activity = FilteredActivity(
            record=record, sport=sport, original_index=counter["index"]
        )
        counter["index"] += 1
        return activity

    return _make
