"""Tests for the aggregate views."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from strava_dashboard.activity_types import MonthlyMetric, metric_for_type
from strava_dashboard.aggregation import (
    NO_ACTIVITIES_MESSAGE,
    PACE_PLACEHOLDER,
    format_hms,
    format_pace,
    geographic_summary,
    monthly_series,
    personal_bests,
    summarize,
    training_consistency,
)
from strava_dashboard.filtering import query


# --- Summary totals ---------------------------------------------------
def test_summary_of_empty_selection_uses_sentinels() -> None:
    totals = summarize([])
    assert totals.count == 0
    assert totals.avg_speed_kmh == 0.0
    assert totals.avg_pace_s_per_km is None
    assert format_pace(totals.avg_pace_s_per_km) == PACE_PLACEHOLDER
    assert totals.as_row()["Avg Pace (min/km)"] == "--:--"
    assert not totals.has_data


def test_summary_totals_and_derived_rates(make_activity) -> None:
    totals = summarize(
        [
            make_activity(distance=6000, elevation=30, moving_time=1800),
            make_activity(distance=4000, elevation=20, moving_time=1200),
        ]
    )
    assert totals.count == 2
    assert totals.total_km == pytest.approx(10.0)
    assert totals.total_elevation_m == pytest.approx(50.0)
    assert totals.total_hours == pytest.approx(3000 / 3600)
    assert totals.avg_pace_s_per_km == pytest.approx(300.0)
    assert totals.avg_speed_kmh == pytest.approx(12.0)
    assert format_pace(totals.avg_pace_s_per_km) == "5:00"


def test_distance_without_time_has_zero_speed(make_activity) -> None:
    totals = summarize([make_activity(distance=5000)])
    assert totals.avg_speed_kmh == 0.0
    assert totals.avg_pace_s_per_km == 0.0
    assert format_pace(totals.avg_pace_s_per_km) == PACE_PLACEHOLDER


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "00:00"), (59.6, "01:00"), (754, "12:34"), (3600, "01:00:00"), (45296, "12:34:56")],
)
def test_format_hms(seconds: float, expected: str) -> None:
    assert format_hms(seconds) == expected


def test_format_pace_rolls_seconds_over() -> None:
    assert format_pace(359.7) == "6:00"
    assert format_pace(float("inf")) == PACE_PLACEHOLDER
    assert format_pace(-1) == PACE_PLACEHOLDER


# --- Personal bests ---------------------------------------------------
def test_personal_bests_empty_selection() -> None:
    bests = personal_bests([])
    assert bests.has_data is False
    assert bests.message == NO_ACTIVITIES_MESSAGE
    assert bests.rows()[0]["PB Type"] == NO_ACTIVITIES_MESSAGE


def test_personal_bests_tie_keeps_first(make_activity) -> None:
    first = make_activity(distance=21100, moving_time=6000, name="First Half")
    second = make_activity(distance=21100, moving_time=7000, name="Second Half")
    bests = personal_bests([first, second])
    assert bests.longest_distance is not None
    assert bests.longest_distance.name == "First Half"
    assert bests.longest_duration is not None
    assert bests.longest_duration.name == "Second Half"
    assert bests.longest_duration.value == 7000


def test_personal_best_name_falls_back_to_date(make_activity) -> None:
    bests = personal_bests(
        [make_activity(start=datetime(2024, 5, 17, 9), distance=3000, moving_time=900)]
    )
    assert bests.longest_distance.name == "2024-05-17"
    rows = bests.rows()
    assert rows[0]["Value"] == "3.00 km"
    assert rows[1]["Value"] == "15:00"


def test_personal_bests_all_zero_report_placeholders(make_activity) -> None:
    bests = personal_bests([make_activity(), make_activity()])
    assert bests.has_data is True
    assert bests.longest_distance is None
    assert bests.rows()[0]["Date"] == "--"


# --- Monthly series ---------------------------------------------------
@pytest.mark.parametrize(
    ("activity_type", "metric"),
    [
        ("all", MonthlyMetric.COUNT),
        ("Ride", MonthlyMetric.ELEVATION),
        ("Hike", MonthlyMetric.ELEVATION),
        ("GravelRide", MonthlyMetric.ELEVATION),
        ("Run", MonthlyMetric.DISTANCE),
        ("Walk", MonthlyMetric.DISTANCE),
        ("StandUpPaddling", MonthlyMetric.MOVING_TIME),
        ("Snowboard", MonthlyMetric.MOVING_TIME),
        ("Swim", MonthlyMetric.COUNT),
    ],
)
def test_metric_mapping(activity_type: str, metric: MonthlyMetric) -> None:
    assert metric_for_type(activity_type) is metric


def test_run_september_bucket_is_distance_in_km(sample_store) -> None:
    runs = query(sample_store, "Run")
    series = monthly_series(runs, "Run")
    september = [
        a.record.distance_m for a in runs if a.record.start_date.month == 9
    ]
    assert series.label == "Distance (km)"
    assert series.value_for(9) == round(sum(september) / 1000, 1)
    assert series.value_for(9) == 30.0
    assert len(series.values) == 12


def test_all_counts_activities_across_years(sample_store) -> None:
    series = monthly_series(query(sample_store, "all"), "all")
    assert series.label == "Activity Frequency (Count)"
    assert series.value_for(9) == 4.0
    assert series.value_for(6) == 1.0
    assert sum(series.values) == 5.0


def test_moving_time_converted_to_hours(make_activity) -> None:
    series = monthly_series(
        [
            make_activity("Snowboard", datetime(2024, 2, 1), moving_time=5400),
            make_activity("Snowboard", datetime(2023, 2, 3), moving_time=1800),
        ],
        "Snowboard",
    )
    assert series.label == "Moving Time (hours)"
    assert series.value_for(2) == 2.0


def test_elevation_rounded_to_one_decimal(make_activity) -> None:
    series = monthly_series(
        [make_activity("Ride", datetime(2024, 7, 1), elevation=123.456)], "Ride"
    )
    assert series.value_for(7) == 123.5
    assert series.has_data


def test_empty_series_has_twelve_zeros() -> None:
    series = monthly_series([], "Run")
    assert series.values == (0.0,) * 12
    assert not series.has_data


# --- Geographic cardinality ---------------------------------------------
def test_city_proxy_skips_generic_activity_names(make_activity) -> None:
    summary = geographic_summary(
        [
            make_activity(name="Activity 1", country="FR"),
            make_activity(name="Paris Run", country="FR"),
            make_activity(name="Paris Walk", country="FR"),
        ]
    )
    assert summary.country_count == 1
    assert summary.city_count == 1
    assert summary.city_proxies == (("FR", "Paris"),)


def test_geography_ignores_blank_countries_and_names(make_activity) -> None:
    summary = geographic_summary(
        [
            make_activity(name=None, country="  "),
            make_activity(name="ACTIVITY", country="GB"),
            make_activity(name="Lyon Ride", country="FR"),
            make_activity(name="Lyon Ride", country="CA"),
        ]
    )
    assert summary.countries == ("GB", "FR", "CA")
    assert summary.city_count == 2


def test_geography_empty() -> None:
    summary = geographic_summary([])
    assert summary.country_count == 0
    assert summary.city_count == 0
    assert not summary.has_data


# --- Training consistency -----------------------------------------------
def test_training_consistency_weeks_and_trend(make_activity) -> None:
    latest = datetime(2024, 3, 31, 8)
    acts = [
        make_activity(start=latest, distance=5000),
        make_activity(start=latest - timedelta(days=3), distance=5000),
        make_activity(start=latest - timedelta(days=10), distance=5000),
        make_activity(start=latest - timedelta(days=40), distance=10000),
        make_activity(start=latest - timedelta(days=100), distance=50000),
    ]
    report = training_consistency(acts, weeks=12, trend_days=30)
    assert report is not None
    assert report.latest_date == latest
    assert report.active_week_indices == frozenset({0, 1, 5})
    assert report.consistency_pct == pytest.approx(25.0)
    assert report.consistency_rating == "poor"
    assert report.volume_recent_m == 15000
    assert report.volume_previous_m == 10000
    assert report.volume_trend_pct == pytest.approx(50.0)
    assert report.trend_direction == "up"
    assert report.as_row()["Volume Trend (30 days)"] == "+50.0%"


def test_training_consistency_without_previous_volume(make_activity) -> None:
    report = training_consistency([make_activity(distance=1000)])
    assert report.volume_trend_pct == 0.0
    assert report.trend_direction == "flat"
    assert training_consistency([]) is None
