"""Excel writer for the dashboard views."""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd
from openpyxl.chart import BarChart, Reference
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .aggregation import format_date, format_hms
from .coordinator import DashboardViews
from .models import FilteredActivity

KPI_SHEET = "KPIs"
BESTS_SHEET = "Personal Bests"
MONTHLY_SHEET = "Monthly"
GEOGRAPHY_SHEET = "Geography"
CONSISTENCY_SHEET = "Consistency"
ACTIVITIES_SHEET = "Activities"
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"
CHART_ANCHOR = "D2"

PathInput = str | Path | PathLike[str]

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FFFF9161")
_THIN = Side(style="thin", color="FF000000")
HEADER_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)

LOGGER = logging.getLogger(__name__)


def _autosize(ws: Worksheet) -> None:
    from .config import (
        EXCEL_AUTOSIZE_COLUMNS,
        EXCEL_AUTOSIZE_MAX_ROWS,
        EXCEL_AUTOSIZE_MAX_WIDTH,
        EXCEL_AUTOSIZE_MIN_WIDTH,
        EXCEL_AUTOSIZE_PADDING,
    )

    if not EXCEL_AUTOSIZE_COLUMNS:
        return
    if ws.max_row > EXCEL_AUTOSIZE_MAX_ROWS:
        return
    for col_cells in ws.columns:
        col_letter = getattr(col_cells[0], "column_letter", None)
        if not col_letter:
            continue
        max_len = max(
            (len(str(cell.value)) for cell in col_cells if cell.value is not None),
            default=0,
        )
        ws.column_dimensions[col_letter].width = min(
            EXCEL_AUTOSIZE_MAX_WIDTH,
            max(EXCEL_AUTOSIZE_MIN_WIDTH, max_len + EXCEL_AUTOSIZE_PADDING),
        )


def _style_header_row(ws: Worksheet, max_col: int | None = None) -> None:
    max_col = max_col or ws.max_column
    for col_idx in range(1, max_col + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _write_sheet(
    writer: pd.ExcelWriter, sheet_name: str, rows: Sequence[Dict[str, Any]]
) -> Worksheet:
    df = pd.DataFrame(list(rows))
    if df.empty:
        df = pd.DataFrame({"Message": ["No data for the current selection."]})
    df.to_excel(writer, sheet_name=sheet_name, index=False)
    ws = writer.sheets[sheet_name]
    _style_header_row(ws, len(df.columns))
    _autosize(ws)
    LOGGER.debug("Wrote sheet %s rows=%d", sheet_name, len(df))
    return ws


def _kpi_rows(views: DashboardViews) -> List[Dict[str, Any]]:
    filters = views.filters
    row: Dict[str, Any] = {
        "Activity Type": filters.activity_type,
        "From": filters.date_start.isoformat() if filters.date_start else "",
        "To": filters.date_end.isoformat() if filters.date_end else "",
    }
    row.update(views.totals.as_row())
    geography = views.geography
    row["Countries"] = geography.country_count
    row["Cities (approx.)"] = geography.city_count
    return [row]


def _geography_rows(views: DashboardViews) -> List[Dict[str, Any]]:
    geography = views.geography
    if geography.city_proxies:
        return [
            {"Country": country, "City (approx.)": city}
            for country, city in geography.city_proxies
        ]
    return [{"Country": country, "City (approx.)": ""} for country in geography.countries]


def activity_rows(activities: Sequence[FilteredActivity]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for activity in activities:
        record = activity.record
        rows.append(
            {
                "Sport": activity.sport,
                "Date": record.start_date,
                "Name": record.name or "",
                "Country": record.country or "",
                "Distance (km)": round(record.distance_m / 1000.0, 2),
                "Elevation (m)": round(record.elevation_gain_m, 1),
                "Moving Time": format_hms(record.moving_time_s),
            }
        )
    return rows


def _add_monthly_chart(ws: Worksheet, views: DashboardViews) -> None:
    chart = BarChart()
    chart.type = "col"
    chart.title = views.monthly.label
    chart.y_axis.title = views.monthly.label
    chart.x_axis.title = "Month"
    data = Reference(ws, min_col=2, min_row=1, max_row=13)
    categories = Reference(ws, min_col=1, min_row=2, max_row=13)
    chart.add_data(data, titles_from_data=True)
    chart.set_categories(categories)
    ws.add_chart(chart, CHART_ANCHOR)


def write_dashboard_report(filepath: PathInput, views: DashboardViews) -> Path:
    """Write every view for the current selection into one workbook."""

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(
        path, engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
    ) as writer:
        _write_sheet(writer, KPI_SHEET, _kpi_rows(views))
        _write_sheet(writer, BESTS_SHEET, views.bests.rows())
        monthly_rows = [
            {"Month": month, views.monthly.label: value}
            for month, value in zip(views.monthly.months, views.monthly.values)
        ]
        ws = _write_sheet(writer, MONTHLY_SHEET, monthly_rows)
        _add_monthly_chart(ws, views)
        _write_sheet(writer, GEOGRAPHY_SHEET, _geography_rows(views))
        if views.consistency is not None:
            _write_sheet(writer, CONSISTENCY_SHEET, [views.consistency.as_row()])
        _write_sheet(writer, ACTIVITIES_SHEET, activity_rows(views.activities))
    LOGGER.info(
        "Report saved to %s (activities=%d, latest=%s)",
        path,
        len(views.activities),
        format_date(max((a.record.start_date for a in views.activities), default=None)),
    )
    return path


__all__ = ["write_dashboard_report", "activity_rows"]
