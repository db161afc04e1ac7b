from __future__ import annotations

from pathlib import Path

import pandas as pd
from openpyxl import load_workbook

from strava_dashboard.main import main


def _write_export(tmp_path: Path, rows) -> Path:
    path = tmp_path / "activities.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


def test_main_writes_report_and_map(tmp_path: Path, sample_rows) -> None:
    export = _write_export(tmp_path, sample_rows)
    report = tmp_path / "out" / "dashboard.xlsx"
    map_html = tmp_path / "out" / "dashboard.html"
    code = main(
        [
            "--input",
            str(export),
            "--type",
            "Run",
            "--start",
            "2023-01-01",
            "--report",
            str(report),
            "--map-html",
            str(map_html),
        ]
    )
    assert code == 0
    assert map_html.exists()
    kpis = load_workbook(report)["KPIs"]
    values = dict(zip([c.value for c in kpis[1]], [c.value for c in kpis[2]]))
    assert values["Activity Type"] == "Run"
    assert values["From"] == "2023-01-01"
    assert values["Activities"] == 2


def test_main_viewport_pans_after_fit(tmp_path: Path, sample_rows) -> None:
    export = _write_export(tmp_path, sample_rows)
    report = tmp_path / "paris.xlsx"
    code = main(
        [
            "--upload",
            str(export),
            "--viewport",
            "48.7,2.2,49.0,2.5",
            "--report",
            str(report),
            "--map-html",
            str(tmp_path / "paris.html"),
        ]
    )
    assert code == 0
    assert load_workbook(report)["Activities"].max_row == 4


def test_main_missing_input_returns_error(tmp_path: Path) -> None:
    code = main(
        [
            "--input",
            str(tmp_path / "missing.csv"),
            "--report",
            str(tmp_path / "r.xlsx"),
            "--map-html",
            str(tmp_path / "m.html"),
        ]
    )
    assert code == 1
    assert not (tmp_path / "r.xlsx").exists()
