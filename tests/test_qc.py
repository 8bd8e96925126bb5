from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

from rank_tidy.models import FileFailure, FileReport
from rank_tidy.pipeline import BatchResult
from rank_tidy.qc import write_qc_report


def test_write_qc_report_writes_expected_contract(tmp_path: Path) -> None:
    report = FileReport(
        path="2015.xlsx", sheet="2015 Table 1", year=2015,
        rows_in=3, rows_kept=2, dropped_rows=1, rows_out=4,
    )
    result = BatchResult(
        tables={"2015.xlsx": pd.DataFrame({"name": ["A"], "count": [1]})},
        reports=[report],
        failures=[FileFailure("2016.xlsx", "FormatError", "2016.xlsx: broken")],
    )

    out = write_qc_report(tmp_path, result)

    assert out == tmp_path / "qc_report.json"
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["files_in"] == 2
    assert data["files_ok"] == 1
    assert data["files_failed"] == 1
    assert data["rows_out"] == 4
    assert data["files"][0]["sheet"] == "2015 Table 1"
    assert data["failures"] == [
        {"error": "FormatError", "message": "2016.xlsx: broken", "path": "2016.xlsx"}
    ]


def test_write_qc_report_records_run_level_error(tmp_path: Path) -> None:
    out = write_qc_report(tmp_path, BatchResult(), error="Input directory not found")

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["error"] == "Input directory not found"
    assert data["files_in"] == 0
    assert data["files"] == []


def test_write_qc_report_omits_error_when_run_succeeds(tmp_path: Path) -> None:
    data = json.loads(write_qc_report(tmp_path, BatchResult()).read_text(encoding="utf-8"))

    assert "error" not in data
