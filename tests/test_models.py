from __future__ import annotations

import pytest

from rank_tidy.models import FileFailure, FileReport, RunManifest


def test_file_report_to_dict_returns_list_copies() -> None:
    report = FileReport(
        path="data/2015.xlsx",
        sheet="2015 Table 1 Boys",
        year=2015,
        rows_in=54,
        rows_kept=50,
        dropped_rows=4,
        rows_out=100,
        dropped_columns=["Change"],
        warnings=["uneven"],
    )

    payload = report.to_dict()
    payload["dropped_columns"].append("Rank")
    payload["warnings"].append("another")

    assert report.dropped_columns == ["Change"]
    assert report.warnings == ["uneven"]
    assert payload["rows_out"] == 100
    assert payload["year"] == 2015


def test_file_report_rejects_negative_counts() -> None:
    with pytest.raises(ValueError, match="rows_in"):
        FileReport(rows_in=-1)

    with pytest.raises(ValueError, match="rows_out"):
        FileReport(rows_out=-1)


def test_file_report_rejects_inconsistent_row_relationships() -> None:
    with pytest.raises(ValueError, match="rows_kept"):
        FileReport(rows_in=2, rows_kept=3)

    with pytest.raises(ValueError, match="dropped_rows"):
        FileReport(rows_in=5, rows_kept=4, dropped_rows=2)


def test_file_report_rows_out_may_exceed_rows_kept() -> None:
    report = FileReport(rows_in=52, rows_kept=50, dropped_rows=2, rows_out=100)

    assert report.rows_out == 100


def test_file_report_rejects_non_string_lists() -> None:
    with pytest.raises(TypeError, match="dropped_columns"):
        FileReport(dropped_columns=["Change", 1])  # type: ignore[list-item]

    with pytest.raises(TypeError, match="warnings"):
        FileReport(warnings="warn")  # type: ignore[arg-type]


def test_file_report_rejects_bool_year() -> None:
    with pytest.raises(TypeError, match="year"):
        FileReport(year=True)


def test_file_failure_to_dict() -> None:
    failure = FileFailure("data/2017.xlsx", "AmbiguousSheetError", "no sheet")

    assert failure.to_dict() == {
        "path": "data/2017.xlsx",
        "error": "AmbiguousSheetError",
        "message": "no sheet",
    }


def test_run_manifest_rejects_inconsistent_file_counts() -> None:
    with pytest.raises(ValueError, match="files_ok"):
        RunManifest(files_in=3, files_ok=1, files_failed=1)

    with pytest.raises(TypeError, match="rows_out"):
        RunManifest(rows_out=True)  # type: ignore[arg-type]


def test_run_manifest_to_dict_copies_inputs() -> None:
    inputs = {"2015.xlsx": "abc"}
    manifest = RunManifest(version="0.2.0", files_in=1, files_ok=1, inputs=inputs)

    payload = manifest.to_dict()
    payload["inputs"]["2016.xlsx"] = "def"

    assert manifest.inputs == {"2015.xlsx": "abc"}
    assert payload["tool"] == "rank-tidy"


def test_run_manifest_records_failure_status() -> None:
    manifest = RunManifest(status="failed", error_code=2, error_message="no files")

    payload = manifest.to_dict()

    assert payload["status"] == "failed"
    assert payload["error_code"] == 2
    assert payload["error_message"] == "no files"
    assert RunManifest().to_dict()["status"] == "success"

    with pytest.raises(ValueError, match="status"):
        RunManifest(status="crashed")
