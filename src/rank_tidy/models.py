"""Data models / typed records used across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


@dataclass
class FileReport:
    """Quality-control record for one cleaned workbook.

    Contract invariants: ``rows_kept <= rows_in`` and
    ``dropped_rows == rows_in - rows_kept``.  ``rows_out`` counts clean
    records after the rank blocks are stacked, so it may exceed ``rows_kept``.
    """

    path: str = ""
    sheet: str = ""
    year: int | None = None
    rows_in: int = 0
    rows_kept: int = 0
    dropped_rows: int = 0
    rows_out: int = 0
    dropped_columns: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_kept = _to_non_negative_int(self.rows_kept, "rows_kept")
        self.dropped_rows = _to_non_negative_int(self.dropped_rows, "dropped_rows")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.year is not None:
            self.year = _to_non_negative_int(self.year, "year")
        self.dropped_columns = _to_string_list(self.dropped_columns, "dropped_columns")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.rows_kept > self.rows_in:
            raise ValueError("rows_kept must be <= rows_in")
        if self.dropped_rows != self.rows_in - self.rows_kept:
            raise ValueError("dropped_rows must equal rows_in - rows_kept")

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "sheet": self.sheet,
            "year": self.year,
            "rows_in": self.rows_in,
            "rows_kept": self.rows_kept,
            "dropped_rows": self.dropped_rows,
            "rows_out": self.rows_out,
            "dropped_columns": list(self.dropped_columns),
            "warnings": list(self.warnings),
        }


@dataclass
class FileFailure:
    """A workbook that could not be cleaned, with the reason."""

    path: str
    error: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "error": self.error, "message": self.message}


@dataclass
class RunManifest:
    """Audit-trail manifest for a single batch run."""

    tool: str = "rank-tidy"
    version: str = ""
    input_dir: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    files_in: int = 0
    files_ok: int = 0
    files_failed: int = 0
    rows_out: int = 0
    inputs: Mapping[str, str] = field(default_factory=dict)
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.files_in = _to_non_negative_int(self.files_in, "files_in")
        self.files_ok = _to_non_negative_int(self.files_ok, "files_ok")
        self.files_failed = _to_non_negative_int(self.files_failed, "files_failed")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.files_ok + self.files_failed != self.files_in:
            raise ValueError("files_ok + files_failed must equal files_in")
        self.inputs = dict(self.inputs)
        if self.status not in ("success", "failed"):
            raise ValueError("status must be 'success' or 'failed'")
        if self.error_code is not None:
            self.error_code = _to_non_negative_int(self.error_code, "error_code")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "input_dir": self.input_dir,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "files_in": self.files_in,
            "files_ok": self.files_ok,
            "files_failed": self.files_failed,
            "rows_out": self.rows_out,
            "inputs": dict(self.inputs),
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
