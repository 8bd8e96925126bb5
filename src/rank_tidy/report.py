"""Excel workbook writer — produces Tidy_Names.xlsx."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from rank_tidy.pipeline import BatchResult

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")
ERROR_FONT = Font(name="Calibri", italic=True, size=10, color="C00000")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")

INT_FMT = '#,##0'
YEAR_FMT = '0'

REPORT_NAME = "Tidy_Names.xlsx"

_COL_FORMATS: dict[str, str] = {
    "year": YEAR_FMT,
    "rank": INT_FMT,
    "count": INT_FMT,
    "rows_in": INT_FMT,
    "rows_kept": INT_FMT,
    "dropped_rows": INT_FMT,
    "rows_out": INT_FMT,
}

_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[letter].width = min(width + 4, 60)


def _apply_number_formats(ws: Worksheet, col_names: list[str]) -> None:
    if ws.max_row < 2:
        return
    for c_idx, name in enumerate(col_names, 1):
        fmt = _COL_FORMATS.get(name.lower())
        if not fmt:
            continue
        for row in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=c_idx, max_col=c_idx):
            for cell in row:
                cell.number_format = fmt


def _sanitize_table_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", name) or "Table"
    if not re.match(r"^[A-Za-z_]", cleaned):
        cleaned = f"_{cleaned}"
    return cleaned[:255]


def _add_excel_table(ws: Worksheet, name: str, ncols: int, nrows: int) -> None:
    """Turn the data range into a proper Excel Table object."""
    if nrows < 1 or ncols < 1:
        return
    table = Table(
        displayName=_sanitize_table_name(name),
        ref=f"A1:{get_column_letter(ncols)}{nrows + 1}",
    )
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9", showFirstColumn=False,
        showLastColumn=False, showRowStripes=True, showColumnStripes=False,
    )
    ws.add_table(table)


def _excel_value(val: Any) -> Any:
    if isinstance(val, (list, tuple)):
        return ", ".join(str(v) for v in val)
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val

    if isinstance(val, str):
        if val.startswith("'"):
            return val
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"

    item = getattr(val, "item", None)
    if callable(item):
        return item()
    return val


def _df_to_sheet(wb: Workbook, name: str, df: pd.DataFrame, *, as_table: bool = False) -> None:
    ws = wb.create_sheet(title=name)
    col_names = [str(c) for c in df.columns]

    if not col_names:
        ws.cell(row=1, column=1, value="No data").font = VALUE_FONT
        ws.column_dimensions["A"].width = 18
        return

    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    _style_header(ws, len(col_names))
    _apply_number_formats(ws, col_names)
    ws.freeze_panes = "A2"
    if (not as_table) and (len(df) > 0):
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)
    if as_table and len(df) > 0:
        _add_excel_table(ws, name, len(col_names), len(df))


def _write_summary(wb: Workbook, result: BatchResult) -> None:
    ws = wb.create_sheet(title="Summary")

    ws.cell(row=1, column=1, value="rank-tidy — Summary").font = TITLE_FONT
    ws.merge_cells("A1:D1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A2:D2")

    row = 4
    counts = [
        ("Files in", result.files_in),
        ("Files cleaned", len(result.reports)),
        ("Files failed", len(result.failures)),
        ("Clean rows", result.rows_out),
    ]
    for label, value in counts:
        ws.cell(row=row, column=1, value=label).font = LABEL_FONT
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.number_format = INT_FMT
        val_cell.alignment = Alignment(horizontal="right")
        row += 1

    row += 1
    ws.cell(row=row, column=1, value="Notes").font = LABEL_FONT
    ws.merge_cells(f"A{row}:D{row}")
    for c in range(1, 5):
        ws.cell(row=row, column=c).fill = NOTE_FILL
    row += 1

    notes: list[tuple[str, Font]] = []
    for report in result.reports:
        name = Path(report.path).name
        notes.extend((f"⚠ {name}: {w}", WARN_FONT) for w in report.warnings)
    for failure in result.failures:
        notes.append((f"✗ {failure.error}: {failure.message}", ERROR_FONT))
    if not notes:
        notes.append(("No warnings", VALUE_FONT))

    for text, font in notes:
        ws.cell(row=row, column=1, value=text).font = font
        for c in range(1, 5):
            ws.cell(row=row, column=c).fill = NOTE_FILL
        row += 1

    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 14


# ── Public API ───────────────────────────────────────────────────


def write_report(out_dir: Path, combined: pd.DataFrame, result: BatchResult) -> Path:
    """Write ``Tidy_Names.xlsx`` and return the path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_NAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    _write_summary(wb, result)
    _df_to_sheet(wb, "Names", combined, as_table=True)

    files = pd.DataFrame([report.to_dict() for report in result.reports])
    _df_to_sheet(wb, "Files", files)

    failures = pd.DataFrame([failure.to_dict() for failure in result.failures])
    _df_to_sheet(wb, "Failures", failures)

    tmp_path = out_dir / "Tidy_Names.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
