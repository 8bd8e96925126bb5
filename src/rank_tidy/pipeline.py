"""Cleaning + reshaping pipeline — pure functions over DataFrames.

Every stage returns a new frame and leaves its input untouched, so each one
can be exercised on its own.  Schema expectations are checked explicitly and
surface as :class:`~rank_tidy.errors.SchemaError`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from rank_tidy import (
    CLEAN_COLUMNS,
    DATA_SUFFIXES,
    HEADER_SKIP_ROWS,
    NAME_COLUMN,
    RANK_BLOCKS,
    SELECTED_COLUMNS,
    SHEET_PATTERN,
)
from rank_tidy.errors import RankTidyError, SchemaError
from rank_tidy.io import list_data_files, locate_sheet, read_raw_table
from rank_tidy.models import FileFailure, FileReport
from rank_tidy.utils import extract_year

COMBINED_COLUMNS: list[str] = ["year", "rank", "name", "count", "source_file"]

# ── Column labels ────────────────────────────────────────────────


_INVALID_LABEL_CHAR_RE = re.compile(r"[^A-Za-z0-9._]")
_VALID_LABEL_START_RE = re.compile(r"^(?:[A-Za-z]|\.(?!\d))")


def _is_blank(value: object) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return bool(pd.isna(value))


def _sanitize_label(label: object, position: int) -> str:
    if _is_blank(label):
        return f"X{position}"
    text = _INVALID_LABEL_CHAR_RE.sub(".", str(label).strip())
    if not _VALID_LABEL_START_RE.match(text):
        text = f"X{text}"
    return text


def normalize_labels(labels: Iterable[object]) -> list[str]:
    """Turn raw header cells into unique, well-formed column labels.

    Blank cells become ``X<position>`` (1-based), characters outside
    ``[A-Za-z0-9._]`` become ``.``, and labels that do not start with a
    letter get an ``X`` prefix.  The first occurrence of a label is kept as
    is; later duplicates get ``.1``, ``.2`` ... skipping any suffix that
    another label already uses.

    >>> normalize_labels(["Name", "Count", "Name", "Count"])
    ['Name', 'Count', 'Name.1', 'Count.1']
    """
    sanitized = [_sanitize_label(label, pos) for pos, label in enumerate(labels, 1)]
    taken = set(sanitized)
    seen: set[str] = set()
    result: list[str] = []
    for label in sanitized:
        if label not in seen:
            seen.add(label)
            result.append(label)
            continue
        suffix = 1
        while f"{label}.{suffix}" in taken:
            suffix += 1
        candidate = f"{label}.{suffix}"
        taken.add(candidate)
        result.append(candidate)
    return result


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of *df* with :func:`normalize_labels` applied to its header."""
    df = df.copy()
    df.columns = pd.Index(normalize_labels(df.columns))
    return df


# ── Schema checks ────────────────────────────────────────────────


def _require_columns(df: pd.DataFrame, required: Sequence[str], stage: str) -> None:
    if not df.columns.is_unique:
        raise SchemaError(f"{stage}: column labels are not unique; normalize them first")
    missing = [col for col in required if col not in df.columns]
    if missing:
        available = ", ".join(str(c) for c in df.columns) or "none"
        raise SchemaError(
            f"{stage}: missing columns {', '.join(missing)} (available: {available})",
            missing=missing,
        )


# ── Rows and columns ─────────────────────────────────────────────


def filter_named_rows(df: pd.DataFrame, name_column: str = NAME_COLUMN) -> pd.DataFrame:
    """Keep only rows whose *name_column* holds a non-blank value.

    This drops the blank separator under the header and the notes block
    below the data in one go.
    """
    _require_columns(df, [name_column], "filter")
    blank = df[name_column].map(_is_blank).astype(bool)
    return df.loc[~blank].reset_index(drop=True)


def select_columns(df: pd.DataFrame, columns: Sequence[str] = SELECTED_COLUMNS) -> pd.DataFrame:
    """Return *df* restricted to *columns*, in that order."""
    _require_columns(df, columns, "select")
    return df.loc[:, list(columns)].copy()


def reshape_blocks(
    df: pd.DataFrame,
    blocks: Sequence[tuple[str, str]] = RANK_BLOCKS,
    columns: Sequence[str] = CLEAN_COLUMNS,
) -> pd.DataFrame:
    """Stack side-by-side ``(name, count)`` rank blocks into one long table.

    Rows keep their order within each block and blocks are appended in the
    order given, so rank can be read off the row position.  Rows whose name
    is blank are left out, which trims the shorter trailing block of an
    uneven year.
    """
    if not blocks:
        raise ValueError("At least one rank block is required")
    if len(columns) != 2:
        raise ValueError("Exactly two output columns are required (name, count)")

    _require_columns(df, [col for block in blocks for col in block], "reshape")

    parts: list[pd.DataFrame] = []
    for name_col, count_col in blocks:
        part = df.loc[:, [name_col, count_col]].copy()
        part.columns = pd.Index(columns)
        blank = part[columns[0]].map(_is_blank).astype(bool)
        parts.append(part.loc[~blank])
    return pd.concat(parts, ignore_index=True)


# ── Value coercion ───────────────────────────────────────────────


def _count_token(value: object) -> object:
    if _is_blank(value):
        return None
    if isinstance(value, str):
        return re.sub(r"[,\s]", "", value)
    return value


def _coerce_counts(s: pd.Series) -> tuple[pd.Series, int, int]:
    """Return ``(counts as Int64, blank_count, unparseable_count)``."""
    tokens = s.map(_count_token)
    numeric = pd.to_numeric(tokens, errors="coerce").astype("float64")
    whole = numeric.where(numeric.isna() | (numeric % 1 == 0))
    blank = int(tokens.isna().sum())
    unparseable = int((whole.isna() & tokens.notna()).sum())
    return whole.astype("Int64"), blank, unparseable


# ── Main cleaning function ──────────────────────────────────────


def clean_table(
    raw: pd.DataFrame,
    *,
    name_column: str = NAME_COLUMN,
    columns: Sequence[str] = SELECTED_COLUMNS,
    blocks: Sequence[tuple[str, str]] = RANK_BLOCKS,
) -> tuple[pd.DataFrame, FileReport]:
    """Turn one raw sheet into a clean ``(name, count)`` table.

    Returns ``(clean_df, report)``; ``report.path`` and ``report.sheet`` are
    left for the caller to fill in.
    """
    name_out, count_out = CLEAN_COLUMNS
    warnings: list[str] = []

    # 1. Normalise headers
    normalized = normalize_columns(raw)

    # 2. Drop separator / notes rows
    kept = filter_named_rows(normalized, name_column)

    # 3. Keep the name/count pairs only
    selected = select_columns(kept, columns)
    dropped_columns = [str(c) for c in normalized.columns if c not in selected.columns]

    # 4. Stack rank blocks
    clean = reshape_blocks(selected, blocks)
    block_sizes = [
        int((~selected[name_col].map(_is_blank).astype(bool)).sum()) for name_col, _ in blocks
    ]
    if len(set(block_sizes)) > 1:
        sizes = ", ".join(str(n) for n in block_sizes)
        warnings.append(f"Rank blocks have uneven lengths: {sizes}")

    # 5. Types
    clean[name_out] = clean[name_out].map(lambda v: str(v).strip()).astype("string")
    counts, blank_counts, bad_counts = _coerce_counts(clean[count_out])
    clean[count_out] = counts
    if blank_counts:
        warnings.append(f"Found {blank_counts} names with a blank {count_out}")
    if bad_counts:
        suffix = "" if bad_counts == 1 else "s"
        warnings.append(f"Found {bad_counts} unparseable {count_out} value{suffix}; left empty")

    if clean.empty:
        warnings.append("Cleaned table is empty: no named rows remain")

    report = FileReport(
        rows_in=len(raw),
        rows_kept=len(kept),
        dropped_rows=len(raw) - len(kept),
        rows_out=len(clean),
        dropped_columns=dropped_columns,
        warnings=warnings,
    )
    return clean, report


# ── Per-file and batch processing ───────────────────────────────


def process_file(
    path: Path,
    *,
    sheet_pattern: str = SHEET_PATTERN,
    skip_rows: int = HEADER_SKIP_ROWS,
    name_column: str = NAME_COLUMN,
    columns: Sequence[str] = SELECTED_COLUMNS,
    blocks: Sequence[tuple[str, str]] = RANK_BLOCKS,
) -> tuple[pd.DataFrame, FileReport]:
    """Locate, read and clean the ranking sheet of one workbook.

    Any :class:`RankTidyError` raised on the way is tagged with *path*.
    """
    path = Path(path)
    try:
        sheet = locate_sheet(path, sheet_pattern)
        raw = read_raw_table(path, sheet, skip_rows=skip_rows)
        clean, report = clean_table(
            raw, name_column=name_column, columns=columns, blocks=blocks
        )
    except RankTidyError as exc:
        if exc.path is None:
            exc.path = path
        raise

    report.path = str(path)
    report.sheet = sheet
    report.year = extract_year(sheet, path.stem)
    if report.year is None:
        report.warnings.append("No year found in sheet or file name")
    return clean, report


@dataclass
class BatchResult:
    """Outcome of a directory run: clean tables, their reports, and failures."""

    tables: dict[str, pd.DataFrame] = field(default_factory=dict)
    reports: list[FileReport] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def files_in(self) -> int:
        return len(self.reports) + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def rows_out(self) -> int:
        return sum(report.rows_out for report in self.reports)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_in": self.files_in,
            "files_ok": len(self.reports),
            "files_failed": len(self.failures),
            "rows_out": self.rows_out,
            "files": [report.to_dict() for report in self.reports],
            "failures": [failure.to_dict() for failure in self.failures],
        }


def process_files(
    files: Sequence[Path],
    *,
    jobs: int = 1,
    sheet_pattern: str = SHEET_PATTERN,
    skip_rows: int = HEADER_SKIP_ROWS,
    name_column: str = NAME_COLUMN,
    columns: Sequence[str] = SELECTED_COLUMNS,
    blocks: Sequence[tuple[str, str]] = RANK_BLOCKS,
) -> BatchResult:
    """Clean each workbook in *files*.

    A file that fails with a :class:`RankTidyError` is recorded as a
    :class:`FileFailure` and the batch carries on.  With ``jobs > 1`` files
    are processed on a thread pool; results keep the order of *files*.
    """
    if jobs < 1:
        raise ValueError("jobs must be >= 1")

    def _attempt(path: Path) -> tuple[Path, pd.DataFrame | None, FileReport | FileFailure]:
        try:
            clean, report = process_file(
                path,
                sheet_pattern=sheet_pattern,
                skip_rows=skip_rows,
                name_column=name_column,
                columns=columns,
                blocks=blocks,
            )
        except RankTidyError as exc:
            return path, None, FileFailure(str(path), type(exc).__name__, str(exc))
        return path, clean, report

    paths = [Path(p) for p in files]
    if jobs > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            outcomes = list(pool.map(_attempt, paths))
    else:
        outcomes = [_attempt(path) for path in paths]

    result = BatchResult()
    for path, clean, outcome in outcomes:
        if isinstance(outcome, FileFailure):
            result.failures.append(outcome)
            continue
        if clean is not None:
            result.tables[str(path)] = clean
        result.reports.append(outcome)
    return result


def process_directory(
    directory: Path,
    *,
    jobs: int = 1,
    suffixes: Iterable[str] = DATA_SUFFIXES,
    sheet_pattern: str = SHEET_PATTERN,
    skip_rows: int = HEADER_SKIP_ROWS,
    name_column: str = NAME_COLUMN,
    columns: Sequence[str] = SELECTED_COLUMNS,
    blocks: Sequence[tuple[str, str]] = RANK_BLOCKS,
) -> BatchResult:
    """Discover the workbooks in *directory* and run :func:`process_files` on them."""
    if jobs < 1:
        raise ValueError("jobs must be >= 1")
    return process_files(
        list_data_files(directory, suffixes),
        jobs=jobs,
        sheet_pattern=sheet_pattern,
        skip_rows=skip_rows,
        name_column=name_column,
        columns=columns,
        blocks=blocks,
    )


# ── Aggregation ─────────────────────────────────────────────────


def combine_tables(result: BatchResult) -> pd.DataFrame:
    """Concatenate every clean table into one long frame.

    Columns: ``year, rank, name, count, source_file``; ``rank`` is the
    1-based row position within each file.
    """
    years = {report.path: report.year for report in result.reports}
    frames: list[pd.DataFrame] = []
    for path, table in result.tables.items():
        frame = table.copy()
        frame.insert(0, "rank", range(1, len(frame) + 1))
        frame.insert(0, "year", pd.array([years.get(path)] * len(frame), dtype="Int64"))
        frame["source_file"] = Path(path).name
        frames.append(frame)

    if not frames:
        return pd.DataFrame(columns=COMBINED_COLUMNS)
    combined = pd.concat(frames, ignore_index=True)
    return combined.loc[:, COMBINED_COLUMNS]
