"""I/O helpers — discover workbooks, locate and read sheets, write artifacts."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, cast

import pandas as pd

from rank_tidy import DATA_SUFFIXES, HEADER_SKIP_ROWS, SHEET_PATTERN
from rank_tidy.errors import AmbiguousSheetError, FormatError, NotFoundError

# ── Discovery ────────────────────────────────────────────────────


def list_data_files(
    directory: Path, suffixes: Iterable[str] = DATA_SUFFIXES
) -> list[Path]:
    """Return the spreadsheet files in *directory*, sorted by name.

    Hidden files, Excel lock files (``~$...``) and sub-directories are skipped.

    Raises
    ------
    NotFoundError
        If *directory* does not exist or is not a directory.
    """
    directory = Path(directory)
    if not directory.exists():
        raise NotFoundError("Input directory not found", directory)
    if not directory.is_dir():
        raise NotFoundError("Input path is not a directory", directory)

    wanted = {s.lower() for s in suffixes}
    return sorted(
        (
            p
            for p in directory.iterdir()
            if p.is_file()
            and p.suffix.lower() in wanted
            and not p.name.startswith((".", "~$"))
        ),
        key=lambda p: p.name,
    )


# ── Sheets ───────────────────────────────────────────────────────


def _require_file(path: Path) -> None:
    if not path.exists():
        raise NotFoundError("Input file not found", path)
    if not path.is_file():
        raise NotFoundError("Input path is not a file", path)


def _excel_engine(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xltx", ".xltm"):
        return "openpyxl"
    if suffix == ".xls":
        return "xlrd"
    raise FormatError(f"Unsupported file type: {suffix!r}. Use .xlsx or .xls", path)


def _xlrd_missing(path: Path) -> FormatError:
    return FormatError(
        "Unsupported .xls input unless 'xlrd' is installed. "
        "Either convert to .xlsx or add dependency: pip install xlrd",
        path,
    )


def list_sheets(path: Path) -> list[str]:
    """Return every worksheet name in *path*, in workbook order."""
    path = Path(path)
    _require_file(path)
    engine = _excel_engine(path)
    try:
        with pd.ExcelFile(path, engine=engine) as book:
            return [str(name) for name in book.sheet_names]
    except ImportError as exc:
        if engine == "xlrd":
            raise _xlrd_missing(path) from exc
        raise FormatError(f"Cannot open workbook ({exc})", path) from exc
    except Exception as exc:
        raise FormatError(f"Cannot open workbook ({exc})", path) from exc


def matching_sheets(path: Path, pattern: str = SHEET_PATTERN) -> list[str]:
    """Return the sheet names of *path* that contain *pattern* literally."""
    return [name for name in list_sheets(path) if pattern in name]


def locate_sheet(path: Path, pattern: str = SHEET_PATTERN) -> str:
    """Return the one sheet of *path* whose name contains *pattern*.

    Raises
    ------
    AmbiguousSheetError
        If no sheet, or more than one sheet, matches.
    """
    candidates = matching_sheets(path, pattern)
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        message = f"No sheet name contains {pattern!r}"
    else:
        quoted = ", ".join(repr(c) for c in candidates)
        message = f"{len(candidates)} sheet names contain {pattern!r}: {quoted}"
    raise AmbiguousSheetError(message, path, candidates=candidates)


# ── Reading ──────────────────────────────────────────────────────


def read_raw_table(
    path: Path, sheet: str, *, skip_rows: int = HEADER_SKIP_ROWS
) -> pd.DataFrame:
    """Read *sheet* of *path* below the first *skip_rows* rows.

    The first row read becomes the header, verbatim: blank, numeric and
    duplicate labels survive so the normaliser sees what the sheet holds.

    Raises
    ------
    NotFoundError
        If *path* does not exist.
    FormatError
        If the sheet cannot be parsed or has nothing at the header row.
    """
    path = Path(path)
    _require_file(path)
    engine = _excel_engine(path)
    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    try:
        grid = read_excel(
            path,
            sheet_name=sheet,
            header=None,
            skiprows=skip_rows,
            engine=engine,
            dtype=object,
        )
    except ImportError as exc:
        if engine == "xlrd":
            raise _xlrd_missing(path) from exc
        raise FormatError(f"Cannot read sheet {sheet!r} ({exc})", path) from exc
    except Exception as exc:
        raise FormatError(f"Cannot read sheet {sheet!r} ({exc})", path) from exc

    if grid.empty:
        raise FormatError(
            f"Sheet {sheet!r} has no header row after skipping {skip_rows} rows", path
        )

    header = pd.Index(list(grid.iloc[0]), dtype=object)
    rows = grid.iloc[1:].reset_index(drop=True)
    rows.columns = header
    return rows


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path


def write_csv(path: Path, df: pd.DataFrame) -> Path:
    """Write *df* to *path* as UTF-8 CSV without the index (atomic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    df.to_csv(tmp_path, index=False, encoding="utf-8")
    tmp_path.replace(path)
    return path
