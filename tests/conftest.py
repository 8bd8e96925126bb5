"""Shared fixtures: build yearly ranking workbooks shaped like the real ones."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest
from openpyxl import Workbook

SPEC_HEADER: list[str | None] = ["Name", "Count", "Change", "Name", "Count"]
RANKED_HEADER: list[str | None] = [
    "Rank", "Name", "Count", "Change in rank", None,
    "Rank", "Name", "Count", "Change in rank",
]
DEFAULT_NOTES = ("Notes:", "1. Names are grouped by exact spelling.")


def ranked_names(first: int, last: int) -> list[tuple[str, int]]:
    return [(f"NAME{rank:03d}", 10_000 - rank * 7) for rank in range(first, last + 1)]


def _columns(header: Sequence[str | None], prefix: str) -> list[int]:
    return [
        idx for idx, label in enumerate(header, 1)
        if isinstance(label, str) and label.startswith(prefix)
    ]


def write_ranking_workbook(
    path: Path,
    *,
    data_sheet: str | None = "2015 Table 1 Boys",
    other_sheets: Sequence[str] = ("Contents", "Table 2 - Top 10 by month"),
    data_position: int = 1,
    header: Sequence[str | None] = SPEC_HEADER,
    first_block: int = 50,
    second_block: int = 50,
    notes: Sequence[str] = DEFAULT_NOTES,
    skip_rows: int = 6,
) -> Path:
    """Write a workbook whose data sheet has *skip_rows* preamble rows,
    a header row, a blank separator, two side-by-side rank blocks and notes."""
    wb = Workbook()
    default = wb.active
    if default is not None:
        wb.remove(default)

    titles = list(other_sheets)
    if data_sheet is not None:
        titles.insert(min(data_position, len(titles)), data_sheet)
    for title in titles:
        ws = wb.create_sheet(title=title)
        ws.cell(row=1, column=1, value=f"{title} placeholder")

    if data_sheet is not None:
        ws = wb[data_sheet]
        ws.cell(row=1, column=1, value="Baby names statistics")
        ws.cell(row=3, column=1, value="England and Wales")

        header_row = skip_rows + 1
        for col, label in enumerate(header, 1):
            if label is not None:
                ws.cell(row=header_row, column=col, value=label)

        name_cols = _columns(header, "Name")
        count_cols = _columns(header, "Count")
        rank_cols = _columns(header, "Rank")
        change_cols = _columns(header, "Change")
        blocks = [
            ranked_names(1, first_block),
            ranked_names(first_block + 1, first_block + second_block),
        ]

        row = header_row + 2  # one blank separator row under the header
        for i in range(max(len(b) for b in blocks)):
            for b_idx, entries in enumerate(blocks):
                if i >= len(entries) or b_idx >= len(name_cols):
                    continue
                name, count = entries[i]
                ws.cell(row=row, column=name_cols[b_idx], value=name)
                ws.cell(row=row, column=count_cols[b_idx], value=count)
                if b_idx < len(rank_cols):
                    ws.cell(row=row, column=rank_cols[b_idx], value=int(name[4:]))
                if b_idx < len(change_cols):
                    ws.cell(row=row, column=change_cols[b_idx], value=(i % 3) - 1)
            row += 1

        note_col = next(
            (idx for idx, label in enumerate(header, 1) if label != "Name"), 1
        )
        row += 1
        for note in notes:
            ws.cell(row=row, column=note_col, value=note)
            row += 1

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str = "boys_2015.xlsx", **kwargs: object) -> Path:
        return write_ranking_workbook(tmp_path / "data" / name, **kwargs)  # type: ignore[arg-type]

    return _make
