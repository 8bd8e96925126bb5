"""rank-tidy — Reshape messy yearly ranking spreadsheets into one tidy table."""

__version__ = "0.2.0"

SHEET_PATTERN: str = "Table 1"
HEADER_SKIP_ROWS: int = 6
DATA_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm", ".xls")

NAME_COLUMN: str = "Name"
SELECTED_COLUMNS: list[str] = ["Name", "Name.1", "Count", "Count.1"]
RANK_BLOCKS: tuple[tuple[str, str], ...] = (("Name", "Count"), ("Name.1", "Count.1"))
CLEAN_COLUMNS: list[str] = ["name", "count"]
