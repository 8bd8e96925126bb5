"""Per-file error taxonomy.

Every error carries the offending file (or directory) so batch runs can
report failures next to the tables that did clean.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class RankTidyError(Exception):
    """Base class for failures tied to one input path."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.path}: {self.message}"


class NotFoundError(RankTidyError):
    """Directory or file is missing."""


class AmbiguousSheetError(RankTidyError):
    """Zero or several worksheets match the sheet pattern."""

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        candidates: Sequence[str] = (),
    ) -> None:
        super().__init__(message, path)
        self.candidates = list(candidates)


class FormatError(RankTidyError):
    """A workbook cannot be parsed at the assumed sheet/offset."""


class SchemaError(RankTidyError):
    """Expected columns are absent after normalisation."""

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        missing: Sequence[str] = (),
    ) -> None:
        super().__init__(message, path)
        self.missing = list(missing)
