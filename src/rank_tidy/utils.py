"""Shared helpers — hashing, timestamps, year tokens."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timezone
from pathlib import Path

_YEAR_RE = re.compile(r"(?<!\d)(19\d{2}|20\d{2})(?!\d)")


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def extract_year(*texts: str) -> int | None:
    """Return the first 19xx/20xx token found, trying *texts* in order."""
    for text in texts:
        match = _YEAR_RE.search(text or "")
        if match:
            return int(match.group(1))
    return None
