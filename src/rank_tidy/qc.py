"""QC report persistence."""

from __future__ import annotations

from pathlib import Path

from rank_tidy.io import write_json
from rank_tidy.pipeline import BatchResult


def write_qc_report(out_dir: Path, result: BatchResult, *, error: str = "") -> Path:
    """Write ``qc_report.json`` (per-file reports + failures) into *out_dir*.

    *error* records a run-level failure that stopped the batch before or
    while it ran.
    """
    payload = result.to_dict()
    if error:
        payload["error"] = error
    return write_json(out_dir / "qc_report.json", payload)
