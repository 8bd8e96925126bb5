"""CLI entry point for rank-tidy."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from rank_tidy import HEADER_SKIP_ROWS, SHEET_PATTERN, __version__
from rank_tidy.errors import RankTidyError
from rank_tidy.io import list_data_files, list_sheets, locate_sheet, write_csv, write_json
from rank_tidy.models import RunManifest
from rank_tidy.pipeline import BatchResult, combine_tables, process_files
from rank_tidy.qc import write_qc_report
from rank_tidy.report import write_report
from rank_tidy.utils import sha256_file, utcnow_iso

app = typer.Typer(
    name="rtidy",
    help="rank-tidy — Reshape messy yearly ranking spreadsheets into one tidy table.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

CSV_NAME = "tidy_names.csv"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"rank-tidy v{__version__}")
        raise typer.Exit()


def _input_hashes(result: BatchResult) -> dict[str, str]:
    paths = [report.path for report in result.reports]
    paths.extend(failure.path for failure in result.failures)
    hashes: dict[str, str] = {}
    for raw in sorted(paths):
        path = Path(raw)
        try:
            hashes[path.name] = sha256_file(path)
        except OSError as exc:
            console.print(f"[yellow]![/yellow] Cannot hash {path.name}: {exc}")
    return hashes


def _write_manifest(
    out_dir: Path,
    input_dir: Path,
    created_at: str,
    result: BatchResult,
    *,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        input_dir=str(input_dir.resolve()),
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        files_in=result.files_in,
        files_ok=len(result.reports),
        files_failed=len(result.failures),
        rows_out=result.rows_out,
        inputs=_input_hashes(result),
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _write_failure_artifacts(
    out_dir: Path,
    input_dir: Path,
    created_at: str,
    *,
    message: str,
    result: BatchResult | None = None,
    error_code: int = 2,
) -> tuple[Path, Path]:
    result = result if result is not None else BatchResult()
    qc_path = write_qc_report(out_dir, result, error=message)
    manifest_path = _write_manifest(
        out_dir,
        input_dir,
        created_at,
        result,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    return qc_path, manifest_path


def _fail_run(
    out_dir: Path,
    input_dir: Path,
    created_at: str,
    *,
    message: str,
    result: BatchResult | None = None,
    error_code: int = 2,
) -> typer.Exit:
    qc_path, manifest_path = _write_failure_artifacts(
        out_dir, input_dir, created_at,
        message=message, result=result, error_code=error_code,
    )
    _err(message)
    console.print(f"  QC report -> {qc_path}")
    console.print(f"  Manifest  -> {manifest_path}")
    return typer.Exit(code=error_code)


def _files_table(result: BatchResult) -> RichTable:
    tbl = RichTable(title="Files", show_lines=False)
    tbl.add_column("File", style="bold")
    tbl.add_column("Sheet")
    tbl.add_column("Year", justify="right")
    tbl.add_column("Rows out", justify="right")
    tbl.add_column("Status")
    for report in result.reports:
        status = "[yellow]warn[/yellow]" if report.warnings else "[green]ok[/green]"
        tbl.add_row(
            Path(report.path).name,
            report.sheet,
            str(report.year) if report.year is not None else "?",
            str(report.rows_out),
            status,
        )
    for failure in result.failures:
        tbl.add_row(Path(failure.path).name, "", "", "", f"[red]{failure.error}[/red]")
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """rank-tidy CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_dir: Path = typer.Option(
        ..., "--input-dir", "-i",
        help="Directory holding one spreadsheet per year.",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for CSV + workbook + QC + manifest.",
    ),
    sheet_pattern: str = typer.Option(
        SHEET_PATTERN, "--sheet-pattern", "-s",
        help="Substring that identifies the data sheet in each workbook.",
    ),
    skip_rows: int = typer.Option(
        HEADER_SKIP_ROWS, "--skip-rows",
        min=0,
        help="Rows above the header row of the data sheet.",
    ),
    jobs: int = typer.Option(
        1, "--jobs", "-j",
        min=1,
        help="Number of files processed in parallel.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Clean every workbook in a directory into one long table.

    Exit 0 = all files cleaned, exit 2 = some files failed or the input
    directory is unusable, exit 1 = unexpected error.
    """
    echo = _printer(quiet)
    created_at = utcnow_iso()

    # ── Discover ─────────────────────────────────────────────────
    try:
        files = list_data_files(input_dir)
    except (RankTidyError, OSError) as exc:
        raise _fail_run(out_dir, input_dir, created_at, message=str(exc))
    if not files:
        raise _fail_run(
            out_dir, input_dir, created_at,
            message=f"No spreadsheet files found in {input_dir}",
        )

    if not quiet:
        console.print(Panel(
            f"[bold]rank-tidy[/bold] v{__version__}\n"
            f"Input:  {input_dir}\nOutput: {out_dir}",
            title="Pipeline Start", border_style="blue",
        ))
        console.print(f"  Sheet pattern: {sheet_pattern!r}, header row: {skip_rows + 1}")

    result = BatchResult()
    try:
        # ── Clean ────────────────────────────────────────────────
        echo(f"[blue]>[/blue] Cleaning {len(files)} workbooks …")
        result = process_files(
            files, jobs=jobs, sheet_pattern=sheet_pattern, skip_rows=skip_rows
        )

        if not quiet:
            console.print(_files_table(result))
            for report in result.reports:
                for w in report.warnings:
                    console.print(f"  [yellow]![/yellow] {Path(report.path).name}: {w}")
        for failure in result.failures:
            _err(failure.message)

        # ── Write artifacts ──────────────────────────────────────
        combined = combine_tables(result)
        csv_path = write_csv(out_dir / CSV_NAME, combined)
        echo(f"  CSV       -> {csv_path}")
        report_path = write_report(out_dir, combined, result)
        echo(f"  Workbook  -> {report_path}")
        qc_path = write_qc_report(out_dir, result)
        echo(f"  QC report -> {qc_path}")

        if result.failures:
            message = f"{len(result.failures)} of {result.files_in} files failed"
            _write_manifest(
                out_dir, input_dir, created_at, result,
                status="failed", error_code=2, error_message=message,
            )
            console.print(f"[yellow]![/yellow] {message}")
            raise typer.Exit(code=2)

        manifest_path = _write_manifest(out_dir, input_dir, created_at, result)
        echo(f"  Manifest  -> {manifest_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green] — {result.rows_out} rows from "
                f"{len(result.reports)} files -> {csv_path}",
                title="Pipeline Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail_run(
            out_dir, input_dir, created_at,
            message=f"Unexpected internal error: {exc}",
            result=result,
            error_code=1,
        )


# ── sheets command ───────────────────────────────────────────────


@app.command()
def sheets(
    input_dir: Path = typer.Option(
        ..., "--input-dir", "-i",
        help="Directory holding one spreadsheet per year.",
    ),
    sheet_pattern: str = typer.Option(
        SHEET_PATTERN, "--sheet-pattern", "-s",
        help="Substring that identifies the data sheet in each workbook.",
    ),
) -> None:
    """List each workbook's sheets and the one the pattern selects.

    Exit 2 if any workbook has zero or several matching sheets.
    """
    try:
        files = list_data_files(input_dir)
    except (RankTidyError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)

    tbl = RichTable(title="Worksheets", show_lines=True)
    tbl.add_column("File", style="bold")
    tbl.add_column("Sheets")
    tbl.add_column("Selected")

    problems = 0
    for path in files:
        names: list[str] = []
        try:
            names = list_sheets(path)
            selected = f"[green]{locate_sheet(path, sheet_pattern)}[/green]"
        except RankTidyError as exc:
            problems += 1
            selected = f"[red]{type(exc).__name__}[/red]: {exc.message}"
        tbl.add_row(path.name, "\n".join(names), selected)
    console.print(tbl)

    if problems:
        raise typer.Exit(code=2)
