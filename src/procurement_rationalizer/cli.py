"""CLI entry point for procurement-rationalizer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from procurement_rationalizer import __version__
from procurement_rationalizer.export import write_csv, write_workbook
from procurement_rationalizer.io import IngestResult, ingest_files
from procurement_rationalizer.models import RationalizeStats, RunManifest
from procurement_rationalizer.reconcile import Reconciliation
from procurement_rationalizer.report import write_manifest, write_stats_report
from procurement_rationalizer.sequencer import Phase, run_phases
from procurement_rationalizer.session import (
    Session,
    Stage,
    advance_to_export,
    advance_to_preview,
    begin_rationalize,
    complete_rationalize,
    ingest,
    reset,
)
from procurement_rationalizer.synonyms import DEFAULT_REGISTRY, SynonymRegistry
from procurement_rationalizer.utils import sha256_file, utcnow_iso

app = typer.Typer(
    name="prationalize",
    help="procurement-rationalizer — Merge messy procurement spreadsheets into one clean dataset.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger("procurement_rationalizer")


class ExportFormat(str, Enum):
    csv = "csv"
    xlsx = "xlsx"
    both = "both"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


def _configure_logging(*, quiet: bool, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False, show_time=False))
    logger.propagate = False


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"procurement-rationalizer v{__version__}")
        raise typer.Exit()


def _parse_aliases(raw: Sequence[str] | None) -> dict[str, list[str]]:
    """Parse ``Canonical=alias`` pairs into ``{canonical: [alias, ...]}``."""
    if not raw:
        return {}
    aliases: dict[str, list[str]] = {}
    for item in raw:
        if "=" not in item:
            raise ValueError(f"Invalid --alias value: {item!r}  (expected Canonical=alias)")
        target, alias = (part.strip() for part in item.split("=", 1))
        if not target or not alias:
            raise ValueError(
                "--alias entries must have non-empty canonical name and alias (Canonical=alias)"
            )
        aliases.setdefault(target, []).append(alias)
    return aliases


def _load_alias_file(path: Path | None) -> list[str]:
    """Return list of ``Canonical=alias`` strings from an alias file."""
    if not path:
        return []
    if not path.exists():
        raise ValueError(f"Alias file not found: {path} (expected lines like Quantity=Menge)")
    if path.is_dir():
        raise ValueError(f"Alias file is a directory, not a file: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read alias file {path}: {exc}") from exc

    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        lines.append(stripped)
    return lines


def _build_registry(alias_file: Path | None, aliases: Sequence[str] | None) -> SynonymRegistry:
    extra = _parse_aliases(_load_alias_file(alias_file) + list(aliases or []))
    if not extra:
        return DEFAULT_REGISTRY
    return DEFAULT_REGISTRY.with_aliases(extra)


def _input_entries(paths: Sequence[Path]) -> list[dict[str, str]]:
    entries: list[dict[str, str]] = []
    for path in paths:
        sha256 = ""
        try:
            sha256 = sha256_file(path)
        except OSError:
            pass
        entries.append({"path": str(path.resolve()), "sha256": sha256})
    return entries


def _write_run_manifest(
    out_dir: Path,
    created_at: str,
    ingested: IngestResult | None,
    *,
    rows_in: int = 0,
    rows_out: int = 0,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        inputs=_input_entries(ingested.paths) if ingested else [],
        skipped=[f.to_dict() for f in ingested.failures] if ingested else [],
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        rows_in=rows_in,
        rows_out=rows_out,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_manifest(out_dir, manifest)


def _fail(
    out_dir: Path,
    created_at: str,
    ingested: IngestResult | None,
    message: str,
    *,
    code: int = 2,
    rows_in: int = 0,
) -> typer.Exit:
    manifest_path = _write_run_manifest(
        out_dir,
        created_at,
        ingested,
        rows_in=rows_in,
        status="failed",
        error_code=code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Manifest -> {manifest_path}")
    return typer.Exit(code=code)


def _load_session(
    inputs: Sequence[Path], registry: SynonymRegistry, echo: Callable[..., None]
) -> tuple[Session, IngestResult]:
    echo(f"[blue]>[/blue] Loading {len(inputs)} file(s) …")
    ingested = ingest_files(inputs)
    for failure in ingested.failures:
        echo(f"  [yellow]![/yellow] Skipped {failure.path.name}: {failure.message}")
    for path, table in zip(ingested.paths, ingested.tables):
        echo(f"  {path.name}: {table.row_count} rows x {len(table.headers)} columns")
    session = advance_to_preview(ingest(reset(), ingested.tables), registry)
    return session, ingested


def _mapping_table(reconciliation: Reconciliation) -> RichTable:
    tbl = RichTable(title="Column Mapping", show_lines=False)
    tbl.add_column("Canonical column", style="bold")
    tbl.add_column("Source headers")
    tbl.add_column("Kind")
    for mapping in reconciliation.explicit_mappings():
        kind = "passthrough" if mapping.derived else "synonym"
        tbl.add_row(mapping.target or "[dim](blank)[/dim]", ", ".join(sorted(mapping.sources)), kind)
    return tbl


def _stats_table(stats: RationalizeStats) -> RichTable:
    tbl = RichTable(title="Rationalization Summary", show_lines=True)
    tbl.add_column("Metric", style="bold")
    tbl.add_column("Value", justify="right")
    tbl.add_row("Files processed", str(stats.total_files))
    tbl.add_row("Original rows", str(stats.total_rows))
    tbl.add_row("Rows out", str(stats.rows_out))
    tbl.add_row("Source columns", str(stats.source_columns))
    tbl.add_row("Output columns", str(stats.output_columns))
    tbl.add_row("Duplicates removed", str(stats.duplicates_removed))
    tbl.add_row("Whitespace fixes", str(stats.whitespace_fixes))
    tbl.add_row("Abbreviation fixes", str(stats.abbreviation_fixes))
    tbl.add_row("Casing fixes", str(stats.casing_fixes))
    tbl.add_row("Fields normalized", str(stats.fields_normalized))
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
    """procurement-rationalizer CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    inputs: list[Path] = typer.Option(
        ..., "--input", "-i",
        help="CSV or XLSX source file (repeat for each file).",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the export, report and manifest.",
    ),
    export_format: ExportFormat = typer.Option(
        ExportFormat.both, "--format", "-f",
        help="Export format: csv, xlsx, or both.",
    ),
    aliases: list[str] | None = typer.Option(
        None, "--alias", "-a",
        help="Extra header synonym: Canonical=alias. E.g. --alias Quantity=Menge",
    ),
    alias_file: Path | None = typer.Option(
        None, "--aliases",
        help="File of extra header synonyms (Canonical=alias lines).",
    ),
    phase_scale: float = typer.Option(
        1.0, "--phase-scale", min=0.0,
        help="Stretch factor for the progress phases; 0 disables the delay.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging.",
    ),
) -> None:
    """Merge, rationalize and export procurement spreadsheets."""
    _configure_logging(quiet=quiet, verbose=verbose)
    echo = _printer(quiet)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        registry = _build_registry(alias_file, aliases)
    except ValueError as exc:
        raise _fail(out_dir, created_at, None, str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]procurement-rationalizer[/bold] v{__version__}\n"
            f"Inputs: {len(inputs)} file(s)\nOutput: {out_dir}",
            title="Pipeline Start", border_style="blue",
        ))

    # ── Upload → Preview ─────────────────────────────────────────
    session, ingested = _load_session(inputs, registry, echo)
    if session.stage is not Stage.preview:
        raise _fail(out_dir, created_at, ingested, "No files could be ingested.")

    if session.merged is None or session.reconciliation is None:
        raise _fail(out_dir, created_at, ingested, "Merge produced no table.", code=1)
    rows_in = session.merged.row_count
    try:
        echo(
            f"  Merged {rows_in} rows into {len(session.reconciliation.columns)} canonical columns"
        )
        if not quiet:
            console.print(_mapping_table(session.reconciliation))

        # ── Rationalize ──────────────────────────────────────────
        echo("[blue]>[/blue] Rationalizing …")
        session = begin_rationalize(session)
        pending = session
        if quiet:
            session = run_phases(lambda: complete_rationalize(pending), scale=phase_scale)
        else:
            with console.status("Rationalizing data …") as status:

                def _show(phase: Phase) -> None:
                    status.update(f"{phase.label} …")

                session = run_phases(
                    lambda: complete_rationalize(pending), on_phase=_show, scale=phase_scale
                )
        if session.stats is None:
            raise _fail(
                out_dir, created_at, ingested, "Rationalization produced no statistics.",
                code=1, rows_in=rows_in,
            )
        stats = session.stats
        if not quiet:
            console.print(_stats_table(stats))

        # ── Export ───────────────────────────────────────────────
        session = advance_to_export(session)
        headers, rows = session.export_table()
        if export_format in (ExportFormat.csv, ExportFormat.both):
            csv_path = write_csv(out_dir, headers, rows)
            echo(f"  CSV      -> {csv_path}")
        if export_format in (ExportFormat.xlsx, ExportFormat.both):
            xlsx_path = write_workbook(out_dir, headers, rows)
            echo(f"  Workbook -> {xlsx_path}")

        report_path = write_stats_report(out_dir, stats)
        echo(f"  Report   -> {report_path}")
        manifest_path = _write_run_manifest(
            out_dir, created_at, ingested, rows_in=rows_in, rows_out=stats.rows_out
        )
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green] — {stats.rows_out} rows from {stats.total_files} file(s)",
                title="Pipeline Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        logger.debug("Unexpected failure", exc_info=True)
        raise _fail(
            out_dir, created_at, ingested, f"Unexpected internal error: {exc}",
            code=1, rows_in=rows_in,
        )


# ── reconcile command ────────────────────────────────────────────


@app.command()
def reconcile(
    inputs: list[Path] = typer.Option(
        ..., "--input", "-i",
        help="CSV or XLSX source file (repeat for each file).",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the manifest.",
    ),
    aliases: list[str] | None = typer.Option(
        None, "--alias", "-a",
        help="Extra header synonym: Canonical=alias.",
    ),
    alias_file: Path | None = typer.Option(
        None, "--aliases",
        help="File of extra header synonyms (Canonical=alias lines).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes the manifest.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging.",
    ),
) -> None:
    """Show how source headers map onto canonical columns, without exporting.

    Exit 0 = OK, exit 2 = nothing could be ingested.
    """
    _configure_logging(quiet=quiet, verbose=verbose)
    echo = _printer(quiet)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        registry = _build_registry(alias_file, aliases)
    except ValueError as exc:
        raise _fail(out_dir, created_at, None, str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]procurement-rationalizer[/bold] v{__version__}  [dim]reconcile mode[/dim]\n"
            f"Inputs: {len(inputs)} file(s)",
            title="Reconcile", border_style="cyan",
        ))

    session, ingested = _load_session(inputs, registry, echo)
    if session.stage is not Stage.preview:
        raise _fail(out_dir, created_at, ingested, "No files could be ingested.")

    if session.merged is None or session.reconciliation is None:
        raise _fail(out_dir, created_at, ingested, "Merge produced no table.", code=1)
    rows = session.merged.row_count
    manifest_path = _write_run_manifest(out_dir, created_at, ingested, rows_in=rows, rows_out=rows)
    if not quiet:
        console.print(_mapping_table(session.reconciliation))
        explicit = session.reconciliation.explicit_mappings()
        console.print(
            f"  {len(session.reconciliation.columns)} canonical columns, "
            f"{len(explicit)} non-trivial mappings, {rows} merged rows"
        )
    console.print(f"  Manifest -> {manifest_path}")
