"""I/O helpers — decode input files into source tables, write JSON artifacts."""

from __future__ import annotations

import csv
import json
import logging
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, cast

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from procurement_rationalizer.models import SourceTable

logger = logging.getLogger(__name__)

_SNIFF_DELIMITERS = ",;\t|"
_SNIFF_SAMPLE_CHARS = 64 * 1024

# ── Loading ──────────────────────────────────────────────────────


def _read_sample(path: Path, encoding: str) -> str:
    with open(path, encoding=encoding, errors="strict", newline="") as fh:
        sample = fh.read(_SNIFF_SAMPLE_CHARS)
    # Drop a trailing partial line so it does not skew the guess.
    return sample[: sample.rfind("\n") + 1] or sample


def sniff_delimiter(sample: str) -> str:
    """Guess the delimiter of a CSV *sample* among ``, ; TAB |``.

    Falls back to ``","`` when no candidate is consistent across lines, so a
    single-column file keeps its header intact.
    """
    try:
        return csv.Sniffer().sniff(sample, delimiters=_SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return ","


def load_table(path: Path, delimiter: str | None = None) -> pd.DataFrame:
    """Load a CSV or Excel file and return a raw all-string grid.

    The grid is read without a header row (``header=None``): row 0 holds the
    raw header cells, so repeated header names are kept as-is.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If *path* is a directory, the extension is not supported, or
        decoding/parsing fails.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise ValueError(f"Input path is a directory, not a file: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        last_exc: Exception | None = None
        for encoding in ("utf-8-sig", "utf-8", "latin-1"):
            try:
                sep = delimiter or sniff_delimiter(_read_sample(path, encoding))
                return pd.read_csv(
                    path,
                    header=None,
                    dtype="string",
                    sep=sep,
                    encoding=encoding,
                    encoding_errors="strict",
                    keep_default_na=False,
                    skip_blank_lines=True,
                )
            except (UnicodeDecodeError, pd.errors.ParserError) as exc:
                last_exc = exc
        raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc

    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    if suffix in (".xlsx", ".xlsm", ".xltx", ".xltm"):
        try:
            return read_excel(path, engine="openpyxl", header=None, dtype="string", sheet_name=0)
        except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
            raise ValueError(f"Could not read workbook {path} (corrupt or not a workbook)") from exc

    if suffix == ".xls":
        try:
            import xlrd
        except ImportError as exc:
            raise ValueError(
                "Unsupported .xls input unless 'xlrd' is installed. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc
        try:
            return read_excel(path, engine="xlrd", header=None, dtype="string", sheet_name=0)
        except xlrd.XLRDError as exc:
            raise ValueError(f"Could not read workbook {path} (corrupt or not a workbook)") from exc

    raise ValueError(
        f"Unsupported file type: {suffix!r}. Use .csv, .xlsx, or .xls"
    )


def _cell_text(value: Any) -> str:
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def frame_to_source_table(source_name: str, frame: pd.DataFrame) -> SourceTable:
    """Convert a raw header-less grid into a :class:`SourceTable`.

    The first non-blank row becomes the header row. Headers and cells are
    trimmed strings, missing values become ``""``, rows are padded or
    truncated to the header width, and rows with no content are dropped.
    """
    grid = [
        tuple(_cell_text(v) for v in values)
        for values in frame.itertuples(index=False, name=None)
    ]
    grid = [cells for cells in grid if any(cells)]
    if not grid:
        return SourceTable(source_name=source_name, headers=(), rows=())

    headers, body = grid[0], grid[1:]
    rows: list[tuple[str, ...]] = []
    for cells in body:
        cells = (cells + ("",) * len(headers))[: len(headers)]
        if any(cells):
            rows.append(cells)
    return SourceTable(source_name=source_name, headers=headers, rows=tuple(rows))


def decode_source(path: Path) -> SourceTable:
    """Load *path* and return it as a :class:`SourceTable`."""
    path = Path(path)
    frame = load_table(path)
    table = frame_to_source_table(path.name, frame)
    if not table.headers:
        raise ValueError(f"No header row found in {path.name}")
    return table


# ── Batch ingestion ─────────────────────────────────────────────


@dataclass(frozen=True)
class IngestFailure:
    path: Path
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": str(self.path), "error": self.message}


@dataclass
class IngestResult:
    tables: list[SourceTable] = field(default_factory=list)
    paths: list[Path] = field(default_factory=list)
    failures: list[IngestFailure] = field(default_factory=list)


def ingest_files(
    paths: Iterable[Path], decoder: Callable[[Path], SourceTable] = decode_source
) -> IngestResult:
    """Decode *paths* one by one; a file that fails is logged and skipped."""
    result = IngestResult()
    for path in paths:
        path = Path(path)
        try:
            table = decoder(path)
        except (FileNotFoundError, ValueError, OSError, pd.errors.EmptyDataError) as exc:
            logger.warning("Skipping %s: %s", path.name, exc)
            result.failures.append(IngestFailure(path=path, message=str(exc)))
            continue
        logger.debug(
            "Ingested %s: %d columns, %d rows", path.name, len(table.headers), table.row_count
        )
        result.tables.append(table)
        result.paths.append(path)
    return result


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
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
