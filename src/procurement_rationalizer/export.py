"""Export writers — CSV text and the "Rationalized Data" workbook."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell.cell import TYPE_STRING
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from procurement_rationalizer import OUTPUT_BASENAME

SHEET_NAME = "Rationalized Data"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

_AUTO_WIDTH_SAMPLE_ROWS = 300
_MAX_COLUMN_WIDTH = 40


# ── CSV ──────────────────────────────────────────────────────────


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def to_csv_text(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Serialize a table: every field quoted, ``"`` doubled, header row first."""
    lines = [",".join(_quote(h) for h in headers)]
    lines.extend(",".join(_quote(cell) for cell in row) for row in rows)
    return "\n".join(lines)


def _write_atomic_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    # newline="" keeps "\n" separators on every platform.
    with open(tmp_path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    tmp_path.replace(path)
    return path


def write_csv(
    out_dir: Path, headers: Sequence[str], rows: Sequence[Sequence[str]]
) -> Path:
    """Write ``rationalized_procurement_data.csv`` and return the path."""
    out_dir = Path(out_dir)
    return _write_atomic_text(out_dir / f"{OUTPUT_BASENAME}.csv", to_csv_text(headers, rows))


# ── Workbook ─────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        ws.column_dimensions[letter].width = min(width + 4, _MAX_COLUMN_WIDTH)


def _set_text(ws: Worksheet, row: int, column: int, value: str) -> None:
    cell = ws.cell(row=row, column=column, value=value)
    # Store as text even when the value looks like a formula ("=SUM(...)").
    cell.data_type = TYPE_STRING


def build_workbook(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> Workbook:
    """Return a workbook with one sheet holding the header row and data rows."""
    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = SHEET_NAME

    for c_idx, header in enumerate(headers, 1):
        _set_text(ws, 1, c_idx, header)
    for r_idx, row in enumerate(rows, 2):
        for c_idx, value in enumerate(row, 1):
            _set_text(ws, r_idx, c_idx, value)

    if headers:
        _style_header(ws, len(headers))
        ws.freeze_panes = "A2"
        if rows:
            ws.auto_filter.ref = ws.dimensions
        _auto_width(ws)
    return wb


def write_workbook(
    out_dir: Path, headers: Sequence[str], rows: Sequence[Sequence[str]]
) -> Path:
    """Write ``rationalized_procurement_data.xlsx`` and return the path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{OUTPUT_BASENAME}.xlsx"

    wb = build_workbook(headers, rows)
    tmp_path = out_dir / f"{OUTPUT_BASENAME}.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
