"""Tests for CSV and workbook export contracts."""

from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook

from procurement_rationalizer.export import (
    HEADER_FILL,
    SHEET_NAME,
    build_workbook,
    to_csv_text,
    write_csv,
    write_workbook,
)

HEADERS = ["Part Number", "Quantity", "Description"]
ROWS = [["100", "5", 'Widget 3/4" Steel'], ["200", "1", "Nut, Hex"]]


def test_csv_quotes_every_field_and_doubles_quotes() -> None:
    text = to_csv_text(HEADERS, ROWS)

    assert text.split("\n") == [
        '"Part Number","Quantity","Description"',
        '"100","5","Widget 3/4"" Steel"',
        '"200","1","Nut, Hex"',
    ]
    assert not text.endswith("\n")


def test_csv_with_no_rows_is_header_only() -> None:
    assert to_csv_text(["A"], []) == '"A"'


def test_write_csv_uses_fixed_name_and_lf_newlines(tmp_path: Path) -> None:
    path = write_csv(tmp_path / "out", HEADERS, ROWS)

    assert path.name == "rationalized_procurement_data.csv"
    raw = path.read_bytes()
    assert b"\r\n" not in raw
    assert raw.decode("utf-8") == to_csv_text(HEADERS, ROWS)
    assert not path.with_suffix(".csv.tmp").exists()


def test_write_workbook_single_named_sheet(tmp_path: Path) -> None:
    path = write_workbook(tmp_path, HEADERS, ROWS)

    assert path.name == "rationalized_procurement_data.xlsx"
    wb = load_workbook(path)
    assert wb.sheetnames == [SHEET_NAME] == ["Rationalized Data"]
    ws = wb[SHEET_NAME]
    values = [[cell.value for cell in row] for row in ws.iter_rows()]
    assert values == [HEADERS, *ROWS]
    assert ws.freeze_panes == "A2"
    assert ws.cell(row=1, column=1).font.bold
    assert not (tmp_path / "rationalized_procurement_data.tmp.xlsx").exists()


def test_numeric_looking_text_stays_text(tmp_path: Path) -> None:
    path = write_workbook(tmp_path, ["Qty"], [["007"]])

    ws = load_workbook(path)["Rationalized Data"]

    assert ws.cell(row=2, column=1).value == "007"


def test_formula_like_values_are_stored_as_text() -> None:
    wb = build_workbook(["Note"], [["=SUM(A1:A9)"]])
    ws = wb[SHEET_NAME]

    cell = ws.cell(row=2, column=1)
    assert cell.value == "=SUM(A1:A9)"
    assert cell.data_type == "s"


def test_header_styling_and_filter() -> None:
    ws = build_workbook(HEADERS, ROWS)[SHEET_NAME]

    assert ws.cell(row=1, column=2).fill.start_color.rgb == HEADER_FILL.start_color.rgb
    assert ws.auto_filter.ref == "A1:C3"
    assert ws.column_dimensions["A"].width >= len("Part Number")


def test_empty_table_workbook() -> None:
    ws = build_workbook([], [])[SHEET_NAME]

    assert ws.max_row == 1
    assert ws.cell(row=1, column=1).value is None
