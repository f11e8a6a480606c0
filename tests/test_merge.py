from __future__ import annotations

import pytest

from procurement_rationalizer.merge import merge, merge_tables
from procurement_rationalizer.models import SourceTable


def _table(name: str, headers: list[str], rows: list[list[str]]) -> SourceTable:
    return SourceTable(source_name=name, headers=tuple(headers), rows=tuple(tuple(r) for r in rows))


def test_merge_fills_missing_columns_with_empty_strings() -> None:
    a = _table("a.csv", ["Part Number", "Qty"], [["100", "5"]])
    b = _table("b.csv", ["P/N", "Vendor"], [["200", "Acme"]])

    merged, result = merge_tables([a, b])

    assert merged.headers == ("Part Number", "Quantity", "Vendor")
    assert merged.rows == (("100", "5", ""), ("200", "", "Acme"))
    assert result.columns == merged.headers


def test_merge_keeps_table_then_row_order() -> None:
    a = _table("a.csv", ["Qty"], [["1"], ["2"]])
    b = _table("b.csv", ["Units"], [["3"], ["4"]])

    merged, _ = merge_tables([a, b])

    assert [row[0] for row in merged.rows] == ["1", "2", "3", "4"]


def test_last_source_column_wins_when_two_map_to_same_target() -> None:
    table = _table("a.csv", ["Qty", "Units"], [["1", "2"]])

    merged, _ = merge_tables([table])

    assert merged.headers == ("Quantity",)
    assert merged.rows == (("2",),)


def test_ragged_rows_are_tolerated() -> None:
    table = _table("a.csv", ["Qty", "Vendor"], [["1"], ["2", "Acme", "extra"]])

    merged = merge([table], ["Quantity", "Vendor"], [{0: 0, 1: 1}])

    assert merged.rows == (("1", ""), ("2", "Acme"))


def test_out_of_range_target_is_skipped() -> None:
    table = _table("a.csv", ["Qty"], [["1"]])

    merged = merge([table], ["Quantity"], [{0: 5}])

    assert merged.rows == (("",),)


def test_unmapped_positions_are_dropped() -> None:
    table = _table("a.csv", ["Qty", "Junk"], [["1", "x"]])

    merged = merge([table], ["Quantity"], [{0: 0}])

    assert merged.rows == (("1",),)


def test_position_maps_must_align_with_tables() -> None:
    with pytest.raises(ValueError, match="one entry per table"):
        merge([_table("a.csv", ["Qty"], [])], ["Quantity"], [])


def test_merge_does_not_mutate_sources() -> None:
    a = _table("a.csv", ["Qty"], [["1"]])

    merge_tables([a])

    assert a.rows == (("1",),)
