from __future__ import annotations

import pytest

from procurement_rationalizer.models import (
    ColumnMapping,
    MergedTable,
    RationalizeStats,
    RunManifest,
    SourceTable,
)


def test_source_table_coerces_sequences_to_tuples() -> None:
    table = SourceTable("a.csv", ["Qty"], [["1"], ["2"]])  # type: ignore[arg-type]

    assert table.headers == ("Qty",)
    assert table.rows == (("1",), ("2",))
    assert table.row_count == 2


def test_source_table_rejects_non_string_cells() -> None:
    with pytest.raises(TypeError, match="rows"):
        SourceTable("a.csv", ("Qty",), ((1,),))  # type: ignore[arg-type]

    with pytest.raises(TypeError, match="headers"):
        SourceTable("a.csv", "Qty")  # type: ignore[arg-type]


def test_merged_table_enforces_row_width() -> None:
    with pytest.raises(ValueError, match="expected 2"):
        MergedTable(headers=("A", "B"), rows=(("1",),))


def test_merged_table_as_lists_returns_copies() -> None:
    table = MergedTable(headers=("A",), rows=(("1",),))

    headers, rows = table.as_lists()
    headers.append("B")
    rows[0].append("2")

    assert table.headers == ("A",)
    assert table.rows == (("1",),)


def test_column_mapping_triviality_and_dict() -> None:
    trivial = ColumnMapping("Notes", frozenset({"notes"}), derived=True)
    merged = ColumnMapping("Color", frozenset({"color", "Color"}), derived=True)
    synonym = ColumnMapping("Quantity", frozenset({"Qty"}))

    assert trivial.is_trivial
    assert not merged.is_trivial
    assert not synonym.is_trivial
    assert merged.to_dict() == {"target": "Color", "sources": ["Color", "color"], "derived": True}


def test_stats_enforce_row_conservation() -> None:
    with pytest.raises(ValueError, match="duplicates_removed"):
        RationalizeStats(total_rows=5, rows_out=3, duplicates_removed=1)

    with pytest.raises(ValueError, match="rows_out"):
        RationalizeStats(total_rows=1, rows_out=2)


def test_stats_reject_negative_and_non_integer_counts() -> None:
    with pytest.raises(ValueError, match="casing_fixes"):
        RationalizeStats(casing_fixes=-1)

    with pytest.raises(TypeError, match="total_files"):
        RationalizeStats(total_files=True)  # type: ignore[arg-type]

    with pytest.raises(TypeError, match="mappings"):
        RationalizeStats(mappings=["Qty"])  # type: ignore[list-item]


def test_stats_to_dict_reports_only_meaningful_mappings() -> None:
    stats = RationalizeStats(
        total_rows=3,
        rows_out=2,
        duplicates_removed=1,
        whitespace_fixes=1,
        abbreviation_fixes=2,
        casing_fixes=3,
        mappings=[
            ColumnMapping("Quantity", frozenset({"Qty", "qty."})),
            ColumnMapping("Notes", frozenset({"Notes"}), derived=True),
        ],
    )

    payload = stats.to_dict()

    assert stats.normalization_fixes == 6
    assert payload["mappings"] == [
        {"target": "Quantity", "sources": ["Qty", "qty."], "derived": False}
    ]
    assert payload["duplicates_removed"] == 1


def test_run_manifest_validation() -> None:
    with pytest.raises(TypeError, match="rows_in"):
        RunManifest(rows_in=True)  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="rows_out"):
        RunManifest(rows_out=-2)

    with pytest.raises(ValueError, match="status"):
        RunManifest(status="maybe")


def test_run_manifest_to_dict_copies_entries() -> None:
    manifest = RunManifest(inputs=[{"path": "a.csv", "sha256": "x"}], error_code=2, status="failed")

    payload = manifest.to_dict()
    payload["inputs"][0]["path"] = "changed"

    assert manifest.inputs[0]["path"] == "a.csv"
    assert payload["error_code"] == 2
    assert payload["tool"] == "procurement-rationalizer"
