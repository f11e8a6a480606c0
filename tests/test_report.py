from __future__ import annotations

import json
from pathlib import Path

from procurement_rationalizer.models import ColumnMapping, RationalizeStats, RunManifest
from procurement_rationalizer.report import write_manifest, write_stats_report


def test_write_stats_report_writes_expected_contract(tmp_path: Path) -> None:
    stats = RationalizeStats(
        total_files=2,
        total_rows=2,
        rows_out=1,
        source_columns=6,
        output_columns=3,
        duplicates_removed=1,
        casing_fixes=1,
        fields_normalized=1,
        mappings=[ColumnMapping("Quantity", frozenset({"Qty", "qty."}))],
    )

    out = write_stats_report(tmp_path, stats)

    assert out == tmp_path / "rationalize_report.json"
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data == {
        "abbreviation_fixes": 0,
        "casing_fixes": 1,
        "duplicates_removed": 1,
        "fields_normalized": 1,
        "mappings": [{"derived": False, "sources": ["Qty", "qty."], "target": "Quantity"}],
        "output_columns": 3,
        "rows_out": 1,
        "source_columns": 6,
        "total_files": 2,
        "total_rows": 2,
        "whitespace_fixes": 0,
    }


def test_write_manifest(tmp_path: Path) -> None:
    manifest = RunManifest(version="1.0", rows_in=4, rows_out=3, created_at_utc="now")

    out = write_manifest(tmp_path, manifest)

    data = json.loads(out.read_text(encoding="utf-8"))
    assert out.name == "run_manifest.json"
    assert data["rows_in"] == 4
    assert data["status"] == "success"
    assert data["error_code"] is None
