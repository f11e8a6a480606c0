"""Run artifact persistence — statistics report and manifest."""

from __future__ import annotations

from pathlib import Path

from procurement_rationalizer.io import write_json
from procurement_rationalizer.models import RationalizeStats, RunManifest

STATS_FILENAME = "rationalize_report.json"
MANIFEST_FILENAME = "run_manifest.json"


def write_stats_report(out_dir: Path, stats: RationalizeStats) -> Path:
    """Write ``rationalize_report.json`` into *out_dir* and return the path."""
    return write_json(out_dir / STATS_FILENAME, stats.to_dict())


def write_manifest(out_dir: Path, manifest: RunManifest) -> Path:
    """Write ``run_manifest.json`` into *out_dir* and return the path."""
    return write_json(out_dir / MANIFEST_FILENAME, manifest.to_dict())
