"""Rationalization pipeline — pure functions, no side effects."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import pandas as pd

from procurement_rationalizer.models import MergedTable, RationalizeStats
from procurement_rationalizer.utils import title_words

logger = logging.getLogger(__name__)

# ── Value dictionaries ──────────────────────────────────────────

VALUE_ABBREVIATIONS: dict[str, str] = {
    "ea": "Each",
    "ea.": "Each",
    "pcs": "Pieces",
    "pcs.": "Pieces",
    "qty": "Quantity",
    "qty.": "Quantity",
    "desc": "Description",
    "desc.": "Description",
    "p/n": "Part Number",
    "pn": "Part Number",
    "uom": "Unit of Measure",
    "no.": "Number",
    "num": "Number",
    "mfg": "Manufacturer",
    "mfg.": "Manufacturer",
    "mfr": "Manufacturer",
}

CASING_MIN_LENGTH = 3

_WHITESPACE_RE = re.compile(r"\s+")


# ── Cell passes ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CellFixes:
    """Which counted rules changed a single cell."""

    whitespace: bool = False
    abbreviation: bool = False
    casing: bool = False


def _normalize_whitespace(value: str) -> tuple[str, bool]:
    trimmed = value.strip()
    # Only trimming is counted; collapsing inner runs is not.
    return _WHITESPACE_RE.sub(" ", trimmed), trimmed != value


def _expand_abbreviation(value: str) -> tuple[str, bool]:
    expansion = VALUE_ABBREVIATIONS.get(value)
    if expansion is None:
        expansion = VALUE_ABBREVIATIONS.get(value.lower())
    if expansion is None or expansion == value:
        return value, False
    return expansion, True


def _normalize_casing(value: str) -> tuple[str, bool]:
    if len(value) <= CASING_MIN_LENGTH:
        return value, False
    if not (value.isupper() or value.islower()):
        return value, False
    titled = title_words(value)
    return titled, titled != value


def normalize_cell(value: str) -> tuple[str, CellFixes]:
    """Run whitespace, abbreviation and casing passes over one cell."""
    value, ws_fixed = _normalize_whitespace(value)
    value, abbr_fixed = _expand_abbreviation(value)
    value, case_fixed = _normalize_casing(value)
    return value, CellFixes(whitespace=ws_fixed, abbreviation=abbr_fixed, casing=case_fixed)


# ── Row passes ──────────────────────────────────────────────────


def _duplicate_mask(frame: pd.DataFrame) -> pd.Series:
    lowered = frame.apply(lambda col: col.str.lower())
    return lowered.duplicated(keep="first")


def _empty_mask(frame: pd.DataFrame) -> pd.Series:
    return frame.eq("").all(axis=1).astype(bool)


# ── Main rationalization function ───────────────────────────────


def rationalize(merged: MergedTable) -> tuple[MergedTable, RationalizeStats]:
    """Normalize and deduplicate *merged*.

    Returns ``(rationalized_table, stats)``. File and column counters in
    *stats* are left at zero; the caller fills them from the reconciliation.
    Re-running on the output yields no further fixes or removals.
    """
    whitespace_fixes = abbreviation_fixes = casing_fixes = fields_normalized = 0

    # 1-3. Cell passes
    normalized_rows: list[list[str]] = []
    for row in merged.rows:
        out_row: list[str] = []
        for cell in row:
            value, fixes = normalize_cell(cell)
            whitespace_fixes += fixes.whitespace
            abbreviation_fixes += fixes.abbreviation
            casing_fixes += fixes.casing
            fields_normalized += value != cell
            out_row.append(value)
        normalized_rows.append(out_row)

    if not merged.headers or not normalized_rows:
        # Zero-width rows are all empty: the first survives dedup, then is pruned.
        rows: tuple[tuple[str, ...], ...] = ()
        duplicates_removed = merged.row_count
    else:
        frame = pd.DataFrame(
            normalized_rows,
            columns=pd.RangeIndex(len(merged.headers)),
            dtype="string",
        )

        # 4. Deduplicate (case-insensitive, first occurrence wins)
        before = len(frame)
        frame = frame[~_duplicate_mask(frame)]
        duplicates_removed = before - len(frame)

        # 5. Prune rows with no content; folded into the duplicate counter
        deduped = len(frame)
        frame = frame[~_empty_mask(frame)]
        duplicates_removed += deduped - len(frame)

        rows = tuple(
            tuple(str(cell) for cell in values)
            for values in frame.itertuples(index=False, name=None)
        )
    result = MergedTable(headers=merged.headers, rows=rows)

    stats = RationalizeStats(
        total_rows=merged.row_count,
        rows_out=result.row_count,
        output_columns=len(merged.headers),
        duplicates_removed=duplicates_removed,
        whitespace_fixes=whitespace_fixes,
        abbreviation_fixes=abbreviation_fixes,
        casing_fixes=casing_fixes,
        fields_normalized=fields_normalized,
    )
    logger.info(
        "Rationalized %d rows -> %d (%d duplicates/empty removed, %d fields normalized)",
        stats.total_rows, stats.rows_out, stats.duplicates_removed, stats.fields_normalized,
    )
    return result, stats
