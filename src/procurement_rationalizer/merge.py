"""Table merger — re-project source rows into the canonical column space."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from procurement_rationalizer.models import MergedTable, SourceTable
from procurement_rationalizer.reconcile import Reconciliation, reconcile
from procurement_rationalizer.synonyms import SynonymRegistry

logger = logging.getLogger(__name__)


def merge(
    tables: Sequence[SourceTable],
    columns: Sequence[str],
    position_maps: Sequence[Mapping[int, int]],
) -> MergedTable:
    """Concatenate all rows of *tables* in canonical column order.

    Cells without a mapped position are skipped; a later source column
    overwrites an earlier one mapped to the same canonical index.
    """
    if len(position_maps) != len(tables):
        raise ValueError("position_maps must have one entry per table")

    width = len(columns)
    rows: list[tuple[str, ...]] = []
    for table, position_map in zip(tables, position_maps):
        for source_row in table.rows:
            out = [""] * width
            for i, cell in enumerate(source_row):
                target = position_map.get(i)
                if target is None or not 0 <= target < width:
                    continue
                out[target] = cell
            rows.append(tuple(out))

    logger.debug("Merged %d rows into %d columns", len(rows), width)
    return MergedTable(headers=tuple(columns), rows=tuple(rows))


def merge_tables(
    tables: Sequence[SourceTable], registry: SynonymRegistry | None = None
) -> tuple[MergedTable, Reconciliation]:
    """Reconcile headers of *tables* and merge them in one step."""
    result = reconcile(tables, registry)
    return merge(tables, result.columns, result.position_maps), result
