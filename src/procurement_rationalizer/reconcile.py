"""Column reconciliation — project every source header onto canonical columns."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from procurement_rationalizer.models import ColumnMapping, SourceTable
from procurement_rationalizer.synonyms import (
    DEFAULT_REGISTRY,
    Canonical,
    Resolution,
    SynonymRegistry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    """Result of :func:`reconcile`.

    ``position_maps[t][i]`` is the canonical column index for column ``i``
    of table ``t``.
    """

    columns: tuple[str, ...] = ()
    mappings: tuple[ColumnMapping, ...] = ()
    position_maps: tuple[dict[int, int], ...] = field(default_factory=tuple)

    @property
    def source_columns(self) -> int:
        """Count of distinct raw header strings across all tables."""
        return len({source for m in self.mappings for source in m.sources})

    def explicit_mappings(self) -> list[ColumnMapping]:
        """Mappings worth showing to a user (skips identity passthroughs)."""
        return [m for m in self.mappings if not m.is_trivial]


def reconcile(
    tables: Sequence[SourceTable], registry: SynonymRegistry | None = None
) -> Reconciliation:
    """Build the canonical column list and per-table position maps."""
    registry = registry or DEFAULT_REGISTRY

    # 1-2. Resolve each distinct raw header once, in first-seen order.
    resolved: dict[str, Resolution] = {}
    columns: list[str] = []
    column_index: dict[str, int] = {}
    for table in tables:
        for raw in table.headers:
            if raw in resolved:
                continue
            resolution = registry.lookup(raw)
            resolved[raw] = resolution
            if resolution.name not in column_index:
                column_index[resolution.name] = len(columns)
                columns.append(resolution.name)

    # 3. Group raw headers by target.
    sources: dict[str, set[str]] = {name: set() for name in columns}
    explicit: dict[str, bool] = {name: False for name in columns}
    for raw, resolution in resolved.items():
        sources[resolution.name].add(raw)
        if isinstance(resolution, Canonical):
            explicit[resolution.name] = True
    mappings = tuple(
        ColumnMapping(target=name, sources=frozenset(sources[name]), derived=not explicit[name])
        for name in columns
    )

    # 4. Per-table source index -> canonical index.
    position_maps: list[dict[int, int]] = []
    for table in tables:
        position_map: dict[int, int] = {}
        for i, raw in enumerate(table.headers):
            target = column_index.get(resolved[raw].name)
            if target is not None:
                position_map[i] = target
        position_maps.append(position_map)

    logger.debug(
        "Reconciled %d raw headers from %d tables into %d canonical columns",
        len(resolved), len(tables), len(columns),
    )
    return Reconciliation(
        columns=tuple(columns),
        mappings=mappings,
        position_maps=tuple(position_maps),
    )
