"""Data models shared across the reconcile → merge → rationalize flow."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_tuple(values: Sequence[Any] | None, field_name: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return tuple(normalized)


def _to_rows(
    rows: Sequence[Sequence[Any]] | None, width: int | None, field_name: str
) -> tuple[tuple[str, ...], ...]:
    if rows is None:
        return ()
    normalized: list[tuple[str, ...]] = []
    for idx, row in enumerate(rows):
        cells = _to_string_tuple(row, f"{field_name}[{idx}]")
        if width is not None and len(cells) != width:
            raise ValueError(
                f"{field_name}[{idx}] has {len(cells)} cells, expected {width}"
            )
        normalized.append(cells)
    return tuple(normalized)


# ── Tables ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class SourceTable:
    """One ingested file: trimmed headers plus string rows.

    The decoder pads rows to the header width; row length is not enforced
    here so the merger's skip rule still covers hand-built tables.
    """

    source_name: str
    headers: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _to_string_tuple(self.headers, "headers"))
        object.__setattr__(self, "rows", _to_rows(self.rows, None, "rows"))

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class MergedTable:
    """A table in canonical column space.

    Contract invariant: every row has exactly ``len(headers)`` string cells.
    Used for both the merged and the rationalized table.
    """

    headers: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        headers = _to_string_tuple(self.headers, "headers")
        object.__setattr__(self, "headers", headers)
        object.__setattr__(self, "rows", _to_rows(self.rows, len(headers), "rows"))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def as_lists(self) -> tuple[list[str], list[list[str]]]:
        """Return mutable copies of ``(headers, rows)`` for export writers."""
        return list(self.headers), [list(row) for row in self.rows]


@dataclass(frozen=True)
class ColumnMapping:
    """Which original header names collapsed into one canonical column."""

    target: str
    sources: frozenset[str] = frozenset()
    derived: bool = False

    @property
    def is_trivial(self) -> bool:
        """A passthrough column fed by a single header is not worth reporting."""
        return self.derived and len(self.sources) <= 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "sources": sorted(self.sources),
            "derived": self.derived,
        }


# ── Reports ──────────────────────────────────────────────────────


@dataclass
class RationalizeStats:
    """Counters describing one reconcile + rationalize run.

    Contract invariant: ``rows_out + duplicates_removed == total_rows``.
    Empty rows pruned after deduplication are counted in
    ``duplicates_removed`` as well.
    """

    total_files: int = 0
    total_rows: int = 0
    rows_out: int = 0
    source_columns: int = 0
    output_columns: int = 0
    duplicates_removed: int = 0
    whitespace_fixes: int = 0
    abbreviation_fixes: int = 0
    casing_fixes: int = 0
    fields_normalized: int = 0
    mappings: list[ColumnMapping] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in (
            "total_files",
            "total_rows",
            "rows_out",
            "source_columns",
            "output_columns",
            "duplicates_removed",
            "whitespace_fixes",
            "abbreviation_fixes",
            "casing_fixes",
            "fields_normalized",
        ):
            setattr(self, name, _to_non_negative_int(getattr(self, name), name))
        if self.mappings is None:
            self.mappings = []
        for mapping in self.mappings:
            if not isinstance(mapping, ColumnMapping):
                raise TypeError("mappings items must be ColumnMapping")
        if self.rows_out > self.total_rows:
            raise ValueError("rows_out must be <= total_rows")
        if self.rows_out + self.duplicates_removed != self.total_rows:
            raise ValueError("duplicates_removed must equal total_rows - rows_out")

    @property
    def normalization_fixes(self) -> int:
        return self.whitespace_fixes + self.abbreviation_fixes + self.casing_fixes

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_rows": self.total_rows,
            "rows_out": self.rows_out,
            "source_columns": self.source_columns,
            "output_columns": self.output_columns,
            "duplicates_removed": self.duplicates_removed,
            "whitespace_fixes": self.whitespace_fixes,
            "abbreviation_fixes": self.abbreviation_fixes,
            "casing_fixes": self.casing_fixes,
            "fields_normalized": self.fields_normalized,
            "mappings": [m.to_dict() for m in self.mappings if not m.is_trivial],
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "procurement-rationalizer"
    version: str = ""
    inputs: list[dict[str, str]] = field(default_factory=list)
    skipped: list[dict[str, str]] = field(default_factory=list)
    output_dir: str = ""
    created_at_utc: str = ""
    rows_in: int = 0
    rows_out: int = 0
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")
        if self.error_code is not None:
            self.error_code = _to_non_negative_int(self.error_code, "error_code")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "inputs": [dict(item) for item in self.inputs],
            "skipped": [dict(item) for item in self.skipped],
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
