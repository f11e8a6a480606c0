"""Session state — the upload → preview → rationalize → export workflow.

Every transition is a pure function ``(session, input) -> session``; a
:class:`Session` is never mutated in place.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from procurement_rationalizer.merge import merge_tables
from procurement_rationalizer.models import MergedTable, RationalizeStats, SourceTable
from procurement_rationalizer.pipeline import rationalize
from procurement_rationalizer.reconcile import Reconciliation
from procurement_rationalizer.synonyms import SynonymRegistry

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    upload = "upload"
    preview = "preview"
    rationalize = "rationalize"
    export = "export"

    @property
    def position(self) -> int:
        return list(Stage).index(self)


class TransitionError(ValueError):
    """Raised when a navigation action is not allowed in the current stage."""


@dataclass(frozen=True)
class Session:
    stage: Stage = Stage.upload
    tables: tuple[SourceTable, ...] = ()
    merged: MergedTable | None = None
    reconciliation: Reconciliation | None = None
    rationalized: MergedTable | None = None
    stats: RationalizeStats | None = None
    processing: bool = False

    @property
    def has_results(self) -> bool:
        return self.rationalized is not None and not self.processing

    def can_advance(self) -> bool:
        """Whether the forward control of the current stage is enabled."""
        if self.stage is Stage.upload:
            return bool(self.tables)
        if self.stage is Stage.preview:
            return self.merged is not None
        if self.stage is Stage.rationalize:
            return self.has_results
        return False

    def export_table(self) -> tuple[list[str], list[list[str]]]:
        """Return the final ``(headers, rows)`` handed to the export writers."""
        if self.rationalized is None:
            raise TransitionError("No rationalized data to export")
        return self.rationalized.as_lists()


def _require(session: Session, stage: Stage, action: str) -> None:
    if session.stage is not stage:
        raise TransitionError(
            f"Cannot {action} from stage {session.stage.value!r} (expected {stage.value!r})"
        )


def reset() -> Session:
    """Return a fresh session with no tables and no derived data."""
    return Session()


def ingest(session: Session, tables: Iterable[SourceTable]) -> Session:
    """Append *tables* to the session (upload stage only)."""
    _require(session, Stage.upload, "add files")
    added = tuple(tables)
    if not added:
        return session
    logger.debug("Session now holds %d tables", len(session.tables) + len(added))
    return replace(session, tables=session.tables + added)


def advance_to_preview(
    session: Session, registry: SynonymRegistry | None = None
) -> Session:
    """Reconcile and merge the loaded tables, then move to preview.

    With no tables loaded the session is returned unchanged.
    """
    _require(session, Stage.upload, "preview")
    if not session.tables:
        return session
    merged, reconciliation = merge_tables(session.tables, registry)
    # A fresh merge invalidates anything derived from the previous one.
    return replace(
        session,
        stage=Stage.preview,
        merged=merged,
        reconciliation=reconciliation,
        rationalized=None,
        stats=None,
        processing=False,
    )


def begin_rationalize(session: Session) -> Session:
    """Enter the rationalize stage in its processing sub-state."""
    if session.processing:
        raise TransitionError("Rationalization already in progress")
    _require(session, Stage.preview, "rationalize")
    if session.merged is None:
        raise TransitionError("Nothing merged to rationalize")
    return replace(session, stage=Stage.rationalize, processing=True)


def complete_rationalize(session: Session) -> Session:
    """Run the pipeline and move to the results sub-state."""
    _require(session, Stage.rationalize, "complete rationalization")
    if not session.processing or session.merged is None:
        raise TransitionError("Rationalization was not started")
    table, stats = rationalize(session.merged)
    reconciliation = session.reconciliation or Reconciliation()
    stats = replace(
        stats,
        total_files=len(session.tables),
        source_columns=reconciliation.source_columns,
        mappings=list(reconciliation.mappings),
    )
    return replace(session, rationalized=table, stats=stats, processing=False)


def rationalize_session(session: Session) -> Session:
    """``begin_rationalize`` followed by ``complete_rationalize``."""
    return complete_rationalize(begin_rationalize(session))


def advance_to_export(session: Session) -> Session:
    _require(session, Stage.rationalize, "export")
    if not session.has_results:
        raise TransitionError("Rationalization results are not ready")
    return replace(session, stage=Stage.export)


def go_back(session: Session, stage: Stage) -> Session:
    """Navigate back to an earlier, already-visited stage.

    ``upload`` is only reachable from ``preview``; later stages leave via
    :func:`reset`.
    """
    if session.processing:
        raise TransitionError("Cannot navigate while rationalization is in progress")
    if stage.position >= session.stage.position:
        raise TransitionError(f"{stage.value!r} is not behind {session.stage.value!r}")
    if stage is Stage.upload and session.stage is not Stage.preview:
        raise TransitionError(
            f"Cannot go back to 'upload' from {session.stage.value!r}; use reset"
        )
    return replace(session, stage=stage)
