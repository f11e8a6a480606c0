"""Cosmetic phase sequencing around the (synchronous) rationalization run."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Phase:
    key: str
    label: str
    offset: float  # seconds after the trigger at which the phase becomes active


RATIONALIZE_PHASES: tuple[Phase, ...] = (
    Phase("whitespace", "Normalizing whitespace", 0.0),
    Phase("abbreviations", "Expanding abbreviations", 0.375),
    Phase("casing", "Standardizing casing", 0.75),
    Phase("deduplicate", "Removing duplicates", 1.125),
)
RATIONALIZE_DURATION = 1.5


def run_phases(
    compute: Callable[[], T],
    *,
    on_phase: Callable[[Phase], None] | None = None,
    phases: tuple[Phase, ...] = RATIONALIZE_PHASES,
    duration: float = RATIONALIZE_DURATION,
    scale: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Report each phase at its offset, then return ``compute()``.

    The result is computed when the final phase ends; *scale* stretches or
    (with ``0``) removes the delays. There is no way to cancel a run.
    """
    if scale < 0:
        raise ValueError("scale must be >= 0")
    elapsed = 0.0
    for phase in phases:
        wait = (phase.offset - elapsed) * scale
        if wait > 0:
            sleep(wait)
        elapsed = phase.offset
        if on_phase is not None:
            on_phase(phase)
    remaining = (duration - elapsed) * scale
    if remaining > 0:
        sleep(remaining)
    return compute()
