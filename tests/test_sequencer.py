from __future__ import annotations

import pytest

from procurement_rationalizer.sequencer import (
    RATIONALIZE_DURATION,
    RATIONALIZE_PHASES,
    Phase,
    run_phases,
)


def test_phases_fire_in_order_and_compute_runs_last() -> None:
    events: list[str] = []
    sleeps: list[float] = []

    def _compute() -> str:
        events.append("compute")
        return "done"

    result = run_phases(
        _compute,
        on_phase=lambda phase: events.append(phase.key),
        sleep=sleeps.append,
    )

    assert result == "done"
    assert events == ["whitespace", "abbreviations", "casing", "deduplicate", "compute"]
    assert sum(sleeps) == pytest.approx(RATIONALIZE_DURATION)
    assert len(RATIONALIZE_PHASES) == 4


def test_scale_zero_never_sleeps() -> None:
    sleeps: list[float] = []

    assert run_phases(lambda: 42, scale=0, sleep=sleeps.append) == 42
    assert sleeps == []


def test_scale_stretches_offsets() -> None:
    sleeps: list[float] = []
    phases = (Phase("a", "A", 0.0), Phase("b", "B", 1.0))

    run_phases(lambda: None, phases=phases, duration=2.0, scale=0.5, sleep=sleeps.append)

    assert sleeps == [0.5, 0.5]


def test_negative_scale_is_rejected() -> None:
    with pytest.raises(ValueError, match="scale"):
        run_phases(lambda: None, scale=-1)
