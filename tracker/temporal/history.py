"""
History & Undo Stack
====================

The immutable tracker state record and the pure functions that move it
forward (tap) and backward (undo).

INVARIANTS:
- len(snapshots) == len(history) at all times
- snapshots[i] is the hypothesis set and lock flag right after history[i]
- A TrackerState is never mutated; every command returns a new one
- undo() immediately after a tap restores the exact pre-tap state
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Tuple

from ..contracts.hypothesis import HypothesisSet
from ..contracts.schedule import ScheduleTable
from .transitions import start_hypotheses, transition


@dataclass(frozen=True)
class Snapshot:
    """Hypothesis set plus the lock flag in force when it was produced."""
    hypotheses: HypothesisSet
    lock_flag: bool

    @staticmethod
    def empty(lock_flag: bool = False) -> Snapshot:
        return Snapshot(hypotheses=(), lock_flag=lock_flag)


@dataclass(frozen=True)
class TrackerState:
    """
    Complete engine state.

    WHY AN ORIGIN SNAPSHOT:
    The start commands install a non-empty hypothesis set before any tap.
    Undoing the first tap must land back on that set, so it is kept
    separately from the per-tap stack.
    """
    hypotheses: HypothesisSet = ()
    history: Tuple[str, ...] = ()
    lock_flag: bool = False
    snapshots: Tuple[Snapshot, ...] = ()
    origin: Snapshot = field(default_factory=Snapshot.empty)
    started: bool = False

    def __post_init__(self):
        if len(self.snapshots) != len(self.history):
            raise ValueError(
                f"Snapshot stack ({len(self.snapshots)}) out of step with history ({len(self.history)})"
            )

    @staticmethod
    def initial() -> TrackerState:
        return TrackerState()

    @property
    def is_contradiction(self) -> bool:
        """Events were observed but no hypothesis survives them."""
        return not self.hypotheses and bool(self.history)


# =============================================================================
# FORWARD
# =============================================================================

def record_tap(state: TrackerState, table: ScheduleTable, event: str) -> TrackerState:
    """Apply one observed event and push its snapshot."""
    next_set = transition(table, state.hypotheses, state.history, event, state.lock_flag)
    return replace(
        state,
        hypotheses=next_set,
        history=state.history + (event,),
        snapshots=state.snapshots + (Snapshot(next_set, state.lock_flag),),
        started=True,
    )


# =============================================================================
# BACKWARD
# =============================================================================

def undo(state: TrackerState) -> TrackerState:
    """Drop the last event; no-op when nothing has been observed."""
    if not state.history:
        return state

    snapshots = state.snapshots[:-1]
    restored = snapshots[-1] if snapshots else state.origin

    return replace(
        state,
        hypotheses=restored.hypotheses,
        lock_flag=restored.lock_flag,
        history=state.history[:-1],
        snapshots=snapshots,
    )


# =============================================================================
# STARTS AND RESETS
# =============================================================================

def _fresh(hypotheses: HypothesisSet, lock_flag: bool) -> TrackerState:
    return TrackerState(
        hypotheses=hypotheses,
        history=(),
        lock_flag=lock_flag,
        snapshots=(),
        origin=Snapshot(hypotheses, lock_flag),
        started=True,
    )


def start_known_cycle(state: TrackerState, table: ScheduleTable) -> TrackerState:
    """A new cycle is starting right now: nothing completed, boundary known."""
    return _fresh(start_hypotheses(table, cycle_reset=True, asserted=True), True)


def start_new_schedule(state: TrackerState, table: ScheduleTable) -> TrackerState:
    """A schedule is starting, but how much of the cycle is done is unknown."""
    return _fresh(start_hypotheses(table, cycle_reset=False, asserted=True), state.lock_flag)


def mark_unknown_position(state: TrackerState) -> TrackerState:
    """Forget everything except the lock flag; the next tap seeds."""
    return _fresh((), state.lock_flag)


def hard_reset(state: TrackerState) -> TrackerState:
    return TrackerState.initial()
