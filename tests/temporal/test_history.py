"""
History & Undo Tests
====================

INVARIANTS TESTED:
1. len(snapshots) == len(history) after every command
2. Undo right after a tap restores the pre-tap state exactly
3. Repeated undo unwinds to the just-started state
4. Start commands reset history and choose the lock flag
"""

import pytest
from dataclasses import FrozenInstanceError, replace

from tracker.contracts.hypothesis import Hypothesis
from tracker.temporal.history import (
    Snapshot, TrackerState, record_tap, undo,
    start_known_cycle, start_new_schedule, mark_unknown_position, hard_reset
)
from tests.fixtures import DEFAULT, tap_all


SCHEDULE_TWO = list(DEFAULT.schedule(2))


class TestTrackerState:
    """The state record is immutable and self-consistent."""

    def test_initial_state_is_empty(self):
        state = TrackerState.initial()
        assert state.hypotheses == ()
        assert state.history == ()
        assert not state.lock_flag
        assert not state.started
        assert state.origin == Snapshot.empty()

    def test_state_is_frozen(self):
        with pytest.raises(FrozenInstanceError):
            TrackerState.initial().lock_flag = True

    def test_rejects_mismatched_stack(self):
        with pytest.raises(ValueError):
            TrackerState(history=("T",), snapshots=())

    def test_contradiction_flag(self):
        assert not TrackerState.initial().is_contradiction
        state = record_tap(start_known_cycle(TrackerState.initial(), DEFAULT), DEFAULT, "F")
        assert state.is_contradiction


class TestRecordTap:
    """A tap appends history and pushes a snapshot."""

    def test_tap_pushes_snapshot(self):
        state = start_known_cycle(TrackerState.initial(), DEFAULT)
        after = record_tap(state, DEFAULT, "T")

        assert after.history == ("T",)
        assert after.snapshots == (Snapshot(after.hypotheses, True),)
        assert after.started

    def test_tap_does_not_mutate_input(self):
        state = start_known_cycle(TrackerState.initial(), DEFAULT)
        before = replace(state)
        record_tap(state, DEFAULT, "T")
        assert state == before

    def test_stack_tracks_history_length(self):
        state = tap_all(TrackerState.initial(), DEFAULT, ["T", "T", "A", "T", "F"])
        assert len(state.snapshots) == len(state.history) == 5


class TestUndo:
    """Undo is the exact inverse of the last tap."""

    def test_undo_on_empty_history_is_noop(self):
        state = start_known_cycle(TrackerState.initial(), DEFAULT)
        assert undo(state) is state

    def test_undo_restores_previous_snapshot(self):
        state = tap_all(start_known_cycle(TrackerState.initial(), DEFAULT), DEFAULT, ["T", "T"])
        after = record_tap(state, DEFAULT, "A")
        assert undo(after) == state

    def test_undo_first_tap_restores_start_set(self):
        started = start_known_cycle(TrackerState.initial(), DEFAULT)
        assert undo(record_tap(started, DEFAULT, "T")) == started

    def test_undo_first_tap_from_blank_slate(self):
        blank = mark_unknown_position(TrackerState.initial())
        restored = undo(record_tap(blank, DEFAULT, "A"))
        assert restored.hypotheses == ()
        assert restored.history == ()
        assert restored == blank

    def test_repeated_undo_unwinds_completely(self):
        started = start_known_cycle(TrackerState.initial(), DEFAULT)
        state = tap_all(started, DEFAULT, SCHEDULE_TWO)
        for _ in SCHEDULE_TWO:
            state = undo(state)
        assert state == started

    def test_undo_out_of_contradiction(self):
        state = tap_all(start_known_cycle(TrackerState.initial(), DEFAULT), DEFAULT, ["T"])
        broken = record_tap(state, DEFAULT, "J")
        assert broken.is_contradiction
        assert undo(broken) == state


class TestStartCommands:
    """Start commands reset history and pick the lock flag."""

    def test_start_known_cycle_sets_lock(self):
        state = start_known_cycle(TrackerState.initial(), DEFAULT)
        assert state.lock_flag
        assert state.started
        assert state.history == ()
        assert state.hypotheses == tuple(Hypothesis(i, 1, 0, True) for i in (1, 2, 3, 4))
        assert state.origin == Snapshot(state.hypotheses, True)

    def test_start_new_schedule_keeps_lock(self):
        locked = start_known_cycle(TrackerState.initial(), DEFAULT)
        assert start_new_schedule(locked, DEFAULT).lock_flag
        assert not start_new_schedule(TrackerState.initial(), DEFAULT).lock_flag

    def test_start_new_schedule_clears_history(self):
        state = tap_all(TrackerState.initial(), DEFAULT, ["T", "F"])
        fresh = start_new_schedule(state, DEFAULT)
        assert fresh.history == ()
        assert fresh.snapshots == ()
        assert len(fresh.hypotheses) == 32

    def test_mark_unknown_position_keeps_lock_only(self):
        state = tap_all(start_known_cycle(TrackerState.initial(), DEFAULT), DEFAULT, ["T"])
        unknown = mark_unknown_position(state)
        assert unknown.hypotheses == ()
        assert unknown.history == ()
        assert unknown.lock_flag
        assert unknown.started

    def test_next_tap_after_unknown_position_seeds(self):
        unknown = mark_unknown_position(TrackerState.initial())
        after = record_tap(unknown, DEFAULT, "A")
        assert {(h.schedule_id, h.position) for h in after.hypotheses} == {
            (2, 4), (3, 8), (4, 8), (4, 13)
        }

    def test_hard_reset_is_pristine(self):
        state = tap_all(start_known_cycle(TrackerState.initial(), DEFAULT), DEFAULT, ["T", "T"])
        assert hard_reset(state) == TrackerState.initial()
