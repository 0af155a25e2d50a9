"""
Transition Engine Tests
=======================

INVARIANTS TESTED:
1. Seeding places a hypothesis at every matching position and mask
2. Advance prunes mismatches and moves matches one step
3. Finishing a schedule moves to between-schedules with its bit set
4. Lock bias keeps the most frequent mask, first seen on ties
5. A contradiction stays a contradiction
"""

import pytest

from tracker.contracts.hypothesis import Hypothesis, schedule_bit
from tracker.temporal.transitions import (
    start_hypotheses, seed, advance, apply_lock_bias, transition
)
from tests.fixtures import DEFAULT, RENAMED_TABLE


class TestStartHypotheses:
    """Starting sets for the two start commands."""

    def test_cycle_reset_uses_empty_mask_only(self):
        hyps = start_hypotheses(DEFAULT, cycle_reset=True, asserted=True)
        assert hyps == tuple(Hypothesis(i, 1, 0, True) for i in (1, 2, 3, 4))

    def test_unknown_cycle_uses_every_compatible_mask(self):
        hyps = start_hypotheses(DEFAULT, cycle_reset=False, asserted=True)
        # 8 masks leave any given schedule's bit clear
        assert len(hyps) == 4 * 8
        for h in hyps:
            assert h.position == 1
            assert not h.has_completed(h.schedule_id)


class TestSeed:
    """The first tap from a blank slate could be any occurrence."""

    def test_seed_positions_match_event(self):
        hyps = seed(DEFAULT, "A")
        assert hyps
        for h in hyps:
            assert DEFAULT.symbol_at(h.schedule_id, h.position) == "A"
            assert not h.asserted_start
            assert not h.has_completed(h.schedule_id)

    def test_seed_counts(self):
        # "T" appears 6 times in each of the 4 schedules, 8 masks each
        assert len(seed(DEFAULT, "T")) == 4 * 6 * 8

    def test_seed_covers_every_occurrence(self):
        positions = {(h.schedule_id, h.position) for h in seed(DEFAULT, "A")}
        assert positions == {(2, 3), (3, 7), (4, 7), (4, 12)}


class TestAdvance:
    """Matching hypotheses move on, others are pruned."""

    def test_mismatch_is_pruned(self):
        assert advance(DEFAULT, [Hypothesis(2, 3, 0)], "T") == ()

    def test_match_moves_one_step(self):
        h = Hypothesis(2, 3, 0b0100, True)
        assert advance(DEFAULT, [h], "A") == (Hypothesis(2, 4, 0b0100, True),)

    def test_last_move_goes_between(self):
        h = Hypothesis(2, 13, 0b0001, True)
        assert advance(DEFAULT, [h], "B") == (Hypothesis.between(0b0011),)

    def test_between_enters_open_schedules_at_move_two(self):
        out = advance(DEFAULT, [Hypothesis.between(0b0010)], "T")
        assert out == tuple(Hypothesis(i, 2, 0b0010, True) for i in (1, 3, 4))

    def test_between_normalizes_full_mask(self):
        out = advance(DEFAULT, [Hypothesis.between(0b1111)], "T")
        assert out == tuple(Hypothesis(i, 2, 0, True) for i in (1, 2, 3, 4))

    def test_between_requires_matching_first_symbol(self):
        assert advance(DEFAULT, [Hypothesis.between(0)], "F") == ()

    def test_result_is_deduplicated(self):
        out = advance(DEFAULT, [Hypothesis.between(0b1111), Hypothesis.between(0)], "T")
        assert len(out) == 4

    def test_alternate_table(self):
        out = advance(RENAMED_TABLE, [Hypothesis(1, 4, 0)], "y")
        assert out == (Hypothesis.between(schedule_bit(1)),)


class TestLockBias:
    """Most frequent mask wins; ties go to the first seen."""

    def test_keeps_majority_mask(self):
        hyps = (
            Hypothesis(1, 2, 0b0010),
            Hypothesis(3, 2, 0b0100),
            Hypothesis(3, 5, 0b0100),
        )
        assert apply_lock_bias(hyps) == hyps[1:]

    def test_tie_goes_to_first_seen(self):
        hyps = (
            Hypothesis(3, 5, 0b0001),
            Hypothesis(3, 5, 0b0010),
            Hypothesis(4, 5, 0b0010),
            Hypothesis(4, 5, 0b0001),
        )
        assert apply_lock_bias(hyps) == (hyps[0], hyps[3])

    def test_empty_set_passes_through(self):
        assert apply_lock_bias(()) == ()


class TestTransition:
    """Full tap semantics."""

    def test_blank_slate_seeds_then_advances(self):
        out = transition(DEFAULT, (), (), "A", lock_flag=False)
        positions = {(h.schedule_id, h.position) for h in out}
        assert positions == {(2, 4), (3, 8), (4, 8), (4, 13)}

    def test_blank_slate_final_symbol_lands_between(self):
        # J closes schedules 1 and 4 and sits at move 10 of schedules 2 and 3
        out = transition(DEFAULT, (), (), "J", lock_flag=False)
        between = [h for h in out if h.is_between]
        inside = [h for h in out if not h.is_between]

        assert {h.completed_mask for h in between} == (
            {m | 0b0001 for m in range(16) if not m & 0b0001}
            | {m | 0b1000 for m in range(16) if not m & 0b1000}
        )
        assert {(h.schedule_id, h.position) for h in inside} == {(2, 11), (3, 11)}
        assert len(out) == 12 + 16

    def test_contradiction_is_not_reseeded(self):
        out = transition(DEFAULT, (), ("F",), "T", lock_flag=False)
        assert out == ()

    def test_lock_flag_applies_bias(self):
        start = start_hypotheses(DEFAULT, cycle_reset=False, asserted=True)
        unlocked = transition(DEFAULT, start, (), "T", lock_flag=False)
        locked = transition(DEFAULT, start, (), "T", lock_flag=True)

        assert len({h.completed_mask for h in unlocked}) > 1
        assert len({h.completed_mask for h in locked}) == 1

    @pytest.mark.parametrize("event", ["T", "F", "A", "C", "B", "J"])
    def test_output_respects_completion_invariant(self, event):
        for h in transition(DEFAULT, (), (), event, lock_flag=False):
            if not h.is_between:
                assert not h.has_completed(h.schedule_id)
