"""
Transition Engine
=================

Pure functions mapping a hypothesis set and an observed event to the next,
pruned hypothesis set.

INVARIANT: transition(table, hypotheses, history, event, lock) is a PURE FUNCTION.
Same inputs -> identical output, including output order.

This module DOES NOT store state.
History bookkeeping lives in history.py.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Sequence

from ..contracts.hypothesis import (
    Hypothesis, HypothesisSet, dedupe, normalize_mask, schedule_bit
)
from ..contracts.schedule import ScheduleTable


# =============================================================================
# STARTING SETS
# =============================================================================

def start_hypotheses(table: ScheduleTable, cycle_reset: bool, asserted: bool) -> HypothesisSet:
    """
    Hypotheses for "a schedule is about to start".

    cycle_reset=True means the cycle boundary is known: nothing is completed.
    Otherwise every completion state that leaves the schedule enterable is kept.
    """
    out: List[Hypothesis] = []
    for schedule_id in table.schedule_ids:
        for mask in range(table.full_mask + 1):
            if cycle_reset and mask != 0:
                continue
            if mask & schedule_bit(schedule_id):
                continue
            out.append(Hypothesis(schedule_id, 1, mask, asserted))
    return tuple(out)


def seed(table: ScheduleTable, event: str) -> HypothesisSet:
    """
    Every place the tapped event could have happened.

    One hypothesis per (schedule, matching position, compatible mask),
    positioned AT the match; the caller advances it past the event.
    """
    out: List[Hypothesis] = []
    for schedule_id in table.schedule_ids:
        for position, symbol in enumerate(table.schedule(schedule_id), start=1):
            if symbol != event:
                continue
            for mask in range(table.full_mask + 1):
                if mask & schedule_bit(schedule_id):
                    continue
                out.append(Hypothesis(schedule_id, position, mask, False))
    return tuple(out)


# =============================================================================
# ADVANCE
# =============================================================================

def advance(table: ScheduleTable, hypotheses: Iterable[Hypothesis], event: str) -> HypothesisSet:
    """
    Move every hypothesis past `event`, dropping the ones that disagree.
    """
    out: List[Hypothesis] = []
    for h in hypotheses:
        if h.is_between:
            mask = normalize_mask(h.completed_mask, table.full_mask)
            for schedule_id in table.schedule_ids:
                if mask & schedule_bit(schedule_id):
                    continue
                if table.first_symbol(schedule_id) != event:
                    continue
                # The tap itself was move 1.
                out.append(Hypothesis(schedule_id, 2, mask, True))
            continue

        if table.symbol_at(h.schedule_id, h.position) != event:
            continue

        if h.position == table.schedule_length(h.schedule_id):
            out.append(Hypothesis.between(h.completed_mask | schedule_bit(h.schedule_id)))
        else:
            out.append(Hypothesis(h.schedule_id, h.position + 1, h.completed_mask, h.asserted_start))

    return dedupe(out)


# =============================================================================
# LOCK BIAS
# =============================================================================

def apply_lock_bias(hypotheses: Sequence[Hypothesis]) -> HypothesisSet:
    """
    Keep only hypotheses carrying the most frequent completed mask.

    Ties go to the mask seen first while scanning in set order.
    """
    counts: Dict[int, int] = {}
    for h in hypotheses:
        counts[h.completed_mask] = counts.get(h.completed_mask, 0) + 1

    best_mask = None
    best_count = -1
    for mask, count in counts.items():
        if count > best_count:
            best_mask, best_count = mask, count

    if best_mask is None:
        return tuple(hypotheses)
    return tuple(h for h in hypotheses if h.completed_mask == best_mask)


# =============================================================================
# FULL TRANSITION
# =============================================================================

def transition(
    table: ScheduleTable,
    hypotheses: HypothesisSet,
    history: Sequence[str],
    event: str,
    lock_flag: bool
) -> HypothesisSet:
    """
    One tap: seed if nothing has been observed yet, advance, dedupe, bias.

    An empty set with a non-empty history is a contradiction and stays empty:
    seeding only happens from a blank slate.
    """
    if not hypotheses and not history:
        current = seed(table, event)
    else:
        current = hypotheses

    next_set = advance(table, current, event)

    if lock_flag:
        next_set = apply_lock_bias(next_set)

    return next_set
