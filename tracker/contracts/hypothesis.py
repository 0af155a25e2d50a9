"""
Hypothesis Contracts

One hypothesis is one candidate answer to "which schedule am I in, and which
move comes next". A hypothesis set is every candidate still consistent with
the observed events.

INVARIANTS:
===========
- position == 0  <=>  schedule_id is None   (between schedules)
- A hypothesis inside schedule s never has bit s set in completed_mask
- A hypothesis set never holds two hypotheses with the same canonical key
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


HypothesisKey = Tuple[Optional[int], int, int, bool]


def schedule_bit(schedule_id: int) -> int:
    """Completed-mask bit for a 1-indexed schedule id."""
    return 1 << (schedule_id - 1)


def normalize_mask(mask: int, full_mask: int) -> int:
    """All schedules done is the same as none done: the cycle restarts."""
    return 0 if mask == full_mask else mask


@dataclass(frozen=True)
class Hypothesis:
    """
    Immutable candidate position.

    position is the NEXT expected move (1-indexed); the move most recently
    completed is position - 1.
    asserted_start marks hypotheses whose schedule start was chosen
    explicitly rather than inferred from a seed.
    """
    schedule_id: Optional[int]
    position: int
    completed_mask: int
    asserted_start: bool = False

    def __post_init__(self):
        if (self.position == 0) != (self.schedule_id is None):
            raise ValueError(
                f"Invalid hypothesis: position={self.position}, schedule_id={self.schedule_id}"
            )

    @staticmethod
    def between(completed_mask: int) -> Hypothesis:
        return Hypothesis(schedule_id=None, position=0, completed_mask=completed_mask, asserted_start=True)

    @property
    def is_between(self) -> bool:
        return self.schedule_id is None

    @property
    def key(self) -> HypothesisKey:
        return (self.schedule_id, self.position, self.completed_mask, self.asserted_start)

    def has_completed(self, schedule_id: int) -> bool:
        return bool(self.completed_mask & schedule_bit(schedule_id))


HypothesisSet = Tuple[Hypothesis, ...]


def dedupe(hypotheses: Iterable[Hypothesis]) -> HypothesisSet:
    """Drop exact duplicates, keeping the first occurrence of each key."""
    seen = set()
    out = []
    for h in hypotheses:
        if h.key in seen:
            continue
        seen.add(h.key)
        out.append(h)
    return tuple(out)
