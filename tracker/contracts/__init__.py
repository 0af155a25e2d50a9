"""
Contracts Package

Immutable types shared by every layer of the tracker.
"""

from .base import Error, ErrorCode, Result
from .schedule import ScheduleTable, SpecialSymbol, DEFAULT_TABLE
from .hypothesis import (
    Hypothesis,
    HypothesisSet,
    HypothesisKey,
    dedupe,
    normalize_mask,
    schedule_bit,
)

__all__ = [
    'Error',
    'ErrorCode',
    'Result',
    'ScheduleTable',
    'SpecialSymbol',
    'DEFAULT_TABLE',
    'Hypothesis',
    'HypothesisSet',
    'HypothesisKey',
    'dedupe',
    'normalize_mask',
    'schedule_bit',
]
