"""
Temporal Layer

Transition engine, history/undo bookkeeping, and the state codec.
Everything here is pure: functions take a state and return a new one.
"""

from .transitions import (
    start_hypotheses,
    seed,
    advance,
    apply_lock_bias,
    transition,
)
from .history import (
    Snapshot,
    TrackerState,
    record_tap,
    undo,
    start_known_cycle,
    start_new_schedule,
    mark_unknown_position,
    hard_reset,
)
from .codec import (
    FORMAT_VERSION,
    UnsupportedFormatVersion,
    encode_save_code,
    decode_save_code,
    state_to_blob,
    blob_to_state,
)

__all__ = [
    'start_hypotheses',
    'seed',
    'advance',
    'apply_lock_bias',
    'transition',
    'Snapshot',
    'TrackerState',
    'record_tap',
    'undo',
    'start_known_cycle',
    'start_new_schedule',
    'mark_unknown_position',
    'hard_reset',
    'FORMAT_VERSION',
    'UnsupportedFormatVersion',
    'encode_save_code',
    'decode_save_code',
    'state_to_blob',
    'blob_to_state',
]
