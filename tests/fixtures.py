"""
Tracker Test Fixtures

Explicit schedule tables and state builders shared by the test modules.
All fixtures are deterministic - no random generation.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable

from tracker.contracts.schedule import ScheduleTable, DEFAULT_TABLE
from tracker.temporal.history import TrackerState, record_tap


# =============================================================================
# FIXED TIMESTAMPS (deterministic)
# =============================================================================

EPOCH = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
EPOCH_MS = int(EPOCH.timestamp() * 1000)


def fixed_clock() -> datetime:
    return EPOCH


# =============================================================================
# SCHEDULE TABLES
# =============================================================================

DEFAULT = ScheduleTable.default()

# Same alphabet as the default table, but "T, T, A" occurs only at the very
# start of schedule 2.
UNIQUE_TTA_TABLE = ScheduleTable.from_dict({
    **DEFAULT_TABLE,
    "version": "test-unique-tta",
    "schedules": {
        "1": ["T", "F", "T", "B", "T", "T", "F", "C", "T", "F", "T", "B", "J"],
        "2": ["T", "T", "A", "T", "F", "C", "T", "T", "F", "J", "F", "T", "B"],
        "3": ["T", "T", "F", "C", "T", "T", "F", "T", "F", "J", "T", "B", "F"],
        "4": ["T", "T", "C", "T", "F", "T", "F", "T", "F", "T", "F", "A", "J"],
    },
})

# Renamed alphabet: engine logic must not care what the symbols are called.
RENAMED_TABLE = ScheduleTable.from_dict({
    "version": "test-renamed",
    "symbols": {"x": "Filler", "y": "Fork", "s1": "Boss", "s2": "Chest"},
    "schedules": {
        "1": ["x", "x", "s1", "y"],
        "2": ["x", "x", "s2", "y"],
        "3": ["x", "y", "x", "x"],
    },
    "specials": {
        "s1": {"kind": "boss", "message": "Boss next", "hint": "prepare"},
        "s2": {"kind": "chest", "message": "Chest next", "hint": "open"},
    },
    "filler": "x",
})


# =============================================================================
# STATE BUILDERS
# =============================================================================

def tap_all(state: TrackerState, table: ScheduleTable, events: Iterable[str]) -> TrackerState:
    """Apply a sequence of taps through the pure history layer."""
    for event in events:
        state = record_tap(state, table, event)
    return state


def with_started(state: TrackerState) -> TrackerState:
    return replace(state, started=True)
