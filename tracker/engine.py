"""
Engine Orchestration Module

This module provides the command surface consumed by renderers and the
HTTP layer, coordinating the pure temporal layer with the persistence and
clipboard collaborators.

DESIGN PRINCIPLES:
==================
1. Every command is a value reduced by dispatch(): state in, state out
2. State replacement is wholesale; a TrackerState is never mutated
3. Collaborator failures are logged and contained, never propagated
4. Projection is recomputed on demand from the current state
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Mapping, Optional
import logging
import os

from .contracts.base import Error, ErrorCode, Result
from .contracts.schedule import ScheduleTable
from .temporal import history
from .temporal.history import TrackerState
from .temporal.codec import (
    encode_save_code, decode_save_code, state_to_blob, blob_to_state
)
from .storage import STORAGE_KEY, PersistenceBackend, InMemoryPersistence, FilePersistence
from .clipboard import ClipboardBackend, InMemoryClipboard
from tracker_view import ProjectionMapper, ProjectionView


logger = logging.getLogger(__name__)

ENV_STATE_DIR = "CYCLE_TRACKER_STATE_DIR"
ENV_SCHEDULE_FILE = "CYCLE_TRACKER_SCHEDULE_FILE"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class TrackerConfig:
    """Unified configuration for the tracker engine."""
    table: ScheduleTable = None
    persistence: PersistenceBackend = None
    clipboard: ClipboardBackend = None
    clock: Callable[[], datetime] = None
    storage_key: str = STORAGE_KEY

    def __post_init__(self):
        self.table = self.table or ScheduleTable.default()
        self.persistence = self.persistence or InMemoryPersistence()
        self.clipboard = self.clipboard or InMemoryClipboard()
        self.clock = self.clock or _utc_now

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> TrackerConfig:
        """
        Build configuration from environment variables.

        CYCLE_TRACKER_STATE_DIR      -> file persistence in that directory
                                        (in-memory if it cannot be created)
        CYCLE_TRACKER_SCHEDULE_FILE  -> JSON schedule table
        """
        env = os.environ if environ is None else environ

        table = None
        schedule_file = env.get(ENV_SCHEDULE_FILE)
        if schedule_file:
            table = ScheduleTable.from_json_file(schedule_file)

        persistence = None
        state_dir = env.get(ENV_STATE_DIR)
        if state_dir:
            try:
                persistence = FilePersistence(state_dir)
            except OSError:
                logger.warning(
                    "State directory %s unusable; sessions will not survive restarts",
                    state_dir, exc_info=True,
                )

        return TrackerConfig(table=table, persistence=persistence)


# =============================================================================
# COMMANDS
# =============================================================================

class CommandType(Enum):
    TAP = "tap"
    UNDO = "undo"
    START_KNOWN_CYCLE = "start_known_cycle"
    START_NEW_SCHEDULE = "start_new_schedule"
    MARK_UNKNOWN_POSITION = "mark_unknown_position"
    HARD_RESET = "hard_reset"


@dataclass(frozen=True)
class Command:
    """A user action. Only TAP carries an event."""
    command_type: CommandType
    event: Optional[str] = None

    @staticmethod
    def tap(event: str) -> Command:
        return Command(CommandType.TAP, event)


def dispatch(state: TrackerState, command: Command, table: ScheduleTable) -> Result:
    """
    Reduce one command against a state.

    Success value is the next TrackerState. The input state is untouched.
    """
    kind = command.command_type

    if kind is CommandType.TAP:
        if command.event is None or not table.has_symbol(command.event):
            return Result.failure(Error.create(
                ErrorCode.UNKNOWN_SYMBOL,
                f"Unknown event symbol: {command.event!r}",
                known=",".join(table.codes),
            ))
        return Result.success(history.record_tap(state, table, command.event))

    if kind is CommandType.UNDO:
        return Result.success(history.undo(state))
    if kind is CommandType.START_KNOWN_CYCLE:
        return Result.success(history.start_known_cycle(state, table))
    if kind is CommandType.START_NEW_SCHEDULE:
        return Result.success(history.start_new_schedule(state, table))
    if kind is CommandType.MARK_UNKNOWN_POSITION:
        return Result.success(history.mark_unknown_position(state))
    if kind is CommandType.HARD_RESET:
        return Result.success(history.hard_reset(state))

    raise ValueError(f"Unhandled command type: {kind}")


# =============================================================================
# ENGINE
# =============================================================================

class TrackerEngine:
    """
    Stateful facade over the pure tracker core.

    The only mutable thing here is the reference to the current state.
    Readers may keep any state they were handed; it never changes.
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self._config = config or TrackerConfig()
        self._table = self._config.table
        self._mapper = ProjectionMapper()
        self._state = self._restore()

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def table(self) -> ScheduleTable:
        return self._table

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def execute(self, command: Command) -> Result:
        result = dispatch(self._state, command, self._table)
        if result.is_failure:
            logger.info("Rejected %s: %s", command.command_type.value, result.error.message)
            return result

        self._state = result.value
        if command.command_type is CommandType.HARD_RESET:
            self._clear_saved()
        else:
            self._persist()
        return result

    def tap(self, event: str) -> Result:
        return self.execute(Command.tap(event))

    def undo(self) -> Result:
        return self.execute(Command(CommandType.UNDO))

    def start_known_cycle(self) -> Result:
        return self.execute(Command(CommandType.START_KNOWN_CYCLE))

    def start_new_schedule_unknown_cycle(self) -> Result:
        return self.execute(Command(CommandType.START_NEW_SCHEDULE))

    def mark_unknown_position(self) -> Result:
        return self.execute(Command(CommandType.MARK_UNKNOWN_POSITION))

    def hard_reset(self) -> Result:
        return self.execute(Command(CommandType.HARD_RESET))

    # -------------------------------------------------------------------------
    # Save codes
    # -------------------------------------------------------------------------

    def export_save_code(self) -> str:
        timestamp_ms = int(self._config.clock().timestamp() * 1000)
        return encode_save_code(self._state, timestamp_ms)

    def copy_save_code(self) -> bool:
        token = self.export_save_code()
        try:
            copied = bool(self._config.clipboard.write(token))
        except Exception:
            logger.warning("Clipboard write failed", exc_info=True)
            return False
        if not copied:
            logger.info("Clipboard rejected save code")
        return copied

    def load_save_code(self, token: str) -> bool:
        result = decode_save_code(token, self._table)
        if result.is_failure:
            context = dict(result.error.context)
            logger.info("Rejected save code: %s", context.get("reason", result.error.message))
            return False

        self._state = result.value
        self._persist()
        return True

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def get_projection(self) -> ProjectionView:
        return self._mapper.project(self._state, self._table)

    # -------------------------------------------------------------------------
    # Persistence (failure-isolated)
    # -------------------------------------------------------------------------

    def _restore(self) -> TrackerState:
        try:
            blob = self._config.persistence.load(self._config.storage_key)
        except Exception:
            logger.warning("Session storage unavailable; starting empty", exc_info=True)
            return TrackerState.initial()

        if blob is None:
            return TrackerState.initial()

        result = blob_to_state(blob, self._table)
        if result.is_failure:
            logger.warning(
                "Ignoring corrupt saved session: %s",
                dict(result.error.context).get("reason", result.error.message),
            )
            return TrackerState.initial()
        return result.value

    def _persist(self) -> None:
        try:
            self._config.persistence.save(state_to_blob(self._state), self._config.storage_key)
        except Exception:
            logger.warning("Failed to persist session", exc_info=True)

    def _clear_saved(self) -> None:
        try:
            self._config.persistence.clear(self._config.storage_key)
        except Exception:
            logger.warning("Failed to clear saved session", exc_info=True)
