"""
Projection DTOs

Read-only, immutable views of tracker state for the renderer.

VERSIONING REQUIREMENT:
=======================
Every ProjectionView carries a dto_version.
Renderers MUST fail fast on unknown versions.

PROHIBITED FIELDS:
==================
- probability / confidence / ranking of hypotheses
- "best guess" schedule when more than one survives
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Final, FrozenSet, Optional, Tuple


# =============================================================================
# VERSION CONSTANTS
# =============================================================================

class DTOVersion(Enum):
    """
    DTO schema versions.

    Renderers MUST reject unknown versions.
    """
    V1 = "v1"

    @classmethod
    def current(cls) -> 'DTOVersion':
        return cls.V1


CURRENT_DTO_VERSION: Final[DTOVersion] = DTOVersion.V1


# =============================================================================
# ANNOTATIONS
# =============================================================================

@dataclass(frozen=True)
class AlertDTO:
    """
    A special symbol is the next expected event.

    kind is the typed discriminator (one per special symbol).
    """
    kind: str
    symbol: str
    message: str


@dataclass(frozen=True)
class BannerDTO:
    """
    Informational notice: the next event is one of several special branches.
    """
    message: str
    branches: Tuple[str, ...]


@dataclass(frozen=True)
class TimelineCellDTO:
    """
    One step of the identified schedule.

    passed:       step already done before the current one
    current:      the step most recently completed
    next_special: the nearest special step not yet done
    """
    step: int
    symbol: str
    label: str
    passed: bool
    current: bool
    special: bool
    next_special: bool


# =============================================================================
# PROJECTION VIEW
# =============================================================================

@dataclass(frozen=True)
class ProjectionView:
    """
    Everything the renderer may show.

    EXPLICIT ABSENCE:
    =================
    allowed_events is None when every event is allowed (nothing tracked
    yet) and an empty frozenset when none is (contradiction). Timeline,
    alert, current_schedule and next_event are None unless locked.
    """
    dto_version: DTOVersion
    table_version: str
    started: bool
    status: str

    locked: bool
    lock_flag: bool
    contradiction: bool

    completed_known: bool
    completed_ids: Tuple[int, ...]
    remaining_ids: Tuple[int, ...]

    allowed_events: Optional[FrozenSet[str]]

    current_schedule: Optional[int]
    current_move: int
    next_event: Optional[str]

    possible_schedule_ids: Tuple[int, ...]
    possible_moves: Tuple[int, ...]
    hypothesis_count: int
    history: Tuple[str, ...]

    alert: Optional[AlertDTO] = None
    banner: Optional[BannerDTO] = None
    timeline: Optional[Tuple[TimelineCellDTO, ...]] = None

    def __post_init__(self):
        if self.dto_version != DTOVersion.current():
            raise ValueError(f"Unknown DTO version: {self.dto_version}")

    def is_allowed(self, symbol: str) -> bool:
        if self.allowed_events is None:
            return True
        return symbol in self.allowed_events
