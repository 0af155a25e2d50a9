"""
State to Projection Mapper

Converts the internal TrackerState into a read-only ProjectionView.

MAPPING BOUNDARY:
=================
This is the ONLY place where tracker state becomes renderer-facing data.
All derivation happens here, nowhere else.

MAPPING RULES:
==============
1. Pure: same state + same table -> equal view
2. Never pick among surviving hypotheses; report them all
3. Completion masks are normalized before they are shown
"""

from __future__ import annotations
from typing import FrozenSet, List, Optional, Sequence, Tuple

from tracker.contracts.hypothesis import Hypothesis, normalize_mask, schedule_bit
from tracker.contracts.schedule import ScheduleTable
from tracker.temporal.history import TrackerState

from .dtos import (
    DTOVersion, ProjectionView, AlertDTO, BannerDTO, TimelineCellDTO
)


WAITING_STATUS = "Waiting for input..."
NO_MATCH_STATUS = "No match. Use Undo, Reset All, or Start New Schedule / Start Known Cycle."
BETWEEN_LABEL = "(between schedules)"


class ProjectionMapper:
    """
    Maps tracker state to the renderer projection.

    SINGLE POINT OF CONVERSION:
    ===========================
    Every ProjectionView is produced by project().
    """

    def project(self, state: TrackerState, table: ScheduleTable) -> ProjectionView:
        allowed = self.allowed_events(state, table)
        hypotheses = state.hypotheses

        if not hypotheses:
            return ProjectionView(
                dto_version=DTOVersion.current(),
                table_version=table.version,
                started=state.started,
                status=NO_MATCH_STATUS if state.history else WAITING_STATUS,
                locked=False,
                lock_flag=state.lock_flag,
                contradiction=state.is_contradiction,
                completed_known=False,
                completed_ids=(),
                remaining_ids=(),
                allowed_events=allowed,
                current_schedule=None,
                current_move=0,
                next_event=None,
                possible_schedule_ids=(),
                possible_moves=(),
                hypothesis_count=0,
                history=state.history,
            )

        in_schedule = [h for h in hypotheses if not h.is_between]
        between = [h for h in hypotheses if h.is_between]

        schedule_ids = sorted({h.schedule_id for h in in_schedule})
        positions = sorted({h.position for h in in_schedule})
        locked = len(schedule_ids) == 1 and len(positions) == 1 and not between

        possible_ids = schedule_ids or self._enterable_schedules(between, table)
        possible_moves = tuple(p - 1 for p in positions)

        completed_known, completed_ids, remaining_ids = self._completion(hypotheses, table)
        banner = self.branch_banner(state, table, in_schedule)

        if not locked:
            return ProjectionView(
                dto_version=DTOVersion.current(),
                table_version=table.version,
                started=state.started,
                status=self._unlocked_status(state, possible_ids, possible_moves),
                locked=False,
                lock_flag=state.lock_flag,
                contradiction=False,
                completed_known=completed_known,
                completed_ids=completed_ids,
                remaining_ids=remaining_ids,
                allowed_events=allowed,
                current_schedule=None,
                current_move=0,
                next_event=None,
                possible_schedule_ids=tuple(possible_ids),
                possible_moves=possible_moves,
                hypothesis_count=len(hypotheses),
                history=state.history,
                banner=banner,
            )

        anchor = in_schedule[0]
        schedule_id = anchor.schedule_id
        current_move = anchor.position - 1
        next_event = table.symbol_at(schedule_id, anchor.position)

        return ProjectionView(
            dto_version=DTOVersion.current(),
            table_version=table.version,
            started=state.started,
            status=f"Schedule {schedule_id}\nMove {current_move} / {table.schedule_length(schedule_id)}",
            locked=True,
            lock_flag=state.lock_flag,
            contradiction=False,
            completed_known=completed_known,
            completed_ids=completed_ids,
            remaining_ids=remaining_ids,
            allowed_events=allowed,
            current_schedule=schedule_id,
            current_move=current_move,
            next_event=next_event,
            possible_schedule_ids=(schedule_id,),
            possible_moves=(current_move,),
            hypothesis_count=len(hypotheses),
            history=state.history,
            alert=self.special_alert(next_event, table),
            banner=banner,
            timeline=self.timeline(schedule_id, anchor.position, table),
        )

    # =========================================================================
    # ALLOWED EVENTS
    # =========================================================================

    def allowed_events(self, state: TrackerState, table: ScheduleTable) -> Optional[FrozenSet[str]]:
        """
        None means unconstrained; an empty set means nothing can match.
        """
        if not state.hypotheses:
            if not state.history:
                return None
            return frozenset()

        allowed = set()
        for h in state.hypotheses:
            if h.is_between:
                for schedule_id in self._enterable_schedules([h], table):
                    allowed.add(table.first_symbol(schedule_id))
            else:
                allowed.add(table.symbol_at(h.schedule_id, h.position))
        return frozenset(allowed)

    # =========================================================================
    # ALERTS AND BANNERS
    # =========================================================================

    def special_alert(self, next_event: str, table: ScheduleTable) -> Optional[AlertDTO]:
        special = table.special(next_event)
        if special is None:
            return None
        return AlertDTO(kind=special.alert_kind, symbol=special.code, message=special.alert_message)

    def branch_banner(
        self,
        state: TrackerState,
        table: ScheduleTable,
        in_schedule: Sequence[Hypothesis]
    ) -> Optional[BannerDTO]:
        """
        After two filler events at a schedule start, warn when the third move
        can only be one of the special symbols.
        """
        filler = table.filler
        last_two = state.history[-2:]
        if len(last_two) != 2 or any(event != filler for event in last_two):
            return None

        third_moves = set()
        for h in in_schedule:
            moves = table.schedule(h.schedule_id)
            if h.position == 3 and len(moves) >= 3 and moves[0] == filler and moves[1] == filler:
                third_moves.add(moves[2])

        special_codes = table.special_codes
        if len(special_codes) < 2 or third_moves != set(special_codes):
            return None

        parts = []
        for special in table.specials:
            name = table.name(special.code)
            parts.append(f"{name} ({special.branch_hint})" if special.branch_hint else name)

        return BannerDTO(
            message="Start of schedule: next is either " + " or ".join(parts) + ".",
            branches=special_codes,
        )

    # =========================================================================
    # TIMELINE
    # =========================================================================

    def timeline(self, schedule_id: int, position: int, table: ScheduleTable) -> Tuple[TimelineCellDTO, ...]:
        moves = table.schedule(schedule_id)
        current_move = position - 1

        next_special_step = None
        for step in range(position, len(moves) + 1):
            if table.is_special(moves[step - 1]):
                next_special_step = step
                break

        return tuple(
            TimelineCellDTO(
                step=step,
                symbol=symbol,
                label=table.name(symbol),
                passed=step < current_move,
                current=step == current_move,
                special=table.is_special(symbol),
                next_special=step == next_special_step,
            )
            for step, symbol in enumerate(moves, start=1)
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _enterable_schedules(self, between: Sequence[Hypothesis], table: ScheduleTable) -> List[int]:
        out = set()
        for h in between:
            mask = normalize_mask(h.completed_mask, table.full_mask)
            for schedule_id in table.schedule_ids:
                if not mask & schedule_bit(schedule_id):
                    out.add(schedule_id)
        return sorted(out)

    def _completion(
        self,
        hypotheses: Sequence[Hypothesis],
        table: ScheduleTable
    ) -> Tuple[bool, Tuple[int, ...], Tuple[int, ...]]:
        masks = {normalize_mask(h.completed_mask, table.full_mask) for h in hypotheses}
        if len(masks) != 1:
            return False, (), ()
        mask = masks.pop()
        completed = tuple(i for i in table.schedule_ids if mask & schedule_bit(i))
        remaining = tuple(i for i in table.schedule_ids if not mask & schedule_bit(i))
        return True, completed, remaining

    def _unlocked_status(
        self,
        state: TrackerState,
        possible_ids: Sequence[int],
        possible_moves: Sequence[int]
    ) -> str:
        ids = ", ".join(str(i) for i in possible_ids) or BETWEEN_LABEL
        moves = ", ".join(str(m) for m in possible_moves) or BETWEEN_LABEL
        return (
            f"Moves logged: {len(state.history)}\n"
            f"Possible states: {len(state.hypotheses)}\n"
            f"Possible schedules: {ids}\n"
            f"Possible moves: {moves}"
        )
