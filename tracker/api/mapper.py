"""
API Mapper
==========

Transforms ProjectionView DTOs into JSON-ready dictionaries.
Sets become sorted lists; "allow all" stays null so clients can tell it
apart from "allow none".
"""
from typing import Any, Dict, Optional

from tracker_view import ProjectionView, AlertDTO, BannerDTO, TimelineCellDTO


def map_projection_to_dict(view: ProjectionView) -> Dict[str, Any]:
    """Map a ProjectionView to its wire representation."""
    allowed = None if view.allowed_events is None else sorted(view.allowed_events)

    return {
        "dto_version": view.dto_version.value,
        "table_version": view.table_version,
        "started": view.started,
        "status": view.status,
        "locked": view.locked,
        "lock_flag": view.lock_flag,
        "contradiction": view.contradiction,
        "completed_known": view.completed_known,
        "completed_ids": list(view.completed_ids),
        "remaining_ids": list(view.remaining_ids),
        "allowed_events": allowed,
        "current_schedule": view.current_schedule,
        "current_move": view.current_move,
        "next_event": view.next_event,
        "possible_schedule_ids": list(view.possible_schedule_ids),
        "possible_moves": list(view.possible_moves),
        "hypothesis_count": view.hypothesis_count,
        "history": list(view.history),
        "alert": _map_alert(view.alert),
        "banner": _map_banner(view.banner),
        "timeline": None if view.timeline is None else [_map_cell(c) for c in view.timeline],
    }


def _map_alert(alert: Optional[AlertDTO]) -> Optional[Dict[str, Any]]:
    if alert is None:
        return None
    return {"kind": alert.kind, "symbol": alert.symbol, "message": alert.message}


def _map_banner(banner: Optional[BannerDTO]) -> Optional[Dict[str, Any]]:
    if banner is None:
        return None
    return {"message": banner.message, "branches": list(banner.branches)}


def _map_cell(cell: TimelineCellDTO) -> Dict[str, Any]:
    return {
        "step": cell.step,
        "symbol": cell.symbol,
        "label": cell.label,
        "passed": cell.passed,
        "current": cell.current,
        "special": cell.special,
        "next_special": cell.next_special,
    }
