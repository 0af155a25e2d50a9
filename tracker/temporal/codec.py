"""
State Codec
===========

Reversible encoding of the full tracker state.

TWO SURFACES:
- Save code: JSON payload -> UTF-8 -> base64. Opaque, copy-pasteable text
  that survives clipboards and chat messages.
- Session blob: the same JSON payload without base64 or timestamp, used by
  the persistence collaborator.

DECODING GUARANTEES:
====================
1. Decoding never touches any live state - it only returns a new one
2. Any malformed input yields Result.failure, never a partial state
3. Structure is validated by pydantic, domain invariants by this module
"""

from __future__ import annotations
from typing import List, Optional
import base64
import binascii

from pydantic import BaseModel, ConfigDict, ValidationError

from ..contracts.base import Error, ErrorCode, Result
from ..contracts.hypothesis import Hypothesis, HypothesisSet
from ..contracts.schedule import ScheduleTable
from .history import Snapshot, TrackerState


FORMAT_VERSION = "2.1.0"
SUPPORTED_FORMAT_VERSIONS = frozenset({FORMAT_VERSION})


class UnsupportedFormatVersion(ValueError):
    """Payload is well-formed but written by an unknown format version."""

    def __init__(self, version: str):
        super().__init__(f"unsupported format version {version!r}")
        self.version = version


# =============================================================================
# WIRE MODELS
# =============================================================================

class HypothesisModel(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    schedule_id: Optional[int]
    position: int
    completed_mask: int
    asserted_start: bool


class SnapshotModel(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    hypotheses: List[HypothesisModel]
    lock_flag: bool


class StatePayload(BaseModel):
    """
    Wire shape shared by save codes and session blobs.

    origin and started may be omitted: a missing origin restores as the
    empty snapshot, a missing started flag as False.
    """
    model_config = ConfigDict(strict=True, extra="ignore")

    v: str
    t: Optional[int] = None
    hypotheses: List[HypothesisModel]
    history: List[str]
    lock_flag: bool
    snapshots: List[SnapshotModel]
    origin: Optional[SnapshotModel] = None
    started: bool = False


# =============================================================================
# STATE <-> PAYLOAD
# =============================================================================

def _hypothesis_model(h: Hypothesis) -> HypothesisModel:
    return HypothesisModel(
        schedule_id=h.schedule_id,
        position=h.position,
        completed_mask=h.completed_mask,
        asserted_start=h.asserted_start,
    )


def _snapshot_model(snapshot: Snapshot) -> SnapshotModel:
    return SnapshotModel(
        hypotheses=[_hypothesis_model(h) for h in snapshot.hypotheses],
        lock_flag=snapshot.lock_flag,
    )


def to_payload(state: TrackerState, timestamp_ms: Optional[int] = None) -> StatePayload:
    return StatePayload(
        v=FORMAT_VERSION,
        t=timestamp_ms,
        hypotheses=[_hypothesis_model(h) for h in state.hypotheses],
        history=list(state.history),
        lock_flag=state.lock_flag,
        snapshots=[_snapshot_model(s) for s in state.snapshots],
        origin=_snapshot_model(state.origin),
        started=state.started,
    )


def _check_hypothesis(model: HypothesisModel, table: ScheduleTable) -> Optional[str]:
    if not 0 <= model.completed_mask <= table.full_mask:
        return f"completed_mask {model.completed_mask} out of range"
    if model.schedule_id is None:
        if model.position != 0:
            return f"between-schedules hypothesis at position {model.position}"
        return None
    if model.schedule_id not in table.schedule_ids:
        return f"unknown schedule id {model.schedule_id}"
    if not 1 <= model.position <= table.schedule_length(model.schedule_id):
        return f"position {model.position} out of range for schedule {model.schedule_id}"
    if model.completed_mask & (1 << (model.schedule_id - 1)):
        return f"schedule {model.schedule_id} is both current and completed"
    return None


def _to_hypotheses(models: List[HypothesisModel], table: ScheduleTable) -> HypothesisSet:
    out = []
    for model in models:
        problem = _check_hypothesis(model, table)
        if problem:
            raise ValueError(problem)
        out.append(Hypothesis(
            schedule_id=model.schedule_id,
            position=model.position,
            completed_mask=model.completed_mask,
            asserted_start=model.asserted_start,
        ))
    if len({h.key for h in out}) != len(out):
        raise ValueError("duplicate hypotheses in set")
    return tuple(out)


def _to_snapshot(model: SnapshotModel, table: ScheduleTable) -> Snapshot:
    return Snapshot(_to_hypotheses(model.hypotheses, table), model.lock_flag)


def from_payload(payload: StatePayload, table: ScheduleTable) -> TrackerState:
    """
    Rebuild a TrackerState, enforcing domain invariants.

    Raises ValueError on any violation; callers convert it to a Result.
    """
    if payload.v not in SUPPORTED_FORMAT_VERSIONS:
        raise UnsupportedFormatVersion(payload.v)

    unknown = [s for s in payload.history if not table.has_symbol(s)]
    if unknown:
        raise ValueError(f"unknown symbols in history: {unknown}")

    if len(payload.snapshots) != len(payload.history):
        raise ValueError("snapshot stack and history lengths differ")

    origin = (
        _to_snapshot(payload.origin, table)
        if payload.origin is not None
        else Snapshot.empty()
    )

    return TrackerState(
        hypotheses=_to_hypotheses(payload.hypotheses, table),
        history=tuple(payload.history),
        lock_flag=payload.lock_flag,
        snapshots=tuple(_to_snapshot(s, table) for s in payload.snapshots),
        origin=origin,
        started=payload.started,
    )


# =============================================================================
# SAVE CODE
# =============================================================================

def encode_save_code(state: TrackerState, timestamp_ms: int) -> str:
    """Serialize state into an opaque, text-safe token."""
    raw = to_payload(state, timestamp_ms).model_dump_json()
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_save_code(token: str, table: ScheduleTable) -> Result:
    """
    Parse a save code.

    Success value is the restored TrackerState, always marked as started.
    The embedded timestamp is discarded. Whitespace anywhere in the token is
    ignored, so codes line-wrapped by a chat client still load.
    """
    try:
        compact = "".join(token.split())
        raw = base64.b64decode(compact, validate=True).decode("utf-8")
        payload = StatePayload.model_validate_json(raw)
        state = from_payload(payload, table)
    except UnsupportedFormatVersion as e:
        return Result.failure(Error.create(
            ErrorCode.UNSUPPORTED_FORMAT_VERSION,
            f"Save code format {e.version!r} is not supported",
            version=e.version,
        ))
    except (binascii.Error, UnicodeDecodeError, ValidationError, ValueError, AttributeError) as e:
        return Result.failure(Error.create(
            ErrorCode.MALFORMED_SAVE_CODE,
            "Save code could not be decoded",
            reason=str(e).splitlines()[0] if str(e) else type(e).__name__,
        ))

    return Result.success(TrackerState(
        hypotheses=state.hypotheses,
        history=state.history,
        lock_flag=state.lock_flag,
        snapshots=state.snapshots,
        origin=state.origin,
        started=True,
    ))


# =============================================================================
# SESSION BLOB
# =============================================================================

def state_to_blob(state: TrackerState) -> str:
    return to_payload(state).model_dump_json(exclude={"t"})


def blob_to_state(blob: str, table: ScheduleTable) -> Result:
    try:
        payload = StatePayload.model_validate_json(blob)
        state = from_payload(payload, table)
    except (ValidationError, ValueError) as e:
        return Result.failure(Error.create(
            ErrorCode.MALFORMED_BLOB,
            "Stored session could not be decoded",
            reason=str(e).splitlines()[0] if str(e) else type(e).__name__,
        ))
    return Result.success(state)
