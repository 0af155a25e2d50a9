"""
Schedule Table Contracts

The fixed, cyclically repeating schedules and the symbol alphabet they are
written in.

CONFIGURATION, NOT CONSTANTS:
=============================
The table is injected into every layer that needs it. Renaming a symbol or
swapping a schedule changes this data only, never engine logic.
Schedules are 1-indexed by id, and positions inside a schedule are 1-indexed.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union
import json


# =============================================================================
# SYMBOL TYPES
# =============================================================================

@dataclass(frozen=True)
class SpecialSymbol:
    """
    A symbol that triggers an alert when it is the next expected event.

    alert_kind is the typed discriminator handed to the renderer;
    branch_hint is the short advice shown in the start-of-schedule banner.
    """
    code: str
    alert_kind: str
    alert_message: str
    branch_hint: str = ""


# =============================================================================
# SCHEDULE TABLE
# =============================================================================

@dataclass(frozen=True)
class ScheduleTable:
    """
    Immutable schedule configuration.

    symbols:   ordered (code, display name) pairs - the alphabet
    schedules: schedules[i] is the symbol sequence of schedule id i + 1
    specials:  the alert-triggering symbols, in display order
    filler:    the everyday symbol used by the branch banner
    """
    version: str
    symbols: Tuple[Tuple[str, str], ...]
    schedules: Tuple[Tuple[str, ...], ...]
    specials: Tuple[SpecialSymbol, ...]
    filler: str

    def __post_init__(self):
        if not self.schedules:
            raise ValueError("ScheduleTable requires at least one schedule")
        codes = {code for code, _ in self.symbols}
        if self.filler not in codes:
            raise ValueError(f"Filler symbol {self.filler!r} is not in the alphabet")
        for special in self.specials:
            if special.code not in codes:
                raise ValueError(f"Special symbol {special.code!r} is not in the alphabet")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def codes(self) -> Tuple[str, ...]:
        return tuple(code for code, _ in self.symbols)

    @property
    def schedule_ids(self) -> Tuple[int, ...]:
        return tuple(range(1, len(self.schedules) + 1))

    @property
    def full_mask(self) -> int:
        """Mask with every schedule marked completed."""
        return (1 << len(self.schedules)) - 1

    @property
    def special_codes(self) -> Tuple[str, ...]:
        return tuple(s.code for s in self.specials)

    def has_symbol(self, code: str) -> bool:
        return code in self.codes

    def name(self, code: str) -> str:
        for symbol_code, symbol_name in self.symbols:
            if symbol_code == code:
                return symbol_name
        return code

    def schedule(self, schedule_id: int) -> Tuple[str, ...]:
        return self.schedules[schedule_id - 1]

    def schedule_length(self, schedule_id: int) -> int:
        return len(self.schedules[schedule_id - 1])

    def symbol_at(self, schedule_id: int, position: int) -> str:
        """Symbol at a 1-indexed position of a schedule."""
        return self.schedules[schedule_id - 1][position - 1]

    def first_symbol(self, schedule_id: int) -> str:
        return self.schedules[schedule_id - 1][0]

    def is_special(self, code: str) -> bool:
        return code in self.special_codes

    def special(self, code: str) -> Optional[SpecialSymbol]:
        for special in self.specials:
            if special.code == code:
                return special
        return None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @staticmethod
    def from_dict(data: Mapping) -> ScheduleTable:
        """
        Build a table from a plain mapping (e.g. parsed JSON).

        Expected shape:
            {
              "version": "1",
              "symbols": {"T": "Tiny Adventures", ...},
              "schedules": {"1": ["T", ...], "2": [...], ...},
              "specials": {"A": {"kind": "cube", "message": "...", "hint": "..."}},
              "filler": "T"
            }
        """
        try:
            symbols = tuple((str(code), str(name)) for code, name in data["symbols"].items())
            raw_schedules = data["schedules"]
            ids = sorted(int(k) for k in raw_schedules)
            if ids != list(range(1, len(ids) + 1)):
                raise ValueError(f"Schedule ids must be 1..n, got {ids}")
            by_id = {int(k): v for k, v in raw_schedules.items()}
            schedules = tuple(tuple(str(s) for s in by_id[i]) for i in ids)
            specials = tuple(
                SpecialSymbol(
                    code=str(code),
                    alert_kind=str(entry["kind"]),
                    alert_message=str(entry["message"]),
                    branch_hint=str(entry.get("hint", "")),
                )
                for code, entry in data.get("specials", {}).items()
            )
            return ScheduleTable(
                version=str(data.get("version", "1")),
                symbols=symbols,
                schedules=schedules,
                specials=specials,
                filler=str(data["filler"]),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid schedule table: {e}") from e

    @staticmethod
    def from_json_file(path: Union[str, Path]) -> ScheduleTable:
        with open(path, "r", encoding="utf-8") as f:
            return ScheduleTable.from_dict(json.load(f))

    @staticmethod
    def default() -> ScheduleTable:
        return ScheduleTable.from_dict(DEFAULT_TABLE)


# =============================================================================
# DEFAULT TABLE
# =============================================================================

DEFAULT_TABLE: Dict = {
    "version": "2",
    "symbols": {
        "T": "Tiny Adventures",
        "F": "Crossroads of Fate",
        "A": "Cube Battle",
        "C": "Card Realm",
        "B": "Axe Ricocheting",
        "J": "Frenzy Wheel",
    },
    "schedules": {
        "1": ["T", "F", "T", "B", "T", "T", "F", "C", "T", "F", "T", "B", "J"],
        "2": ["T", "T", "A", "T", "F", "C", "T", "T", "F", "J", "F", "T", "B"],
        "3": ["T", "T", "F", "C", "T", "T", "A", "T", "F", "J", "T", "B", "F"],
        "4": ["T", "T", "C", "T", "F", "T", "A", "T", "F", "T", "F", "A", "J"],
    },
    "specials": {
        "A": {
            "kind": "cube",
            "message": "ENABLE 50x NOW (Cube Battle is next)",
            "hint": "use 50x",
        },
        "C": {
            "kind": "treasure",
            "message": "Card Realm is next - invest 50x if you need gold",
            "hint": "50x if you need gold",
        },
    },
    "filler": "T",
}
