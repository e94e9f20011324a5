"""Save/load and export/import of the factory state.

Auto-save: one JSON blob under a fixed key. The native build keeps it in a
file next to the game and writes atomically (tmp + rename).
Export: the current-schema JSON blob as text.
Import: JSON text -> migration -> GameState, or a message for the player.

Storage failures are reported and swallowed; the game keeps running
unsaved.
"""
from __future__ import annotations

from dataclasses import replace
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from factory.balance import BALANCE, Balance
from factory.migrations import migrate_save_data
from factory.types import (
    BonusKind,
    Disaster,
    DisasterType,
    GameState,
    GameStats,
    Machine,
    Rarity,
    RowBonus,
    RowModule,
)

SAVE_KEY = "idle_merge_factory_save"

IMPORT_EMPTY = "Paste a save first."
IMPORT_BAD_JSON = "Invalid JSON. Please double-check the save text."
IMPORT_NOT_A_SAVE = "That does not look like a valid save."


# ── Dict <-> GameState ───────────────────────────────────────────────


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Current-schema blob (camelCase keys, JSON-compatible values)."""
    disaster = None
    if state.active_disaster is not None:
        d = state.active_disaster
        disaster = {
            "type": d.type.value,
            "startTime": d.start_time,
            "duration": d.duration,
        }
        if d.target_slot is not None:
            disaster["targetSlot"] = d.target_slot

    return {
        "currency": state.currency,
        "machines": [
            {
                "id": m.id,
                "level": m.level,
                "slotIndex": m.slot_index,
                "disabled": m.disabled,
            }
            for m in state.machines
        ],
        "activeDisaster": disaster,
        "selectedMachineId": state.selected_machine_id,
        "lastTickTime": state.last_tick_time,
        "totalPlayTime": state.total_play_time,
        "rowModules": [
            {
                "rowIndex": module.row_index,
                "rarity": module.rarity.value,
                "bonuses": [
                    {"kind": b.kind.value, "value": b.value, "locked": b.locked}
                    for b in module.bonuses
                ],
            }
            for module in state.row_modules
        ],
        "stats": {
            "lifetimeCurrencyEarned": state.stats.lifetime_currency_earned,
            "lifetimeMachinesBought": state.stats.lifetime_machines_bought,
            "lifetimeMerges": state.stats.lifetime_merges,
            "highestMachineLevel": state.stats.highest_machine_level,
        },
        "saveVersion": state.save_version,
    }


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """Build a GameState from an already-migrated blob."""
    disaster = None
    raw_disaster = data.get("activeDisaster")
    if raw_disaster is not None:
        disaster = Disaster(
            type=DisasterType(raw_disaster["type"]),
            start_time=raw_disaster["startTime"],
            duration=raw_disaster["duration"],
            target_slot=raw_disaster.get("targetSlot"),
        )

    machines = tuple(
        Machine(
            id=m["id"],
            level=int(m["level"]),
            slot_index=int(m["slotIndex"]),
            disabled=bool(m["disabled"]),
        )
        for m in data["machines"]
    )
    modules = tuple(
        RowModule(
            row_index=int(mod["rowIndex"]),
            rarity=Rarity(mod["rarity"]),
            bonuses=tuple(
                RowBonus(kind=BonusKind(b["kind"]), value=b["value"], locked=bool(b["locked"]))
                for b in mod["bonuses"]
            ),
        )
        for mod in data["rowModules"]
    )
    stats = data["stats"]
    return GameState(
        currency=data["currency"],
        machines=machines,
        active_disaster=disaster,
        selected_machine_id=data["selectedMachineId"],
        last_tick_time=data["lastTickTime"],
        total_play_time=data["totalPlayTime"],
        row_modules=modules,
        stats=GameStats(
            lifetime_currency_earned=stats["lifetimeCurrencyEarned"],
            lifetime_machines_bought=int(stats["lifetimeMachinesBought"]),
            lifetime_merges=int(stats["lifetimeMerges"]),
            highest_machine_level=int(stats["highestMachineLevel"]),
        ),
        save_version=int(data["saveVersion"]),
    )


def restore_from_dict(data: Any, now: float, balance: Balance = BALANCE) -> Optional[GameState]:
    """Migrate a raw blob and build the state. None on unusable data."""
    migrated = migrate_save_data(data, now, balance)
    if migrated is None:
        return None
    try:
        return state_from_dict(migrated)
    except (KeyError, TypeError, ValueError) as e:
        print(f"[save] Error restoring save data: {e}")
        return None


def build_save_dict(state: GameState, now: float) -> Dict[str, Any]:
    """Blob for auto-save, stamped with the save time."""
    return state_to_dict(replace(state, last_tick_time=now))


# ── Export / import ──────────────────────────────────────────────────


def export_save_text(state: GameState) -> str:
    return json.dumps(state_to_dict(state), separators=(",", ":"))


def import_save_text(
    text: str, now: float, balance: Balance = BALANCE
) -> Tuple[Optional[GameState], str]:
    """Parse pasted save text. Returns (state, "") or (None, message for the player)."""
    trimmed = text.strip()
    if not trimmed:
        return None, IMPORT_EMPTY
    try:
        data = json.loads(trimmed)
    except (json.JSONDecodeError, ValueError):
        print("[save] Could not parse import text (invalid JSON)")
        return None, IMPORT_BAD_JSON
    state = restore_from_dict(data, now, balance)
    if state is None:
        print("[save] Could not parse import text (not a valid save)")
        return None, IMPORT_NOT_A_SAVE
    return state, ""


# ── Storage ──────────────────────────────────────────────────────────


class FileStorage:
    """Key-value store for the single save blob, backed by one JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"[save] Error loading save file: {e}")
            return None

    def save(self, text: str) -> bool:
        tmp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            print(f"[save] Error saving game: {e}")
            return False
        return True

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            print(f"[save] Error deleting save: {e}")


def default_save_path() -> Path:
    return Path(__file__).resolve().parents[1] / f"{SAVE_KEY}.json"


def save_game(storage: FileStorage, state: GameState, now: float) -> bool:
    data = build_save_dict(state, now)
    return storage.save(json.dumps(data, indent=2))


def load_game(storage: FileStorage, now: float, balance: Balance = BALANCE) -> Optional[GameState]:
    """Read and migrate the saved blob. None when missing or corrupt."""
    text = storage.load()
    if text is None:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        print(f"[save] Error parsing save data: {e}")
        return None
    state = restore_from_dict(data, now, balance)
    if state is None:
        print("[save] Save data is not a valid save, starting fresh")
    return state
