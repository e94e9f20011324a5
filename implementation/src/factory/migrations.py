"""Save migration: bring any saved/imported blob up to the current schema.

Works on plain dicts (the JSON form) so the same path serves auto-load and
manual import. Older saves may lack ``rowModules``, ``stats`` or
``saveVersion``; the first row-module release stored bonuses as
``{"type": kind, "roll": 0..1}`` instead of ``{"kind", "value", "locked"}``.
"""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from factory.balance import BALANCE, Balance, is_supported_level
from factory.modules import bonus_range
from factory.types import BonusKind, DisasterType, Rarity

_STAT_DEFAULTS: Dict[str, float] = {
    "lifetimeCurrencyEarned": 0,
    "lifetimeMachinesBought": 0,
    "lifetimeMerges": 0,
    "highestMachineLevel": 0,
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _as_enum(enum_cls, value: Any):
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return None


def _default_bonus() -> Dict[str, Any]:
    return {"kind": BonusKind.PRODUCTION_PERCENT.value, "value": 0, "locked": False}


def migrate_row_bonus(bonus: Any, rarity: Rarity) -> Dict[str, Any]:
    if not isinstance(bonus, dict):
        return _default_bonus()

    kind = _as_enum(BonusKind, bonus.get("kind"))
    if kind is not None:
        value = bonus.get("value")
        return {
            "kind": kind.value,
            "value": value if _is_number(value) else 0,
            "locked": bonus.get("locked") is True,
        }

    legacy_kind = _as_enum(BonusKind, bonus.get("type"))
    if legacy_kind is not None:
        low, high = bonus_range(legacy_kind, rarity)
        roll = bonus.get("roll")
        if not _is_number(roll):
            roll = 0
        return {
            "kind": legacy_kind.value,
            "value": low + roll * (high - low),
            "locked": False,
        }

    return _default_bonus()


def migrate_row_modules(modules: Any, balance: Balance = BALANCE) -> List[Dict[str, Any]]:
    if not isinstance(modules, list):
        return []
    migrated: List[Dict[str, Any]] = []
    seen_rows = set()
    for module in modules:
        if not isinstance(module, dict):
            print("[save] Warning: dropping malformed row module")
            continue
        row_index = module.get("rowIndex")
        if not _is_number(row_index) or int(row_index) != row_index:
            print(f"[save] Warning: dropping row module with bad rowIndex {row_index!r}")
            continue
        row_index = int(row_index)
        if not 0 <= row_index < balance.row_count or row_index in seen_rows:
            print(f"[save] Warning: dropping duplicate/out-of-range row module {row_index}")
            continue
        rarity = _as_enum(Rarity, module.get("rarity")) or Rarity.COMMON
        bonuses = module.get("bonuses")
        if not isinstance(bonuses, list):
            bonuses = []
        seen_rows.add(row_index)
        migrated.append({
            "rowIndex": row_index,
            "rarity": rarity.value,
            "bonuses": [migrate_row_bonus(b, rarity) for b in bonuses],
        })
    return migrated


def migrate_machines(machines: Any, balance: Balance = BALANCE) -> List[Dict[str, Any]]:
    if not isinstance(machines, list):
        return []
    migrated: List[Dict[str, Any]] = []
    used_slots = set()
    for machine in machines:
        if not isinstance(machine, dict):
            print("[save] Warning: dropping malformed machine")
            continue
        machine_id = machine.get("id")
        level = machine.get("level")
        slot = machine.get("slotIndex")
        if not isinstance(machine_id, str) or not _is_number(level) or not _is_number(slot):
            print(f"[save] Warning: dropping machine with missing fields {machine!r}")
            continue
        level, slot = int(level), int(slot)
        if level < 1 or not 0 <= slot < balance.grid_size or slot in used_slots:
            print(f"[save] Warning: machine '{machine_id}' at slot {slot} is invalid, skipping")
            continue
        if not is_supported_level(level, balance):
            print(f"[save] Warning: machine '{machine_id}' level {level} is out of range, skipping")
            continue
        used_slots.add(slot)
        migrated.append({
            "id": machine_id,
            "level": level,
            "slotIndex": slot,
            "disabled": machine.get("disabled") is True,
        })
    return migrated


def migrate_disaster(
    disaster: Any, machines: List[Dict[str, Any]], balance: Balance = BALANCE
) -> Optional[Dict[str, Any]]:
    """Validated disaster, or None. A fire must burn a machine on the grid, which is marked disabled."""
    if not isinstance(disaster, dict):
        return None
    kind = _as_enum(DisasterType, disaster.get("type"))
    start = disaster.get("startTime")
    duration = disaster.get("duration")
    if kind is None or not _is_number(start) or not _is_number(duration):
        return None
    migrated: Dict[str, Any] = {
        "type": kind.value,
        "startTime": start,
        "duration": duration,
    }
    if kind == DisasterType.FIRE:
        target = disaster.get("targetSlot")
        if not _is_number(target):
            return None
        target = int(target)
        burning = next((m for m in machines if m["slotIndex"] == target), None)
        if not 0 <= target < balance.grid_size or burning is None:
            print(f"[save] Warning: dropping fire on slot {target} with no machine")
            return None
        burning["disabled"] = True
        migrated["targetSlot"] = target
    return migrated


def migrate_stats(stats: Any) -> Dict[str, float]:
    merged = dict(_STAT_DEFAULTS)
    if isinstance(stats, dict):
        for key in _STAT_DEFAULTS:
            if _is_number(stats.get(key)):
                merged[key] = stats[key]
    return merged


def migrate_save_data(data: Any, now: float, balance: Balance = BALANCE) -> Optional[Dict[str, Any]]:
    """Normalize a raw blob into the current schema. None if it is not an object."""
    if not isinstance(data, dict):
        return None

    currency = data.get("currency")
    selected = data.get("selectedMachineId")
    last_tick = data.get("lastTickTime")
    play_time = data.get("totalPlayTime")
    version = data.get("saveVersion")

    machines = migrate_machines(data.get("machines"), balance)
    if not any(m["id"] == selected for m in machines):
        selected = None
    disaster = migrate_disaster(data.get("activeDisaster"), machines, balance)

    return {
        "currency": currency if _is_number(currency) else balance.starting_currency,
        "machines": machines,
        "activeDisaster": disaster,
        "selectedMachineId": selected,
        "lastTickTime": last_tick if _is_number(last_tick) else now,
        "totalPlayTime": play_time if _is_number(play_time) else 0,
        "rowModules": migrate_row_modules(data.get("rowModules"), balance),
        "stats": migrate_stats(data.get("stats")),
        "saveVersion": int(version) if _is_number(version) else balance.save_version,
    }
