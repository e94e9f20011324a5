"""Factory state machine.

``apply_action(state, action, now, rng)`` is the only place game state
changes. It never mutates its input: every accepted action builds a new
GameState, every rejected one (not enough money, occupied slot, wrong
disaster state, bad index) returns the very same object it was given, so
callers can test ``new is old`` to see that nothing happened.

``now`` is wall-clock epoch milliseconds and ``rng`` supplies every random
draw (machine ids, bonus rolls), which keeps transitions reproducible.
"""
from __future__ import annotations

from dataclasses import replace
import random
import string
from typing import Callable, Dict, Optional, Type

from factory.actions import (
    Action,
    BuyMachine,
    CollectOffline,
    EndDisaster,
    LoadGame,
    MergeMachines,
    MoveMachine,
    RepairMachine,
    RerollAll,
    RerollBonus,
    ResetGame,
    ScrapMachine,
    SelectMachine,
    StartDisaster,
    Tick,
    ToggleBonusLock,
    UpgradeRow,
)
from factory.balance import BALANCE, Balance, is_supported_level, repair_cost, scrap_refund
from factory.modules import (
    create_row_module,
    is_max_rarity,
    reroll_all,
    reroll_bonus,
    reroll_cost,
    toggle_lock,
    upgrade_cost,
    upgrade_module,
)
from factory.production import earnings
from factory.types import DisasterType, GameState, GameStats, Machine, RowModule

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_machine_id(now: float, rng: random.Random) -> str:
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(7))
    return f"m_{int(now)}_{suffix}"


def initial_state(now: float, balance: Balance = BALANCE) -> GameState:
    return GameState(
        currency=balance.starting_currency,
        last_tick_time=now,
        stats=GameStats(),
        save_version=balance.save_version,
    )


def can_merge(a: Machine, b: Machine) -> bool:
    if a.id == b.id:
        return False
    if a.level != b.level:
        return False
    if a.disabled or b.disabled:
        return False
    return True


def merged_level(level: int) -> int:
    # No level cap.
    return level + 1


def find_empty_slot(state: GameState, balance: Balance = BALANCE) -> Optional[int]:
    occupied = {m.slot_index for m in state.machines}
    for slot in range(balance.grid_size):
        if slot not in occupied:
            return slot
    return None


def _valid_slot(slot_index: int, balance: Balance) -> bool:
    return 0 <= slot_index < balance.grid_size


def _valid_row(row_index: int, balance: Balance) -> bool:
    return 0 <= row_index < balance.row_count


def _replace_module(state: GameState, module: RowModule) -> tuple[RowModule, ...]:
    return tuple(module if m.row_index == module.row_index else m for m in state.row_modules)


def _without_fire_on(state: GameState, slot_index: int):
    disaster = state.active_disaster
    if disaster is not None and disaster.target_slot == slot_index:
        return None
    return disaster


# ── Transitions ──────────────────────────────────────────────────────


def _tick(state: GameState, action: Tick, now: float, rng: random.Random, balance: Balance) -> GameState:
    earned = earnings(
        state.machines, state.is_power_outage, action.delta_ms, state.row_modules, balance
    )
    disaster = state.active_disaster
    if (
        disaster is not None
        and disaster.type == DisasterType.POWER_OUTAGE
        and disaster.has_expired(now)
    ):
        disaster = None
    return replace(
        state,
        currency=state.currency + earned,
        active_disaster=disaster,
        last_tick_time=now,
        total_play_time=state.total_play_time + action.delta_ms,
        stats=replace(
            state.stats,
            lifetime_currency_earned=state.stats.lifetime_currency_earned + earned,
        ),
    )


def _buy_machine(state: GameState, action: BuyMachine, now: float, rng: random.Random, balance: Balance) -> GameState:
    if state.currency < balance.base_machine_cost:
        return state
    if not _valid_slot(action.slot_index, balance):
        return state
    if state.machine_at(action.slot_index) is not None:
        return state
    machine = Machine(
        id=generate_machine_id(now, rng),
        level=1,
        slot_index=action.slot_index,
        disabled=False,
    )
    return replace(
        state,
        currency=state.currency - balance.base_machine_cost,
        machines=state.machines + (machine,),
        stats=replace(
            state.stats,
            lifetime_machines_bought=state.stats.lifetime_machines_bought + 1,
            highest_machine_level=max(state.stats.highest_machine_level, machine.level),
        ),
    )


def _select_machine(state: GameState, action: SelectMachine, now: float, rng: random.Random, balance: Balance) -> GameState:
    return replace(state, selected_machine_id=action.machine_id)


def _merge_machines(state: GameState, action: MergeMachines, now: float, rng: random.Random, balance: Balance) -> GameState:
    source = state.machine_by_id(action.source_id)
    target = state.machine_by_id(action.target_id)
    if source is None or target is None or not can_merge(source, target):
        return state
    if not is_supported_level(merged_level(source.level), balance):
        return state
    merged = Machine(
        id=generate_machine_id(now, rng),
        level=merged_level(source.level),
        slot_index=target.slot_index,
        disabled=False,
    )
    machines = tuple(m for m in state.machines if m.id not in (source.id, target.id))
    return replace(
        state,
        machines=machines + (merged,),
        selected_machine_id=None,
        stats=replace(
            state.stats,
            lifetime_merges=state.stats.lifetime_merges + 1,
            highest_machine_level=max(state.stats.highest_machine_level, merged.level),
        ),
    )


def _move_machine(state: GameState, action: MoveMachine, now: float, rng: random.Random, balance: Balance) -> GameState:
    machine = state.machine_by_id(action.machine_id)
    if machine is None or machine.disabled:
        return state
    if not _valid_slot(action.target_slot, balance):
        return state
    if state.machine_at(action.target_slot) is not None:
        return state
    return replace(
        state,
        machines=tuple(
            replace(m, slot_index=action.target_slot) if m.id == machine.id else m
            for m in state.machines
        ),
        selected_machine_id=None,
    )


def _scrap_machine(state: GameState, action: ScrapMachine, now: float, rng: random.Random, balance: Balance) -> GameState:
    machine = state.machine_by_id(action.machine_id)
    if machine is None:
        return state
    return replace(
        state,
        currency=state.currency + scrap_refund(machine.level, balance),
        machines=tuple(m for m in state.machines if m.id != machine.id),
        selected_machine_id=None,
        active_disaster=_without_fire_on(state, machine.slot_index),
    )


def _repair_machine(state: GameState, action: RepairMachine, now: float, rng: random.Random, balance: Balance) -> GameState:
    machine = state.machine_by_id(action.machine_id)
    if machine is None or not machine.disabled:
        return state
    cost = repair_cost(machine.level, balance)
    if state.currency < cost:
        return state
    return replace(
        state,
        currency=state.currency - cost,
        machines=tuple(
            replace(m, disabled=False) if m.id == machine.id else m
            for m in state.machines
        ),
        active_disaster=_without_fire_on(state, machine.slot_index),
    )


def _start_disaster(state: GameState, action: StartDisaster, now: float, rng: random.Random, balance: Balance) -> GameState:
    if state.active_disaster is not None:
        return state
    disaster = action.disaster
    if disaster.type != DisasterType.FIRE:
        return replace(state, active_disaster=disaster)
    if disaster.target_slot is None:
        return state
    target = state.machine_at(disaster.target_slot)
    if target is None:
        return state
    return replace(
        state,
        active_disaster=disaster,
        machines=tuple(
            replace(m, disabled=True) if m.id == target.id else m
            for m in state.machines
        ),
    )


def _end_disaster(state: GameState, action: EndDisaster, now: float, rng: random.Random, balance: Balance) -> GameState:
    return replace(state, active_disaster=None)


def _collect_offline(state: GameState, action: CollectOffline, now: float, rng: random.Random, balance: Balance) -> GameState:
    return replace(
        state,
        currency=state.currency + action.earnings,
        stats=replace(
            state.stats,
            lifetime_currency_earned=state.stats.lifetime_currency_earned + action.earnings,
        ),
    )


def _upgrade_row(state: GameState, action: UpgradeRow, now: float, rng: random.Random, balance: Balance) -> GameState:
    if not _valid_row(action.row_index, balance):
        return state
    existing = state.module_for_row(action.row_index)
    if existing is not None and is_max_rarity(existing):
        return state
    cost = upgrade_cost(existing, balance)
    if state.currency < cost:
        return state
    if existing is None:
        modules = state.row_modules + (create_row_module(action.row_index, rng),)
    else:
        upgraded = upgrade_module(existing, rng)
        if upgraded is None:
            return state
        modules = _replace_module(state, upgraded)
    return replace(state, currency=state.currency - cost, row_modules=modules)


def _reroll_bonus(state: GameState, action: RerollBonus, now: float, rng: random.Random, balance: Balance) -> GameState:
    module = state.module_for_row(action.row_index)
    if module is None:
        return state
    if not 0 <= action.bonus_index < len(module.bonuses):
        return state
    cost = reroll_cost(action.row_index, balance)
    if state.currency < cost:
        return state
    # Charged even when the bonus is locked and nothing changes.
    return replace(
        state,
        currency=state.currency - cost,
        row_modules=_replace_module(state, reroll_bonus(module, action.bonus_index, rng)),
    )


def _reroll_all(state: GameState, action: RerollAll, now: float, rng: random.Random, balance: Balance) -> GameState:
    module = state.module_for_row(action.row_index)
    if module is None:
        return state
    cost = reroll_cost(action.row_index, balance)
    if state.currency < cost:
        return state
    return replace(
        state,
        currency=state.currency - cost,
        row_modules=_replace_module(state, reroll_all(module, rng)),
    )


def _toggle_bonus_lock(state: GameState, action: ToggleBonusLock, now: float, rng: random.Random, balance: Balance) -> GameState:
    module = state.module_for_row(action.row_index)
    if module is None:
        return state
    if not 0 <= action.bonus_index < len(module.bonuses):
        return state
    return replace(state, row_modules=_replace_module(state, toggle_lock(module, action.bonus_index)))


def _load_game(state: GameState, action: LoadGame, now: float, rng: random.Random, balance: Balance) -> GameState:
    # Fresh timestamp so the next tick does not count the gap again.
    return replace(action.state, last_tick_time=now)


def _reset_game(state: GameState, action: ResetGame, now: float, rng: random.Random, balance: Balance) -> GameState:
    return initial_state(now, balance)


_Handler = Callable[[GameState, Action, float, random.Random, Balance], GameState]

_HANDLERS: Dict[Type, _Handler] = {
    Tick: _tick,
    BuyMachine: _buy_machine,
    SelectMachine: _select_machine,
    MergeMachines: _merge_machines,
    MoveMachine: _move_machine,
    ScrapMachine: _scrap_machine,
    RepairMachine: _repair_machine,
    StartDisaster: _start_disaster,
    EndDisaster: _end_disaster,
    CollectOffline: _collect_offline,
    UpgradeRow: _upgrade_row,
    RerollBonus: _reroll_bonus,
    RerollAll: _reroll_all,
    ToggleBonusLock: _toggle_bonus_lock,
    LoadGame: _load_game,
    ResetGame: _reset_game,
}


def apply_action(
    state: GameState,
    action: Action,
    now: float,
    rng: random.Random,
    balance: Balance = BALANCE,
) -> GameState:
    """Return the successor of ``state`` under ``action``."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {action!r}")
    return handler(state, action, now, rng, balance)
