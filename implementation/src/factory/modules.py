"""Row modules: rarity progression, bonus rolls, rerolls and locks.

Each grid row can hold one module. A module's rarity fixes how many bonuses it
carries and the [min, max] range every bonus kind rolls in:

  common=1 slot, uncommon=2, rare=3, epic=4

Upgrading rescales existing bonuses into the next rarity's range, keeping the
bonus at the same relative position inside its range:

  t         = (value - old_min) / (old_max - old_min)   (0 if the range is empty)
  new_value = new_min + clamp(t, 0, 1) * (new_max - new_min)

Only PRODUCTION_PERCENT and DISASTER_DURATION_REDUCTION feed the calculators;
the other kinds are rolled and stored but have no effect yet.
"""
from __future__ import annotations

from dataclasses import replace
import random
from typing import Dict, Iterable, Optional, Tuple

from factory.balance import BALANCE, Balance
from factory.types import RARITY_ORDER, BonusKind, Rarity, RowBonus, RowModule


RARITY_BONUS_COUNT: Dict[Rarity, int] = {
    Rarity.COMMON: 1,
    Rarity.UNCOMMON: 2,
    Rarity.RARE: 3,
    Rarity.EPIC: 4,
}

# Percentages, [min, max] per rarity.
BONUS_RANGES: Dict[BonusKind, Dict[Rarity, Tuple[float, float]]] = {
    BonusKind.PRODUCTION_PERCENT: {
        Rarity.COMMON: (5, 10),
        Rarity.UNCOMMON: (10, 20),
        Rarity.RARE: (20, 35),
        Rarity.EPIC: (35, 50),
    },
    BonusKind.PRODUCTION_AFTER_MERGE: {
        Rarity.COMMON: (3, 8),
        Rarity.UNCOMMON: (8, 15),
        Rarity.RARE: (15, 25),
        Rarity.EPIC: (25, 40),
    },
    BonusKind.DISASTER_DURATION_REDUCTION: {
        Rarity.COMMON: (5, 10),
        Rarity.UNCOMMON: (10, 20),
        Rarity.RARE: (20, 30),
        Rarity.EPIC: (30, 50),
    },
    BonusKind.DISASTER_CHANCE_INCREASE: {
        Rarity.COMMON: (2, 5),
        Rarity.UNCOMMON: (5, 10),
        Rarity.RARE: (10, 18),
        Rarity.EPIC: (18, 30),
    },
    BonusKind.DISASTER_RESOLUTION_REWARD: {
        Rarity.COMMON: (10, 20),
        Rarity.UNCOMMON: (20, 40),
        Rarity.RARE: (40, 70),
        Rarity.EPIC: (70, 100),
    },
    BonusKind.UPGRADE_COST_REDUCTION: {
        Rarity.COMMON: (3, 6),
        Rarity.UNCOMMON: (6, 12),
        Rarity.RARE: (12, 20),
        Rarity.EPIC: (20, 30),
    },
    BonusKind.AUTOMATION_SPEED: {
        Rarity.COMMON: (5, 10),
        Rarity.UNCOMMON: (10, 20),
        Rarity.RARE: (20, 35),
        Rarity.EPIC: (35, 50),
    },
    BonusKind.OFFLINE_EARNINGS_PERCENT: {
        Rarity.COMMON: (5, 10),
        Rarity.UNCOMMON: (10, 20),
        Rarity.RARE: (20, 35),
        Rarity.EPIC: (35, 50),
    },
}

ALL_BONUS_KINDS: Tuple[BonusKind, ...] = tuple(BonusKind)

_BONUS_DISPLAY_NAMES: Dict[BonusKind, str] = {
    BonusKind.PRODUCTION_PERCENT: "+Production",
    BonusKind.PRODUCTION_AFTER_MERGE: "+Post-Merge Production",
    BonusKind.DISASTER_DURATION_REDUCTION: "-Disaster Duration",
    BonusKind.DISASTER_CHANCE_INCREASE: "+Disaster Chance",
    BonusKind.DISASTER_RESOLUTION_REWARD: "+Disaster Reward",
    BonusKind.UPGRADE_COST_REDUCTION: "-Upgrade Cost",
    BonusKind.AUTOMATION_SPEED: "+Automation Speed",
    BonusKind.OFFLINE_EARNINGS_PERCENT: "+Offline Earnings",
}


def bonus_display_name(kind: BonusKind) -> str:
    return _BONUS_DISPLAY_NAMES[kind]


def rarity_name(rarity: Rarity) -> str:
    return rarity.value.capitalize()


def bonus_range(kind: BonusKind, rarity: Rarity) -> Tuple[float, float]:
    return BONUS_RANGES[kind][rarity]


def next_rarity(rarity: Rarity) -> Optional[Rarity]:
    idx = RARITY_ORDER.index(rarity)
    if idx + 1 < len(RARITY_ORDER):
        return RARITY_ORDER[idx + 1]
    return None


def is_max_rarity(module: RowModule) -> bool:
    return next_rarity(module.rarity) is None


def upgrade_cost(module: Optional[RowModule], balance: Balance = BALANCE) -> float:
    """Cost of the next tier; 0.0 for a maxed module (callers check max rarity first)."""
    if module is None:
        return balance.row_module_costs[Rarity.COMMON.value]
    nxt = next_rarity(module.rarity)
    if nxt is None:
        return 0.0
    return balance.row_module_costs[nxt.value]


def reroll_cost(row_index: int, balance: Balance = BALANCE) -> float:
    # Top row is cheapest.
    return balance.reroll_base_cost * (row_index + 1)


def roll_value(kind: BonusKind, rarity: Rarity, rng: random.Random) -> float:
    low, high = bonus_range(kind, rarity)
    return low + rng.random() * (high - low)


def generate_bonus(rarity: Rarity, rng: random.Random) -> RowBonus:
    """Random kind (repeats allowed) with a value rolled in that kind's range."""
    kind = ALL_BONUS_KINDS[int(rng.random() * len(ALL_BONUS_KINDS))]
    return RowBonus(kind=kind, value=roll_value(kind, rarity, rng), locked=False)


def create_row_module(row_index: int, rng: random.Random) -> RowModule:
    return RowModule(
        row_index=row_index,
        rarity=Rarity.COMMON,
        bonuses=(generate_bonus(Rarity.COMMON, rng),),
    )


def scale_bonus_value(bonus: RowBonus, from_rarity: Rarity, to_rarity: Rarity) -> float:
    from_min, from_max = bonus_range(bonus.kind, from_rarity)
    to_min, to_max = bonus_range(bonus.kind, to_rarity)
    if from_max == from_min:
        position = 0.0
    else:
        position = (bonus.value - from_min) / (from_max - from_min)
    position = min(1.0, max(0.0, position))
    return to_min + position * (to_max - to_min)


def upgrade_module(module: RowModule, rng: random.Random) -> Optional[RowModule]:
    """Advance one rarity tier. Returns None when already at max rarity."""
    nxt = next_rarity(module.rarity)
    if nxt is None:
        return None
    bonuses = [
        replace(bonus, value=scale_bonus_value(bonus, module.rarity, nxt))
        for bonus in module.bonuses
    ]
    while len(bonuses) < RARITY_BONUS_COUNT[nxt]:
        bonuses.append(generate_bonus(nxt, rng))
    return replace(module, rarity=nxt, bonuses=tuple(bonuses))


def reroll_bonus(module: RowModule, bonus_index: int, rng: random.Random) -> RowModule:
    """Fresh value for one bonus, same kind. Locked bonuses are left alone."""
    target = module.bonuses[bonus_index]
    if target.locked:
        return module
    rerolled = replace(target, value=roll_value(target.kind, module.rarity, rng))
    bonuses = list(module.bonuses)
    bonuses[bonus_index] = rerolled
    return replace(module, bonuses=tuple(bonuses))


def reroll_all(module: RowModule, rng: random.Random) -> RowModule:
    """Replace every unlocked bonus with a brand new roll (kind included)."""
    bonuses = tuple(
        bonus if bonus.locked else generate_bonus(module.rarity, rng)
        for bonus in module.bonuses
    )
    return replace(module, bonuses=bonuses)


def toggle_lock(module: RowModule, bonus_index: int) -> RowModule:
    bonuses = list(module.bonuses)
    bonuses[bonus_index] = replace(bonuses[bonus_index], locked=not bonuses[bonus_index].locked)
    return replace(module, bonuses=tuple(bonuses))


def _find_module(row_modules: Iterable[RowModule], row_index: int) -> Optional[RowModule]:
    for module in row_modules:
        if module.row_index == row_index:
            return module
    return None


def _sum_kind(row_modules: Iterable[RowModule], row_index: int, kind: BonusKind) -> float:
    module = _find_module(row_modules, row_index)
    if module is None:
        return 0.0
    total = 0.0
    for bonus in module.bonuses:
        if bonus.kind == kind:
            total += bonus.value
    return total / 100.0


def row_production_bonus(row_modules: Iterable[RowModule], row_index: int) -> float:
    """Multiplier addend for a row: 45% total -> 0.45 (machines produce x1.45)."""
    return _sum_kind(row_modules, row_index, BonusKind.PRODUCTION_PERCENT)


def row_disaster_reduction(row_modules: Iterable[RowModule], row_index: int) -> float:
    return _sum_kind(row_modules, row_index, BonusKind.DISASTER_DURATION_REDUCTION)


def global_disaster_reduction(row_modules: Iterable[RowModule], balance: Balance = BALANCE) -> float:
    modules = tuple(row_modules)
    total = 0.0
    for row in range(balance.row_count):
        total += row_disaster_reduction(modules, row)
    return min(total, balance.max_disaster_reduction)
