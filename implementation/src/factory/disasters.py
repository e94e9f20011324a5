"""Disaster generation.

Checked every ``disaster_check_interval_ms`` while no disaster is active and
at least one machine exists:

  roll < disaster_chance        -> a disaster happens
  coin flip                     -> fire or power outage
  fire                          -> random enabled machine, permanent until repaired/scrapped
  power outage                  -> uniform [min, max] ms, shortened by row modules:
                                   max(base * (1 - global_reduction), min_duration)

Resolution lives in the simulation transitions (tick expiry, repair, scrap).
"""
from __future__ import annotations

import random
from typing import Optional, Sequence

from factory.balance import BALANCE, Balance
from factory.modules import global_disaster_reduction
from factory.types import Disaster, DisasterType, GameState, RowModule


def random_in_range(low: int, high: int, rng: random.Random) -> int:
    """Uniform integer in [low, high], both ends inclusive."""
    return int(rng.random() * (high - low + 1)) + low


def can_check(state: GameState) -> bool:
    return state.active_disaster is None and len(state.machines) > 0


def power_outage_duration(
    base_duration: float,
    row_modules: Sequence[RowModule],
    balance: Balance = BALANCE,
) -> float:
    reduction = global_disaster_reduction(row_modules, balance)
    return max(base_duration * (1.0 - reduction), balance.power_outage_min_duration_ms)


def generate_disaster(
    state: GameState,
    now: float,
    rng: random.Random,
    balance: Balance = BALANCE,
) -> Optional[Disaster]:
    """Pick fire or outage. None if a fire has nothing left to burn."""
    if rng.random() < 0.5:
        targets = [m for m in state.machines if not m.disabled]
        if not targets:
            return None
        target = targets[int(rng.random() * len(targets))]
        return Disaster(
            type=DisasterType.FIRE,
            start_time=now,
            duration=balance.fire_duration_ms,
            target_slot=target.slot_index,
        )

    base = random_in_range(
        balance.power_outage_duration_min, balance.power_outage_duration_max, rng
    )
    return Disaster(
        type=DisasterType.POWER_OUTAGE,
        start_time=now,
        duration=power_outage_duration(base, state.row_modules, balance),
    )


def roll_disaster(
    state: GameState,
    now: float,
    rng: random.Random,
    balance: Balance = BALANCE,
) -> Optional[Disaster]:
    """One periodic disaster check. Returns the disaster to start, if any."""
    if not can_check(state):
        return None
    if rng.random() >= balance.disaster_chance:
        return None
    return generate_disaster(state, now, rng, balance)
