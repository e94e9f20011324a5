"""Production and earnings.

Online rate:
  0 while a power outage is active, otherwise
  sum over enabled machines of production(level) * (1 + row_production_bonus(row))

Offline catch-up deliberately ignores row bonuses and disasters:
  time_away = min(now - last_tick_time, max_offline_hours)
  earned    = floor(sum(production(level)) * time_away/1000 * offline_efficiency)
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, List, Sequence

from factory.balance import BALANCE, Balance, production_rate
from factory.modules import row_production_bonus
from factory.types import Machine, RowModule


@dataclass(frozen=True)
class OfflineEarnings:
    earnings: int
    time_away: float


@dataclass(frozen=True)
class RowContribution:
    row_index: int
    base_rate: float
    bonus: float
    modified_rate: float


def row_for_slot(slot_index: int, balance: Balance = BALANCE) -> int:
    return slot_index // balance.row_width


def total_production_rate(
    machines: Iterable[Machine],
    is_power_outage: bool,
    row_modules: Sequence[RowModule] = (),
    balance: Balance = BALANCE,
) -> float:
    if is_power_outage:
        return 0.0
    total = 0.0
    for machine in machines:
        if machine.disabled:
            continue
        bonus = row_production_bonus(row_modules, row_for_slot(machine.slot_index, balance))
        total += production_rate(machine.level, balance) * (1.0 + bonus)
    return total


def base_production_rate(machines: Iterable[Machine], balance: Balance = BALANCE) -> float:
    """Rate of all enabled machines without row bonuses."""
    return sum(production_rate(m.level, balance) for m in machines if not m.disabled)


def earnings(
    machines: Iterable[Machine],
    is_power_outage: bool,
    delta_ms: float,
    row_modules: Sequence[RowModule] = (),
    balance: Balance = BALANCE,
) -> float:
    rate = total_production_rate(machines, is_power_outage, row_modules, balance)
    return rate * delta_ms / 1000.0


def offline_earnings(
    machines: Iterable[Machine],
    last_tick_time: float,
    now: float,
    balance: Balance = BALANCE,
) -> OfflineEarnings:
    time_away = min(now - last_tick_time, balance.max_offline_ms)
    rate = base_production_rate(machines, balance)
    earned = rate * time_away * balance.offline_efficiency / 1000.0
    return OfflineEarnings(earnings=math.floor(earned), time_away=time_away)


def worth_reporting(result: OfflineEarnings, balance: Balance = BALANCE) -> bool:
    """Whether an absence is long and lucrative enough to tell the player about."""
    return result.earnings > 0 and result.time_away > balance.offline_notice_threshold_ms


def row_contributions(
    machines: Sequence[Machine],
    row_modules: Sequence[RowModule] = (),
    balance: Balance = BALANCE,
) -> List[RowContribution]:
    rows = []
    for row in range(balance.row_count):
        base = base_production_rate(
            (m for m in machines if row_for_slot(m.slot_index, balance) == row),
            balance,
        )
        bonus = row_production_bonus(row_modules, row)
        rows.append(RowContribution(
            row_index=row,
            base_rate=base,
            bonus=bonus,
            modified_rate=base * (1.0 + bonus),
        ))
    return rows
