"""Balance model: tuning constants and the level-based cost/production curves.

All formulas are pure functions of a machine level:
  production(level) = base_production_per_second * production_growth ^ (level - 1)
  value(level)      = base_machine_cost * value_growth ^ (level - 1)
  scrap / repair    = floor(value(level) * multiplier)

Constants can be overridden per install with an optional balance.json next to
layout.json; a missing or broken file falls back to the defaults.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
import json
import math
from pathlib import Path
from typing import Dict


# Fire only ends through repair or scrap. Kept finite so it survives JSON.
FIRE_DURATION_PERMANENT = 999_999_999


def _default_row_module_costs() -> Dict[str, float]:
    return {
        "common": 100.0,
        "uncommon": 500.0,
        "rare": 2000.0,
        "epic": 10000.0,
    }


@dataclass(frozen=True)
class Balance:
    # Machine production
    base_production_per_second: float = 1.0
    production_growth: float = 2.5

    # Machine value / costs
    base_machine_cost: float = 10.0
    value_growth: float = 2.5
    scrap_refund_multiplier: float = 0.5
    repair_cost_multiplier: float = 0.5

    # Grid: 3x3, rows of three slots
    grid_size: int = 9
    row_width: int = 3

    # Timing (ms)
    tick_interval_ms: float = 100.0
    max_frame_delta_ms: float = 100.0
    auto_save_interval_ms: float = 10000.0
    disaster_check_interval_ms: float = 30000.0

    # Disasters
    disaster_chance: float = 0.15
    power_outage_duration_min: int = 10000
    power_outage_duration_max: int = 30000
    power_outage_min_duration_ms: float = 2000.0
    max_disaster_reduction: float = 0.8
    fire_duration_ms: int = FIRE_DURATION_PERMANENT

    # Offline catch-up
    offline_efficiency: float = 0.5
    max_offline_hours: float = 8.0
    offline_notice_threshold_ms: float = 60000.0

    # New game
    starting_currency: float = 50.0

    # Row modules
    row_module_costs: Dict[str, float] = field(default_factory=_default_row_module_costs)
    reroll_base_cost: float = 50.0

    save_version: int = 1

    @property
    def row_count(self) -> int:
        return self.grid_size // self.row_width

    @property
    def max_offline_ms(self) -> float:
        return self.max_offline_hours * 60 * 60 * 1000


BALANCE = Balance()


def production_rate(level: int, balance: Balance = BALANCE) -> float:
    """Currency per second produced by one enabled machine of ``level``."""
    return balance.base_production_per_second * balance.production_growth ** (level - 1)


def machine_value(level: int, balance: Balance = BALANCE) -> float:
    return balance.base_machine_cost * balance.value_growth ** (level - 1)


def is_supported_level(level: int, balance: Balance = BALANCE) -> bool:
    """Whether production and value stay finite floats at ``level``."""
    try:
        rate = production_rate(level, balance)
        value = machine_value(level, balance)
    except OverflowError:
        return False
    return math.isfinite(rate) and math.isfinite(value)


def scrap_refund(level: int, balance: Balance = BALANCE) -> int:
    return math.floor(machine_value(level, balance) * balance.scrap_refund_multiplier)


def repair_cost(level: int, balance: Balance = BALANCE) -> int:
    return math.floor(machine_value(level, balance) * balance.repair_cost_multiplier)


def _repo_root() -> Path:
    here = Path(__file__).resolve()
    return here.parents[3]


def default_balance_path() -> Path:
    return _repo_root() / "implementation" / "balance.json"


def load_balance(path: Path | None = None) -> Balance:
    if path is None:
        path = default_balance_path()
    if not path.exists():
        return Balance()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return Balance()
    if not isinstance(data, dict):
        return Balance()
    known = {f.name for f in fields(Balance)}
    unknown = sorted(set(data) - known)
    if unknown:
        print(f"[balance] Warning: ignoring unknown keys {unknown}")
    overrides = {key: value for key, value in data.items() if key in known}
    if "row_module_costs" in overrides:
        if not isinstance(overrides["row_module_costs"], dict):
            return Balance()
        costs = _default_row_module_costs()
        costs.update(overrides["row_module_costs"])
        overrides["row_module_costs"] = costs
    try:
        return Balance(**overrides)
    except TypeError:
        return Balance()

