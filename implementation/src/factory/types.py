from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"


RARITY_ORDER: Tuple[Rarity, ...] = (Rarity.COMMON, Rarity.UNCOMMON, Rarity.RARE, Rarity.EPIC)


class BonusKind(str, Enum):
    PRODUCTION_PERCENT = "productionPercent"                      # applied
    PRODUCTION_AFTER_MERGE = "productionAfterMerge"
    DISASTER_DURATION_REDUCTION = "disasterDurationReduction"     # applied
    DISASTER_CHANCE_INCREASE = "disasterChanceIncrease"
    DISASTER_RESOLUTION_REWARD = "disasterResolutionReward"
    UPGRADE_COST_REDUCTION = "upgradeCostReduction"
    AUTOMATION_SPEED = "automationSpeed"
    OFFLINE_EARNINGS_PERCENT = "offlineEarningsPercent"


class DisasterType(str, Enum):
    FIRE = "fire"
    POWER_OUTAGE = "powerOutage"


@dataclass(frozen=True)
class Machine:
    id: str
    level: int
    slot_index: int
    disabled: bool = False


@dataclass(frozen=True)
class Disaster:
    """One active disaster. ``target_slot`` is only set for fires."""
    type: DisasterType
    start_time: float
    duration: float
    target_slot: Optional[int] = None

    def elapsed(self, now: float) -> float:
        return now - self.start_time

    def remaining(self, now: float) -> float:
        return max(0.0, self.duration - self.elapsed(now))

    def has_expired(self, now: float) -> bool:
        return self.elapsed(now) >= self.duration


@dataclass(frozen=True)
class RowBonus:
    kind: BonusKind
    value: float  # realized percentage, e.g. 7.5 means +7.5%
    locked: bool = False


@dataclass(frozen=True)
class RowModule:
    row_index: int  # 0=top, 1=mid, 2=bottom
    rarity: Rarity
    bonuses: Tuple[RowBonus, ...] = ()


@dataclass(frozen=True)
class GameStats:
    lifetime_currency_earned: float = 0.0
    lifetime_machines_bought: int = 0
    lifetime_merges: int = 0
    highest_machine_level: int = 0


@dataclass(frozen=True)
class GameState:
    currency: float
    machines: Tuple[Machine, ...] = ()
    active_disaster: Optional[Disaster] = None
    selected_machine_id: Optional[str] = None
    last_tick_time: float = 0.0
    total_play_time: float = 0.0
    row_modules: Tuple[RowModule, ...] = ()
    stats: GameStats = field(default_factory=GameStats)
    save_version: int = 1

    def machine_by_id(self, machine_id: Optional[str]) -> Optional[Machine]:
        if machine_id is None:
            return None
        for machine in self.machines:
            if machine.id == machine_id:
                return machine
        return None

    def machine_at(self, slot_index: int) -> Optional[Machine]:
        for machine in self.machines:
            if machine.slot_index == slot_index:
                return machine
        return None

    def module_for_row(self, row_index: int) -> Optional[RowModule]:
        for module in self.row_modules:
            if module.row_index == row_index:
                return module
        return None

    @property
    def is_power_outage(self) -> bool:
        return (
            self.active_disaster is not None
            and self.active_disaster.type == DisasterType.POWER_OUTAGE
        )
