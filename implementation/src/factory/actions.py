"""Player intents and timer events fed to ``simulation.apply_action``."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from factory.types import Disaster, GameState


@dataclass(frozen=True)
class Tick:
    delta_ms: float


@dataclass(frozen=True)
class BuyMachine:
    slot_index: int


@dataclass(frozen=True)
class SelectMachine:
    machine_id: Optional[str]


@dataclass(frozen=True)
class MergeMachines:
    source_id: str
    target_id: str


@dataclass(frozen=True)
class MoveMachine:
    machine_id: str
    target_slot: int


@dataclass(frozen=True)
class ScrapMachine:
    machine_id: str


@dataclass(frozen=True)
class RepairMachine:
    machine_id: str


@dataclass(frozen=True)
class StartDisaster:
    disaster: Disaster


@dataclass(frozen=True)
class EndDisaster:
    pass


@dataclass(frozen=True)
class CollectOffline:
    earnings: float


@dataclass(frozen=True)
class UpgradeRow:
    row_index: int


@dataclass(frozen=True)
class RerollBonus:
    row_index: int
    bonus_index: int


@dataclass(frozen=True)
class RerollAll:
    row_index: int


@dataclass(frozen=True)
class ToggleBonusLock:
    row_index: int
    bonus_index: int


@dataclass(frozen=True)
class LoadGame:
    state: GameState


@dataclass(frozen=True)
class ResetGame:
    pass


Action = Union[
    Tick,
    BuyMachine,
    SelectMachine,
    MergeMachines,
    MoveMachine,
    ScrapMachine,
    RepairMachine,
    StartDisaster,
    EndDisaster,
    CollectOffline,
    UpgradeRow,
    RerollBonus,
    RerollAll,
    ToggleBonusLock,
    LoadGame,
    ResetGame,
]
