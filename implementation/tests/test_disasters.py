"""Tests for disaster generation."""
from __future__ import annotations

import random

import pytest

from factory.balance import FIRE_DURATION_PERMANENT
from factory.disasters import (
    can_check,
    generate_disaster,
    power_outage_duration,
    random_in_range,
    roll_disaster,
)
from factory.types import BonusKind, Disaster, DisasterType, GameState, Machine, Rarity, RowBonus, RowModule

NOW = 1_000_000.0


class ScriptedRandom(random.Random):
    """Random whose ``random()`` replays a fixed list of draws."""

    def __init__(self, draws) -> None:
        super().__init__(0)
        self._draws = list(draws)

    def random(self) -> float:
        return self._draws.pop(0)


def _reduction_module(value: float) -> RowModule:
    return RowModule(0, Rarity.COMMON, (RowBonus(BonusKind.DISASTER_DURATION_REDUCTION, value),))


class TestGate:
    def test_no_machines_no_check(self) -> None:
        assert not can_check(GameState(currency=0))

    def test_active_disaster_blocks_check(self) -> None:
        state = GameState(
            currency=0,
            machines=(Machine("a", 1, 0),),
            active_disaster=Disaster(DisasterType.POWER_OUTAGE, NOW, 10000),
        )
        assert not can_check(state)
        assert roll_disaster(state, NOW, ScriptedRandom([0.0, 0.0, 0.0])) is None

    def test_roll_above_chance_is_quiet(self) -> None:
        state = GameState(currency=0, machines=(Machine("a", 1, 0),))
        assert roll_disaster(state, NOW, ScriptedRandom([0.15])) is None


class TestGeneration:
    def test_fire_targets_enabled_machine(self) -> None:
        state = GameState(
            currency=0,
            machines=(Machine("a", 1, 0, disabled=True), Machine("b", 1, 4)),
        )
        disaster = roll_disaster(state, NOW, ScriptedRandom([0.1, 0.2, 0.99]))
        assert disaster.type == DisasterType.FIRE
        assert disaster.target_slot == 4
        assert disaster.duration == FIRE_DURATION_PERMANENT
        assert not disaster.has_expired(NOW + 10**8)

    def test_fire_without_targets_is_no_op(self) -> None:
        state = GameState(currency=0, machines=(Machine("a", 1, 0, disabled=True),))
        assert generate_disaster(state, NOW, ScriptedRandom([0.1])) is None

    def test_power_outage_duration_in_range(self) -> None:
        state = GameState(currency=0, machines=(Machine("a", 1, 0),))
        rng = random.Random(21)
        outages = 0
        for _ in range(100):
            disaster = generate_disaster(state, NOW, rng)
            if disaster.type == DisasterType.POWER_OUTAGE:
                outages += 1
                assert 10000 <= disaster.duration <= 30000
                assert disaster.target_slot is None
        assert outages > 0

    def test_outage_shortened_by_modules(self) -> None:
        assert power_outage_duration(20000, [_reduction_module(10)]) == pytest.approx(18000)

    def test_outage_has_floor(self) -> None:
        modules = [
            RowModule(row, Rarity.EPIC, (RowBonus(BonusKind.DISASTER_DURATION_REDUCTION, 50),) * 4)
            for row in range(3)
        ]
        # 10000 * (1 - 0.8) = 2000, exactly the floor
        assert power_outage_duration(10000, modules) == 2000
        assert power_outage_duration(5000, modules) == 2000

    def test_random_in_range_inclusive(self) -> None:
        assert random_in_range(10, 20, ScriptedRandom([0.0])) == 10
        assert random_in_range(10, 20, ScriptedRandom([0.9999])) == 20
