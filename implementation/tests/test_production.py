"""Tests for balance curves, production rates and offline earnings."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from factory.balance import (
    Balance,
    is_supported_level,
    load_balance,
    machine_value,
    production_rate,
    repair_cost,
    scrap_refund,
)
from factory.production import (
    OfflineEarnings,
    base_production_rate,
    earnings,
    offline_earnings,
    row_contributions,
    row_for_slot,
    total_production_rate,
    worth_reporting,
)
from factory.types import BonusKind, Machine, Rarity, RowBonus, RowModule

HOUR_MS = 60 * 60 * 1000


class TestBalanceCurves:
    def test_production_grows_by_two_and_a_half(self) -> None:
        assert production_rate(1) == 1
        assert production_rate(2) == 2.5
        assert production_rate(3) == pytest.approx(6.25)

    def test_value_and_floors(self) -> None:
        assert machine_value(1) == 10
        assert machine_value(2) == 25
        assert scrap_refund(1) == 5
        assert scrap_refund(2) == 12
        assert repair_cost(3) == 31

    def test_supported_level_boundary(self) -> None:
        assert is_supported_level(1)
        assert is_supported_level(500)
        assert not is_supported_level(1000)
        assert not is_supported_level(10**9)

    def test_row_count(self) -> None:
        assert Balance().row_count == 3


class TestLoadBalance:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_balance(tmp_path / "nope.json") == Balance()

    def test_corrupt_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "balance.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_balance(path) == Balance()

    def test_overrides_merge(self, tmp_path: Path) -> None:
        path = tmp_path / "balance.json"
        path.write_text(json.dumps({
            "starting_currency": 500,
            "row_module_costs": {"epic": 1},
            "bogus": True,
        }), encoding="utf-8")
        balance = load_balance(path)
        assert balance.starting_currency == 500
        assert balance.row_module_costs["epic"] == 1
        assert balance.row_module_costs["common"] == 100


class TestOnlineProduction:
    def test_row_for_slot(self) -> None:
        assert [row_for_slot(s) for s in range(9)] == [0, 0, 0, 1, 1, 1, 2, 2, 2]

    def test_disabled_machines_produce_nothing(self) -> None:
        machines = [Machine("a", 2, 0), Machine("b", 3, 1, disabled=True)]
        assert total_production_rate(machines, False) == 2.5

    def test_outage_stops_everything(self) -> None:
        assert total_production_rate([Machine("a", 5, 0)], True) == 0

    def test_row_bonus_only_applies_to_its_row(self) -> None:
        module = RowModule(1, Rarity.COMMON, (RowBonus(BonusKind.PRODUCTION_PERCENT, 10),))
        machines = [Machine("a", 1, 0), Machine("b", 1, 4)]
        assert total_production_rate(machines, False, [module]) == pytest.approx(2.1)
        assert base_production_rate(machines) == 2

    def test_earnings_scale_with_delta(self) -> None:
        assert earnings([Machine("a", 1, 0)], False, 100) == pytest.approx(0.1)

    def test_row_contributions(self) -> None:
        module = RowModule(0, Rarity.COMMON, (RowBonus(BonusKind.PRODUCTION_PERCENT, 10),))
        rows = row_contributions([Machine("a", 2, 1)], [module])
        assert len(rows) == 3
        assert rows[0].base_rate == 2.5
        assert rows[0].modified_rate == pytest.approx(2.75)
        assert rows[2].modified_rate == 0


class TestOfflineEarnings:
    def test_half_efficiency_without_bonuses(self) -> None:
        result = offline_earnings([Machine("a", 1, 0)], last_tick_time=0, now=HOUR_MS)
        assert result == OfflineEarnings(earnings=1800, time_away=HOUR_MS)

    def test_capped_at_eight_hours(self) -> None:
        result = offline_earnings([Machine("a", 1, 0)], last_tick_time=0, now=48 * HOUR_MS)
        assert result.time_away == 8 * HOUR_MS
        assert result.earnings == 14400

    def test_floored(self) -> None:
        result = offline_earnings([Machine("a", 1, 0)], last_tick_time=0, now=3000)
        assert result.earnings == 1

    def test_disabled_machines_excluded(self) -> None:
        result = offline_earnings([Machine("a", 4, 0, disabled=True)], 0, HOUR_MS)
        assert result.earnings == 0

    def test_worth_reporting(self) -> None:
        assert worth_reporting(OfflineEarnings(10, 61_000))
        assert not worth_reporting(OfflineEarnings(10, 60_000))
        assert not worth_reporting(OfflineEarnings(0, HOUR_MS))
