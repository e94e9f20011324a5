"""Tests for the play session loop: ticks, disaster checks, saves, offline notice."""
from __future__ import annotations

from pathlib import Path
import random

import pytest

from factory.actions import BuyMachine
from factory.balance import FIRE_DURATION_PERMANENT
from factory.save import IMPORT_BAD_JSON, FileStorage, save_game
from factory.session import GameSession
from factory.simulation import initial_state
from factory.types import Disaster, DisasterType, GameState, Machine

START = 1_700_000_000_000.0
HOUR_MS = 60 * 60 * 1000


class FakeClock:
    def __init__(self, now: float = START) -> None:
        self.now = now

    def advance(self, ms: float) -> None:
        self.now += ms

    def __call__(self) -> float:
        return self.now


class ScriptedRandom(random.Random):
    def __init__(self, draws) -> None:
        super().__init__(0)
        self._draws = list(draws)

    def random(self) -> float:
        return self._draws.pop(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage(tmp_path: Path) -> FileStorage:
    return FileStorage(tmp_path / "save.json")


def _one_machine_state(currency: float = 0.0) -> GameState:
    return GameState(currency=currency, machines=(Machine("a", 1, 0),), last_tick_time=START)


class TestTicking:
    def test_ticks_accumulate_to_interval(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=_one_machine_state(), clock=clock, rng=random.Random(1))
        session.step(0.05)
        assert session.state.currency == 0
        session.step(0.05)
        assert session.state.currency == pytest.approx(0.1)
        assert session.state.total_play_time == pytest.approx(100)

    def test_long_frames_are_clamped(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=_one_machine_state(), clock=clock, rng=random.Random(1))
        session.step(5.0)
        assert session.state.currency == pytest.approx(0.1)

    def test_negative_frame_time_ignored(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=_one_machine_state(), clock=clock, rng=random.Random(1))
        session.step(-1.0)
        session.step(0.09)
        assert session.state.currency == 0


class TestDisasterCheck:
    def test_checks_every_thirty_seconds(self, storage: FileStorage, clock: FakeClock) -> None:
        # chance roll, fire coin flip, target pick
        rng = ScriptedRandom([0.0, 0.0, 0.0])
        session = GameSession(storage, state=_one_machine_state(), clock=clock, rng=rng)

        clock.advance(29_999)
        session.step(0.016)
        assert session.state.active_disaster is None

        clock.advance(1)
        session.step(0.016)
        disaster = session.state.active_disaster
        assert disaster.type == DisasterType.FIRE
        assert disaster.target_slot == 0
        assert session.state.machine_at(0).disabled

    def test_no_check_without_machines(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, clock=clock, rng=ScriptedRandom([]))
        clock.advance(60_000)
        session.step(0.016)
        assert session.state.active_disaster is None


class TestPersistence:
    def test_autosave_interval(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, clock=clock, rng=random.Random(1))
        clock.advance(9_000)
        session.step(0.016)
        assert not storage.exists()
        clock.advance(1_000)
        session.step(0.016)
        assert storage.exists()

    def test_open_without_save_starts_fresh(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession.open(storage, clock=clock, rng=random.Random(1))
        assert session.state == initial_state(START)
        assert session.pending_offline is None

    def test_open_reports_offline_earnings(self, storage: FileStorage, clock: FakeClock) -> None:
        save_game(storage, _one_machine_state(currency=5), START)
        clock.advance(HOUR_MS)
        session = GameSession.open(storage, clock=clock, rng=random.Random(1))
        assert session.state.currency == 5
        assert session.state.last_tick_time == START + HOUR_MS
        assert session.pending_offline.earnings == 1800

        assert session.collect_offline() == 1800
        assert session.state.currency == 1805
        assert session.pending_offline is None
        assert session.collect_offline() == 0

    def test_short_absence_not_reported(self, storage: FileStorage, clock: FakeClock) -> None:
        save_game(storage, _one_machine_state(), START)
        clock.advance(30_000)
        session = GameSession.open(storage, clock=clock, rng=random.Random(1))
        assert session.pending_offline is None

    def test_stop_saves_and_freezes(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=_one_machine_state(currency=100), clock=clock, rng=random.Random(1))
        session.stop()
        assert storage.exists()
        frozen = session.state
        session.step(0.1)
        session.dispatch(BuyMachine(1))
        assert session.state is frozen

    def test_reset_deletes_save(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=_one_machine_state(currency=100), clock=clock, rng=random.Random(1))
        session.save()
        session.reset()
        assert not storage.exists()
        assert session.state == initial_state(START)

    def test_import_and_export(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=_one_machine_state(currency=42), clock=clock, rng=random.Random(1))
        text = session.export_text()

        assert not session.import_text("{broken")
        assert session.import_error == IMPORT_BAD_JSON

        session.reset()
        assert session.import_text(text)
        assert session.import_error == ""
        assert session.state.currency == 42


class TestSelectedMachineKeys:
    def test_repair_after_scrap_is_no_op(self, storage: FileStorage, clock: FakeClock) -> None:
        state = GameState(
            currency=100,
            machines=(Machine("a", 2, 4, disabled=True),),
            active_disaster=Disaster(DisasterType.FIRE, START, FIRE_DURATION_PERMANENT, target_slot=4),
            selected_machine_id="a",
        )
        session = GameSession(storage, state=state, clock=clock, rng=random.Random(1))
        assert session.scrap_selected()
        assert not session.repair_selected()
        assert session.state.machines == ()
        assert session.state.active_disaster is None
        # refund only, no repair charge
        assert session.state.currency == 112

    def test_repair_selected(self, storage: FileStorage, clock: FakeClock) -> None:
        state = GameState(
            currency=100,
            machines=(Machine("a", 2, 4, disabled=True),),
            active_disaster=Disaster(DisasterType.FIRE, START, FIRE_DURATION_PERMANENT, target_slot=4),
            selected_machine_id="a",
        )
        session = GameSession(storage, state=state, clock=clock, rng=random.Random(1))
        assert session.repair_selected()
        assert not session.state.machine_at(4).disabled
        assert session.state.currency == 88

    def test_nothing_selected(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=_one_machine_state(), clock=clock, rng=random.Random(1))
        assert not session.scrap_selected()
        assert not session.repair_selected()
        assert len(session.state.machines) == 1


class TestClickSlot:
    def test_click_flow(self, storage: FileStorage, clock: FakeClock) -> None:
        session = GameSession(storage, state=GameState(currency=100), clock=clock, rng=random.Random(1))

        session.click_slot(0)
        session.click_slot(1)
        assert session.state.currency == 80
        first = session.state.machine_at(0)

        session.click_slot(0)
        assert session.state.selected_machine_id == first.id
        session.click_slot(0)
        assert session.state.selected_machine_id is None

        session.click_slot(0)
        session.click_slot(1)
        merged = session.state.machine_at(1)
        assert merged.level == 2
        assert session.state.machine_at(0) is None

        session.click_slot(1)
        session.click_slot(5)
        assert session.state.machine_at(5).id == merged.id
        assert session.state.currency == 80

    def test_click_other_level_switches_selection(self, storage: FileStorage, clock: FakeClock) -> None:
        state = GameState(currency=0, machines=(Machine("a", 1, 0), Machine("b", 2, 1)), selected_machine_id="a")
        session = GameSession(storage, state=state, clock=clock, rng=random.Random(1))
        session.click_slot(1)
        assert session.state.selected_machine_id == "b"
        assert len(session.state.machines) == 2
