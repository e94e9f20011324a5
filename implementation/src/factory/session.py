"""Play session: owns the one live GameState and drives it from frame time.

Timers (all in ms):
  production tick   frame deltas are clamped to max_frame_delta_ms, summed,
                    and flushed as one Tick once tick_interval_ms is reached
  disaster check    every disaster_check_interval_ms of wall-clock time
  auto-save         every auto_save_interval_ms of wall-clock time, and on stop()

Everything runs on the caller's thread, one transition at a time. After
stop() the session refuses further steps and actions.
"""
from __future__ import annotations

import random
import time
from typing import Callable, Optional

from factory.actions import (
    Action,
    BuyMachine,
    CollectOffline,
    LoadGame,
    MergeMachines,
    MoveMachine,
    RepairMachine,
    ResetGame,
    ScrapMachine,
    SelectMachine,
    StartDisaster,
    Tick,
)
from factory.balance import BALANCE, Balance
from factory.disasters import roll_disaster
from factory.production import OfflineEarnings, offline_earnings, worth_reporting
from factory.save import FileStorage, export_save_text, import_save_text, load_game, save_game
from factory.simulation import apply_action, can_merge, initial_state
from factory.types import DisasterType, GameState


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class GameSession:
    def __init__(
        self,
        storage: FileStorage,
        state: Optional[GameState] = None,
        clock: Callable[[], float] = wall_clock_ms,
        rng: Optional[random.Random] = None,
        balance: Balance = BALANCE,
    ) -> None:
        self.storage = storage
        self.balance = balance
        self.rng = rng if rng is not None else random.Random()
        self._clock = clock
        now = self._clock()
        self.state = state if state is not None else initial_state(now, balance)
        self.pending_offline: Optional[OfflineEarnings] = None
        self.import_error = ""
        self.stopped = False
        self._tick_accumulator = 0.0
        self._last_disaster_check = now
        self._last_save = now

    @classmethod
    def open(
        cls,
        storage: FileStorage,
        clock: Callable[[], float] = wall_clock_ms,
        rng: Optional[random.Random] = None,
        balance: Balance = BALANCE,
    ) -> "GameSession":
        """Start from the saved game if there is one, noting offline earnings."""
        session = cls(storage, clock=clock, rng=rng, balance=balance)
        now = session.now()
        saved = load_game(storage, now, balance)
        if saved is None:
            return session
        if saved.machines:
            result = offline_earnings(saved.machines, saved.last_tick_time, now, balance)
            if worth_reporting(result, balance):
                session.pending_offline = result
        session.dispatch(LoadGame(saved))
        return session

    def now(self) -> float:
        return self._clock()

    def dispatch(self, action: Action) -> GameState:
        if self.stopped:
            return self.state
        self.state = apply_action(self.state, action, self.now(), self.rng, self.balance)
        return self.state

    def step(self, frame_seconds: float) -> None:
        """Advance by one rendered frame."""
        if self.stopped:
            return
        delta_ms = min(max(0.0, frame_seconds * 1000.0), self.balance.max_frame_delta_ms)
        self._tick_accumulator += delta_ms

        now = self.now()
        if now - self._last_disaster_check >= self.balance.disaster_check_interval_ms:
            self._last_disaster_check = now
            self.check_disaster()

        if self._tick_accumulator >= self.balance.tick_interval_ms:
            elapsed = self._tick_accumulator
            self._tick_accumulator = 0.0
            self.dispatch(Tick(delta_ms=elapsed))

        if now - self._last_save >= self.balance.auto_save_interval_ms:
            self._last_save = now
            self.save()

    def click_slot(self, slot_index: int) -> GameState:
        """Grid click: buy into an empty slot, or select then merge/move."""
        state = self.state
        clicked = state.machine_at(slot_index)
        selected = state.machine_by_id(state.selected_machine_id)

        if selected is None:
            if clicked is None:
                return self.dispatch(BuyMachine(slot_index))
            return self.dispatch(SelectMachine(clicked.id))

        if clicked is None:
            return self.dispatch(MoveMachine(selected.id, slot_index))
        if clicked.id == selected.id:
            return self.dispatch(SelectMachine(None))
        if can_merge(selected, clicked):
            return self.dispatch(MergeMachines(selected.id, clicked.id))
        return self.dispatch(SelectMachine(clicked.id))

    def scrap_selected(self) -> bool:
        selected = self.state.machine_by_id(self.state.selected_machine_id)
        if selected is None:
            return False
        before = self.state
        return self.dispatch(ScrapMachine(selected.id)) is not before

    def repair_selected(self) -> bool:
        selected = self.state.machine_by_id(self.state.selected_machine_id)
        if selected is None:
            return False
        before = self.state
        return self.dispatch(RepairMachine(selected.id)) is not before

    def check_disaster(self) -> None:
        disaster = roll_disaster(self.state, self.now(), self.rng, self.balance)
        if disaster is None:
            return
        before = self.state
        self.dispatch(StartDisaster(disaster))
        if self.state is before:
            return
        if disaster.type == DisasterType.FIRE:
            print(f"[session] Disaster started: fire at slot {disaster.target_slot}")
        else:
            print(f"[session] Disaster started: power outage for {disaster.duration / 1000:.1f}s")

    def collect_offline(self) -> float:
        if self.pending_offline is None:
            return 0.0
        amount = self.pending_offline.earnings
        self.pending_offline = None
        self.dispatch(CollectOffline(earnings=amount))
        return amount

    def save(self) -> bool:
        return save_game(self.storage, self.state, self.now())

    def reset(self) -> None:
        if self.stopped:
            return
        self.storage.delete()
        self.pending_offline = None
        self.dispatch(ResetGame())

    def export_text(self) -> str:
        return export_save_text(self.state)

    def import_text(self, text: str) -> bool:
        if self.stopped:
            return False
        state, error = import_save_text(text, self.now(), self.balance)
        if state is None:
            self.import_error = error
            return False
        self.import_error = ""
        self.dispatch(LoadGame(state))
        return True

    def stop(self) -> None:
        if self.stopped:
            return
        self.save()
        self.stopped = True
