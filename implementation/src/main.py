from __future__ import annotations

import asyncio

from raylib_compat import (
    KEY_ENTER,
    KEY_E,
    KEY_L,
    KEY_A,
    KEY_DOWN,
    KEY_UP,
    KEY_ONE,
    KEY_TWO,
    KEY_THREE,
    KEY_FOUR,
    KEY_R,
    KEY_S,
    KEY_U,
    KEY_V,
    KEY_F9,
    KEY_ESCAPE,
    MOUSE_BUTTON_LEFT,
    MOUSE_BUTTON_RIGHT,
    begin_drawing,
    clear_background,
    close_window,
    end_drawing,
    get_clipboard_text,
    get_frame_time,
    get_mouse_position,
    init_window,
    is_key_pressed,
    is_mouse_button_pressed,
    set_clipboard_text,
    set_exit_key,
    set_target_fps,
    window_should_close,
)

from factory.actions import (
    RerollAll,
    RerollBonus,
    SelectMachine,
    ToggleBonusLock,
    UpgradeRow,
)
from factory.balance import load_balance
from factory.formatting import format_currency
from factory.layout import load_layout
from factory.save import FileStorage, default_save_path
from factory.session import GameSession
from factory.ui import BACKGROUND, Ui

BONUS_KEYS = (KEY_ONE, KEY_TWO, KEY_THREE, KEY_FOUR)


def _handle_keys(session: GameSession, ui: Ui) -> None:
    if is_key_pressed(KEY_ESCAPE):
        session.dispatch(SelectMachine(None))

    if is_key_pressed(KEY_S):
        session.scrap_selected()
    if is_key_pressed(KEY_R):
        selected = session.state.machine_by_id(session.state.selected_machine_id)
        if not session.repair_selected() and selected is not None and selected.disabled:
            ui.status = "Not enough money to repair"

    if is_key_pressed(KEY_UP):
        ui.focused_row = (ui.focused_row - 1) % session.balance.row_count
        ui.focused_bonus = 0
    if is_key_pressed(KEY_DOWN):
        ui.focused_row = (ui.focused_row + 1) % session.balance.row_count
        ui.focused_bonus = 0

    if is_key_pressed(KEY_U):
        before = session.state
        session.dispatch(UpgradeRow(ui.focused_row))
        if session.state is before:
            ui.status = "Cannot upgrade that row"

    for idx, key in enumerate(BONUS_KEYS):
        if is_key_pressed(key):
            ui.focused_bonus = idx
            session.dispatch(RerollBonus(ui.focused_row, idx))
    if is_key_pressed(KEY_A):
        session.dispatch(RerollAll(ui.focused_row))
    if is_key_pressed(KEY_L):
        session.dispatch(ToggleBonusLock(ui.focused_row, ui.focused_bonus))

    if is_key_pressed(KEY_E):
        set_clipboard_text(session.export_text())
        ui.status = "Save copied to clipboard"
    if is_key_pressed(KEY_V):
        if session.import_text(get_clipboard_text()):
            ui.status = "Save imported"
        else:
            ui.status = session.import_error
    if is_key_pressed(KEY_F9):
        session.reset()
        ui.status = "Factory reset"


def _handle_mouse(session: GameSession, ui: Ui) -> None:
    if is_mouse_button_pressed(MOUSE_BUTTON_RIGHT):
        session.dispatch(SelectMachine(None))
        return
    if not is_mouse_button_pressed(MOUSE_BUTTON_LEFT):
        return

    mouse = get_mouse_position()
    mx, my = mouse.x, mouse.y

    slot = ui.hit_slot(mx, my, session.balance.grid_size)
    if slot is not None:
        before = session.state
        session.click_slot(slot)
        if session.state is before and session.state.machine_at(slot) is None:
            ui.status = f"Need {format_currency(session.balance.base_machine_cost)} to buy a machine"
        return

    row = ui.hit_row(mx, my, session.balance.row_count)
    if row is not None:
        ui.focused_row = row
        ui.focused_bonus = 0


async def main() -> None:
    layout = load_layout()
    balance = load_balance()
    init_window(layout.window_width, layout.window_height, "Idle Merge Factory")
    set_exit_key(0)  # ESC deselects instead of closing
    set_target_fps(60)

    session = GameSession.open(FileStorage(default_save_path()), balance=balance)
    ui = Ui(layout)

    try:
        while not window_should_close():
            if session.pending_offline is not None:
                if is_key_pressed(KEY_ENTER) or is_mouse_button_pressed(MOUSE_BUTTON_LEFT):
                    amount = session.collect_offline()
                    ui.status = f"Collected {format_currency(amount)}"
            else:
                _handle_keys(session, ui)
                _handle_mouse(session, ui)

            session.step(get_frame_time())

            begin_drawing()
            clear_background(BACKGROUND)
            ui.draw(session)
            end_drawing()

            await asyncio.sleep(0)
    finally:
        session.stop()
        close_window()


if __name__ == "__main__":
    asyncio.run(main())
