from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from raylib_compat import (
    Color,
    draw_rectangle,
    draw_rectangle_lines,
    draw_text,
    measure_text,
)

from factory.balance import Balance, production_rate, repair_cost
from factory.formatting import format_currency, format_duration, format_playtime, format_rate
from factory.layout import Layout
from factory.modules import bonus_display_name, is_max_rarity, rarity_name, reroll_cost, upgrade_cost
from factory.production import base_production_rate, row_contributions, total_production_rate
from factory.session import GameSession
from factory.types import DisasterType, Machine, Rarity

BACKGROUND = Color(24, 26, 32, 255)
PANEL = Color(36, 40, 50, 255)
TEXT = Color(230, 230, 235, 255)
MUTED = Color(140, 145, 160, 255)
HIGHLIGHT = Color(250, 210, 90, 255)
DANGER = Color(230, 80, 70, 255)
OVERLAY = Color(0, 0, 0, 170)

# Lv1..Lv10; higher levels reuse the last colour
LEVEL_COLORS = (
    Color(16, 185, 129, 255),
    Color(59, 130, 246, 255),
    Color(168, 85, 247, 255),
    Color(249, 115, 22, 255),
    Color(236, 72, 153, 255),
    Color(6, 182, 212, 255),
    Color(234, 179, 8, 255),
    Color(239, 68, 68, 255),
    Color(99, 102, 241, 255),
    Color(132, 204, 22, 255),
)

RARITY_COLORS = {
    Rarity.COMMON: Color(156, 163, 175, 255),
    Rarity.UNCOMMON: Color(34, 197, 94, 255),
    Rarity.RARE: Color(59, 130, 246, 255),
    Rarity.EPIC: Color(168, 85, 247, 255),
}

ROW_NAMES = ("Top", "Mid", "Bot")

HELP_LINES = (
    "Click empty slot: buy | machine then machine/slot: merge/move | S scrap  R repair",
    "Up/Down row  U upgrade  1-4 reroll  A reroll all  L lock  E export  V import  F9 reset"
)


def level_color(level: int):
    return LEVEL_COLORS[min(level - 1, len(LEVEL_COLORS) - 1)]


@dataclass
class Ui:
    layout: Layout
    focused_row: int = 0
    focused_bonus: int = 0
    status: str = ""

    def draw(self, session: GameSession) -> None:
        self.draw_hud(session)
        self.draw_grid(session)
        self.draw_row_panel(session)
        self.draw_footer()
        if session.pending_offline is not None:
            self.draw_offline_notice(session)

    def draw_hud(self, session: GameSession) -> None:
        state = session.state
        lay = self.layout
        rate = total_production_rate(
            state.machines, state.is_power_outage, state.row_modules, session.balance
        )
        base = base_production_rate(state.machines, session.balance)

        draw_text(format_currency(state.currency), lay.hud_x, lay.hud_y, 30, TEXT)
        rate_line = f"+{format_rate(rate)}"
        if base > 0 and base != rate:
            rate_line += f"  (base {format_rate(base)})"
        draw_text(rate_line, lay.hud_x, lay.hud_y + lay.hud_line_spacing + 14, 18, MUTED)
        draw_text(
            f"Playtime {format_playtime(state.total_play_time)}",
            lay.row_panel_x, lay.hud_y, 18, MUTED,
        )

        disaster = state.active_disaster
        if disaster is None:
            return
        y = lay.hud_y + 2 * lay.hud_line_spacing + 24
        if disaster.type == DisasterType.FIRE:
            draw_text(f"FIRE in slot {disaster.target_slot + 1}! Repair or scrap it.", lay.hud_x, y, 20, DANGER)
        else:
            remaining = disaster.remaining(session.now())
            draw_text(f"POWER OUTAGE - {format_duration(remaining)} left", lay.hud_x, y, 20, DANGER)

    def draw_grid(self, session: GameSession) -> None:
        state = session.state
        lay = self.layout
        for slot in range(session.balance.grid_size):
            x, y, w, h = lay.slot_rect(slot)
            draw_rectangle(x, y, w, h, PANEL)
            machine = state.machine_at(slot)
            if machine is None:
                draw_text(f"+ {format_currency(session.balance.base_machine_cost)}", x + 12, y + h // 2 - 8, 18, MUTED)
                draw_rectangle_lines(x, y, w, h, MUTED)
                continue
            self._draw_machine(
                machine, x, y, w, h,
                selected=machine.id == state.selected_machine_id,
                balance=session.balance,
            )

    def _draw_machine(
        self, machine: Machine, x: int, y: int, w: int, h: int, selected: bool, balance: Balance
    ) -> None:
        color = DANGER if machine.disabled else level_color(machine.level)
        draw_rectangle(x + 4, y + 4, w - 8, h - 8, color)
        draw_text(f"Lv {machine.level}", x + 12, y + 12, 24, TEXT)
        if machine.disabled:
            draw_text("ON FIRE", x + 12, y + 44, 18, TEXT)
            draw_text(f"fix {format_currency(repair_cost(machine.level, balance))}", x + 12, y + 68, 16, TEXT)
        else:
            draw_text(format_rate(production_rate(machine.level, balance)), x + 12, y + 44, 16, TEXT)
        outline = HIGHLIGHT if selected else MUTED
        draw_rectangle_lines(x, y, w, h, outline)
        if selected:
            draw_rectangle_lines(x + 1, y + 1, w - 2, h - 2, outline)

    def draw_row_panel(self, session: GameSession) -> None:
        state = session.state
        lay = self.layout
        contributions = row_contributions(state.machines, state.row_modules, session.balance)
        for row in range(session.balance.row_count):
            top = lay.row_panel_y(row)
            x = lay.row_panel_x
            draw_rectangle(x, top, lay.row_panel_w, lay.grid_cell_size, PANEL)
            if row == self.focused_row:
                draw_rectangle_lines(x, top, lay.row_panel_w, lay.grid_cell_size, HIGHLIGHT)

            module = state.module_for_row(row)
            contribution = contributions[row]
            header = f"{ROW_NAMES[row]}  {format_rate(contribution.modified_rate)}"
            draw_text(header, x + 8, top + 6, 18, TEXT)

            line_y = top + 6 + lay.row_line_spacing + 4
            if module is None:
                draw_text("Not unlocked", x + 8, line_y, 16, MUTED)
            else:
                draw_text(rarity_name(module.rarity), x + lay.row_panel_w - 90, top + 6, 18, RARITY_COLORS[module.rarity])
                for idx, bonus in enumerate(module.bonuses):
                    marker = ">" if row == self.focused_row and idx == self.focused_bonus else " "
                    lock = "[L]" if bonus.locked else "   "
                    text = f"{marker}{idx + 1} {lock} {bonus_display_name(bonus.kind)} {bonus.value:.1f}%"
                    draw_text(text, x + 8, line_y, 14, TEXT)
                    line_y += lay.row_line_spacing - 2

            if module is not None and is_max_rarity(module):
                upgrade_label = "MAX"
            else:
                upgrade_label = format_currency(upgrade_cost(module, session.balance))
            footer = f"Up {upgrade_label}"
            if module is not None:
                footer += f"  Reroll {format_currency(reroll_cost(row, session.balance))}"
            draw_text(footer, x + 8, top + lay.grid_cell_size - 20, 14, MUTED)

    def draw_footer(self) -> None:
        lay = self.layout
        for i, line in enumerate(HELP_LINES):
            draw_text(line, lay.footer_x, lay.footer_y + i * 14, 10, MUTED)
        if self.status:
            draw_text(self.status, lay.footer_x, lay.footer_y - 20, 16, HIGHLIGHT)

    def draw_offline_notice(self, session: GameSession) -> None:
        lay = self.layout
        offline = session.pending_offline
        if offline is None:
            return
        draw_rectangle(0, 0, lay.window_width, lay.window_height, OVERLAY)
        lines = (
            "Welcome back!",
            f"You were away for {format_duration(offline.time_away)}",
            f"Your factory earned {format_currency(offline.earnings)}",
            "Press ENTER or click to collect",
        )
        y = lay.window_height // 2 - 60
        for i, line in enumerate(lines):
            size = 28 if i == 0 else 20
            width = measure_text(line, size) or 0
            draw_text(line, (lay.window_width - width) // 2, y, size, HIGHLIGHT if i == 0 else TEXT)
            y += size + 12

    def hit_slot(self, mx: float, my: float, slot_count: int) -> Optional[int]:
        return self.layout.slot_at(mx, my, slot_count)

    def hit_row(self, mx: float, my: float, row_count: int) -> Optional[int]:
        return self.layout.row_at(mx, my, row_count)
