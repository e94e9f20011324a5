from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Optional, Tuple


def _repo_root() -> Path:
    here = Path(__file__).resolve()
    return here.parents[3]


def default_layout_path() -> Path:
    return _repo_root() / "implementation" / "layout.json"


@dataclass
class Layout:
    window_width: int = 720
    window_height: int = 560

    hud_x: int = 16
    hud_y: int = 12
    hud_line_spacing: int = 22

    grid_origin_x: int = 40
    grid_origin_y: int = 120
    grid_cell_size: int = 112
    grid_gap: int = 8
    grid_columns: int = 3

    # Row module panel, one line group per grid row, right of the grid
    row_panel_x: int = 420
    row_panel_w: int = 280
    row_line_spacing: int = 18

    footer_x: int = 16
    footer_y: int = 530

    def slot_rect(self, slot_index: int) -> Tuple[int, int, int, int]:
        col = slot_index % self.grid_columns
        row = slot_index // self.grid_columns
        step = self.grid_cell_size + self.grid_gap
        return (
            self.grid_origin_x + col * step,
            self.grid_origin_y + row * step,
            self.grid_cell_size,
            self.grid_cell_size,
        )

    def row_panel_y(self, row_index: int) -> int:
        return self.grid_origin_y + row_index * (self.grid_cell_size + self.grid_gap)

    def slot_at(self, sx: float, sy: float, slot_count: int) -> Optional[int]:
        for slot in range(slot_count):
            x, y, w, h = self.slot_rect(slot)
            if x <= sx < x + w and y <= sy < y + h:
                return slot
        return None

    def row_at(self, sx: float, sy: float, row_count: int) -> Optional[int]:
        if not self.row_panel_x <= sx < self.row_panel_x + self.row_panel_w:
            return None
        for row in range(row_count):
            top = self.row_panel_y(row)
            if top <= sy < top + self.grid_cell_size:
                return row
        return None


def load_layout(path: Path | None = None) -> Layout:
    if path is None:
        path = default_layout_path()
    if not path.exists():
        return Layout()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return Layout()
    try:
        return Layout(**data)
    except TypeError:
        return Layout()

