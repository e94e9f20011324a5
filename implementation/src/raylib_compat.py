"""raylib compatibility layer.

Imports the raylib C bindings (``raylib`` CamelCase API, falling back to the
snake_case ``pyray`` API) and re-exports the handful of calls the factory
front-end uses under snake_case names, with UTF-8 encoding for text
arguments and decoding for text results.
"""
from __future__ import annotations

try:
    from raylib import *  # type: ignore
except Exception:
    try:
        from pyray import *  # type: ignore
    except Exception as exc:
        raise ImportError(
            "Could not import raylib bindings. Install 'raylib' or 'pyray'."
        ) from exc

# Some bindings expose Color as a struct, others use plain tuples.
if "Color" not in globals():
    def Color(r: int, g: int, b: int, a: int):  # type: ignore
        return (r, g, b, a)

_CAMEL_MAP = {
    "init_window": "InitWindow",
    "set_target_fps": "SetTargetFPS",
    "set_exit_key": "SetExitKey",
    "window_should_close": "WindowShouldClose",
    "close_window": "CloseWindow",
    "begin_drawing": "BeginDrawing",
    "end_drawing": "EndDrawing",
    "clear_background": "ClearBackground",
    "get_frame_time": "GetFrameTime",
    "get_mouse_position": "GetMousePosition",
    "is_mouse_button_pressed": "IsMouseButtonPressed",
    "is_key_pressed": "IsKeyPressed",
    "draw_text": "DrawText",
    "draw_rectangle": "DrawRectangle",
    "draw_rectangle_lines": "DrawRectangleLines",
    "measure_text": "MeasureText",
    "get_clipboard_text": "GetClipboardText",
    "set_clipboard_text": "SetClipboardText",
}

for _snake, _camel in _CAMEL_MAP.items():
    if _snake not in globals() and _camel in globals():
        globals()[_snake] = globals()[_camel]

if "MOUSE_BUTTON_RIGHT" not in globals():
    MOUSE_BUTTON_RIGHT = 1  # type: ignore


def _encode_text(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def _decode_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if "ffi" in globals():
        if value == ffi.NULL:  # type: ignore[name-defined]
            return ""
        return ffi.string(value).decode("utf-8", errors="replace")  # type: ignore[name-defined]
    return str(value)


_init_window = globals()["init_window"]
_draw_text = globals()["draw_text"]
_measure_text = globals()["measure_text"]
_get_clipboard_text = globals()["get_clipboard_text"]
_set_clipboard_text = globals()["set_clipboard_text"]


def init_window(width, height, title):  # type: ignore[no-redef]
    return _init_window(width, height, _encode_text(title))


def draw_text(text, x, y, size, color):  # type: ignore[no-redef]
    return _draw_text(_encode_text(text), int(x), int(y), size, color)


def measure_text(text, size):  # type: ignore[no-redef]
    return _measure_text(_encode_text(text), size)


def get_clipboard_text() -> str:  # type: ignore[no-redef]
    return _decode_text(_get_clipboard_text())


def set_clipboard_text(text: str) -> None:  # type: ignore[no-redef]
    _set_clipboard_text(_encode_text(text))
