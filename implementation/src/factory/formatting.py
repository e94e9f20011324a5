"""Number and time formatting for the HUD."""
from __future__ import annotations

import math

_SUFFIXES = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
)


def format_large_number(num: float) -> str:
    for threshold, suffix in _SUFFIXES:
        if abs(num) >= threshold:
            return f"{num / threshold:.1f}{suffix}"
    return f"{num:.1f}"


def format_currency(amount: float) -> str:
    if abs(amount) >= 1e3:
        return "$" + format_large_number(amount)
    return f"${math.floor(amount):,}"


def format_rate(rate: float) -> str:
    if rate >= 1e6:
        return f"${rate / 1e6:.1f}M/s"
    if rate >= 1e3:
        return f"${rate / 1e3:.1f}K/s"
    return f"${rate:.1f}/s"


def format_duration(ms: float) -> str:
    seconds = math.floor(ms / 1000)
    minutes = seconds // 60
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def format_playtime(ms: float) -> str:
    total = math.floor(ms / 1000)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
