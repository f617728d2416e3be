from __future__ import annotations

from datetime import datetime

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(value: int) -> str:
    num = float(max(0, value))
    for unit in _UNITS:
        if num < 1024.0 or unit == _UNITS[-1]:
            return f"{int(num)} {unit}" if unit == "B" else f"{num:.1f} {unit}"
        num /= 1024.0
    return f"{int(value)} B"


def format_last_used(value: datetime | None) -> str:
    if value is None:
        return "Unknown"
    return value.strftime("%Y-%m-%d")
