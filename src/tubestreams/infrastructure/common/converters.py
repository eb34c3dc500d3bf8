"""Type conversion utilities for loosely typed upstream data."""

from __future__ import annotations

from typing import Any


def to_int(raw: Any) -> int | None:
    """Convert a JSON/XML scalar to int, return None if not integral.

    Handles:
        - None → None
        - int → int (passthrough, bools rejected)
        - "123" → 123
        - " 42 " → 42
        - "", "abc", "1.5" → None
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        txt = raw.strip()
        if not txt:
            return None
        try:
            return int(txt)
        except ValueError:
            return None
    return None


def to_float(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return None
    return None


def to_str(raw: Any) -> str | None:
    """Return *raw* if it is a string, else None."""
    return raw if isinstance(raw, str) else None


def null_if_blank(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


def substring_until(value: str, separator: str) -> str:
    """Text before the first *separator*; the whole string if absent."""
    index = value.find(separator)
    return value if index < 0 else value[:index]


def substring_after(value: str, separator: str) -> str:
    """Text after the first *separator*; empty string if absent."""
    index = value.find(separator)
    return "" if index < 0 else value[index + len(separator) :]
