"""Theme modes and the toggle transition table."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"

    @classmethod
    def parse(cls, raw: Any) -> "ThemeMode":
        """Decode a persisted value; anything unknown means SYSTEM."""
        if isinstance(raw, ThemeMode):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.SYSTEM


# SYSTEM goes to DARK, not to the opposite of the current system appearance.
TOGGLE_TRANSITIONS: Dict[ThemeMode, ThemeMode] = {
    ThemeMode.LIGHT: ThemeMode.DARK,
    ThemeMode.DARK: ThemeMode.LIGHT,
    ThemeMode.SYSTEM: ThemeMode.DARK,
}


def toggled_mode(mode: ThemeMode) -> ThemeMode:
    return TOGGLE_TRANSITIONS[mode]


def resolve_is_dark(mode: ThemeMode, system_is_dark: bool) -> bool:
    """Resolve a mode against the platform's dark-mode signal."""
    if mode is ThemeMode.LIGHT:
        return False
    if mode is ThemeMode.DARK:
        return True
    return bool(system_is_dark)
