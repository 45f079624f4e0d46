"""Reactive theme resolution."""

from __future__ import annotations

from typing import List, Optional

import structlog

from ..domain.theme import ThemeMode, resolve_is_dark, toggled_mode
from .preference_flow import LiveValue, Subscription
from .user_preferences import UserPreferences

logger = structlog.get_logger(__name__)


class SystemThemeSignal(LiveValue[bool]):
    """Platform "system is in dark mode" signal, fed by the presentation layer."""

    def __init__(self, is_dark: bool = False) -> None:
        super().__init__(bool(is_dark), distinct=True)


class ThemeController:
    """Combines the persisted theme mode with the system signal.

    ``is_dark`` is recomputed on every change of either input and only
    re-emitted when the resolved value actually changes.
    """

    def __init__(
        self,
        preferences: UserPreferences,
        system_signal: Optional[SystemThemeSignal] = None,
    ) -> None:
        self.preferences = preferences
        self.system_signal = system_signal or SystemThemeSignal()
        self.is_dark: LiveValue[bool] = LiveValue(
            resolve_is_dark(preferences.theme_mode.value, self.system_signal.value),
            distinct=True,
        )
        self._subscriptions: List[Subscription] = []

    @property
    def mode(self) -> ThemeMode:
        return self.preferences.theme_mode.value

    def start(self) -> None:
        """Start following both inputs; call from the event loop thread."""
        if self._subscriptions:
            return
        self._subscriptions = [
            self.preferences.theme_mode.subscribe(lambda _: self._recompute()),
            self.system_signal.subscribe(lambda _: self._recompute()),
        ]

    def stop(self) -> None:
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []

    async def toggle(self) -> ThemeMode:
        """LIGHT -> DARK -> LIGHT; SYSTEM -> DARK."""
        new_mode = toggled_mode(self.mode)
        await self.set_mode(new_mode)
        return new_mode

    async def set_mode(self, mode: ThemeMode) -> None:
        logger.info("theme_mode_changed", previous=self.mode.value, mode=ThemeMode.parse(mode).value)
        await self.preferences.set_theme_mode(mode)

    def _recompute(self) -> None:
        self.is_dark.set(resolve_is_dark(self.mode, self.system_signal.value))
