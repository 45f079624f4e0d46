"""Session-owned user preference state.

One ``UserPreferences`` instance is created at session start and passed to
every consumer (theme engine, identity injector, presentation layer).
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Callable, List, Optional

import structlog

from ..config.settings import settings
from ..domain.theme import ThemeMode
from .contracts import PreferenceStore
from .preference_flow import PreferenceFlow, Subscription
from .preference_store import JsonFilePreferenceStore, MemoryPreferenceStore

logger = structlog.get_logger(__name__)

USER_ID_KEY = "user_id"
THEME_MODE_KEY = "theme_mode"
SORT_PREFERENCE_KEY = "sort_preference"
GRID_MODE_KEY = "grid_mode"
SEARCH_HISTORY_KEY = "search_history"

DEFAULT_SORT = "name,asc"
DEFAULT_GRID_COLUMNS = 2
MAX_SEARCH_HISTORY = 5


def _decode_search_history(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        raise ValueError("search history must be a list")
    return [str(term) for term in raw if str(term).strip()]


class UserPreferences:
    """Owns one preference flow per persisted key."""

    def __init__(
        self,
        store: PreferenceStore,
        *,
        grace_period: Optional[float] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        grace = settings.preferences.grace_period_seconds if grace_period is None else grace_period
        self.store = store
        self._id_factory = id_factory
        self._id_lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_user_id: Optional[str] = None
        self._pins: List[Subscription[Any]] = []

        self.user_id: PreferenceFlow[Optional[str]] = PreferenceFlow(
            store,
            USER_ID_KEY,
            None,
            decode=lambda raw: str(raw) if str(raw).strip() else None,
            grace_period=grace,
        )
        self.theme_mode: PreferenceFlow[ThemeMode] = PreferenceFlow(
            store,
            THEME_MODE_KEY,
            ThemeMode.SYSTEM,
            decode=ThemeMode.parse,
            encode=lambda mode: mode.value,
            grace_period=grace,
        )
        self.sort_preference: PreferenceFlow[str] = PreferenceFlow(
            store, SORT_PREFERENCE_KEY, DEFAULT_SORT, decode=str, grace_period=grace
        )
        self.grid_mode: PreferenceFlow[int] = PreferenceFlow(
            store, GRID_MODE_KEY, DEFAULT_GRID_COLUMNS, decode=int, grace_period=grace
        )
        self.search_history: PreferenceFlow[List[str]] = PreferenceFlow(
            store,
            SEARCH_HISTORY_KEY,
            [],
            decode=_decode_search_history,
            encode=list,
            grace_period=grace,
        )

    @classmethod
    def from_settings(cls, path: Optional[str] = None) -> "UserPreferences":
        store_path = path if path is not None else settings.preferences.store_path
        store: PreferenceStore
        if store_path:
            store = JsonFilePreferenceStore(store_path)
        else:
            store = MemoryPreferenceStore()
        return cls(store)

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        """Event loop that owns these preferences, bound by ``start()``."""
        return self._loop

    @property
    def cached_user_id(self) -> Optional[str]:
        if self.user_id.is_cached and self.user_id.value:
            return self.user_id.value
        return self._session_user_id

    async def start(self) -> None:
        """Bind to the running loop and seed identity and theme caches.

        Must complete before the first outbound request is built.
        """
        self._loop = asyncio.get_running_loop()
        # held for the whole session so these caches never expire
        self._pins = [self.user_id.subscribe(lambda _: None), self.theme_mode.subscribe(lambda _: None)]
        user_id = await self.get_user_id()
        await self.theme_mode.get()
        logger.info("preferences_started", user_id=user_id, theme_mode=self.theme_mode.value.value)

    async def close(self) -> None:
        for pin in self._pins:
            pin.close()
        self._pins = []
        flows = self._flows()
        pending = [flow.pending_load for flow in flows if flow.pending_load is not None]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        for flow in flows:
            flow.close()
        logger.info("preferences_closed")

    async def get_user_id(self) -> str:
        """Return the persisted identifier, creating one when the store has none.

        If the store cannot be read, a session-only identifier is returned and
        nothing is written, so a saved identity is never replaced.
        """
        user_id = await self.user_id.get()
        if user_id:
            return user_id
        async with self._id_lock:
            user_id = await self.user_id.get()
            if user_id:
                return user_id
            if self.user_id.load_failed:
                user_id = await self.user_id.refresh()
                if user_id:
                    return user_id
            if self.user_id.load_failed:
                return self._session_id()
            user_id = self._id_factory()
            logger.info("user_id_created", user_id=user_id)
            await self.user_id.set(user_id)
            return user_id

    def _session_id(self) -> str:
        if self._session_user_id is None:
            self._session_user_id = self._id_factory()
            logger.warning("user_id_session_only", user_id=self._session_user_id)
        return self._session_user_id

    async def set_user_id(self, user_id: str) -> None:
        if not user_id or not user_id.strip():
            raise ValueError("user id must be a non-empty string")
        await self.user_id.set(user_id.strip())

    async def set_theme_mode(self, mode: ThemeMode) -> None:
        await self.theme_mode.set(ThemeMode.parse(mode))

    async def set_sort_preference(self, sort: str) -> None:
        await self.sort_preference.set(sort)

    async def set_grid_mode(self, columns: int) -> None:
        if columns < 1:
            raise ValueError("grid mode needs at least one column")
        await self.grid_mode.set(int(columns))

    async def add_search_term(self, term: str) -> None:
        """Move ``term`` to the front of the history, keeping the newest five."""
        cleaned = (term or "").strip()
        if not cleaned:
            return
        current = await self.search_history.get()
        history = [cleaned] + [existing for existing in current if existing != cleaned]
        await self.search_history.set(history[:MAX_SEARCH_HISTORY])

    async def remove_search_term(self, term: str) -> None:
        current = await self.search_history.get()
        await self.search_history.set([existing for existing in current if existing != term])

    async def clear_search_history(self) -> None:
        await self.search_history.set([])

    def _flows(self) -> List[PreferenceFlow[Any]]:
        return [
            self.user_id,
            self.theme_mode,
            self.sort_preference,
            self.grid_mode,
            self.search_history,
        ]
