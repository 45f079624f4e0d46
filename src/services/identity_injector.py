"""Attach the user identifier to every outbound request."""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Optional

import httpx
import structlog

from ..config.settings import settings
from ..domain.errors import IdentityUnavailable
from .user_preferences import UserPreferences

logger = structlog.get_logger(__name__)

USER_ID_HEADER = "X-User-ID"
ANONYMOUS_USER_ID = "anonymous"


class UserIdInjector:
    """Request hook that sets ``X-User-ID``.

    The instance itself is an ``httpx.AsyncClient`` request event hook.
    ``sync_hook`` serves ``httpx.Client``; it only ever blocks the calling
    thread, and never when that thread runs the preferences' event loop.
    When the identifier cannot be obtained in time the request carries
    ``ANONYMOUS_USER_ID`` instead of failing.
    """

    def __init__(self, preferences: UserPreferences, *, timeout: Optional[float] = None) -> None:
        self.preferences = preferences
        self.timeout = settings.preferences.identity_timeout_seconds if timeout is None else timeout
        self._prefetch: Optional[asyncio.Task] = None

    async def __call__(self, request: httpx.Request) -> None:
        request.headers[USER_ID_HEADER] = await self.resolve()

    def sync_hook(self, request: httpx.Request) -> None:
        request.headers[USER_ID_HEADER] = self.resolve_blocking()

    async def resolve(self) -> str:
        cached = self.preferences.cached_user_id
        if cached:
            return cached
        try:
            return await self._await_identity()
        except IdentityUnavailable as exc:
            logger.warning("identity_unavailable", reason=exc.reason, timeout=self.timeout)
            return ANONYMOUS_USER_ID

    def resolve_blocking(self) -> str:
        cached = self.preferences.cached_user_id
        if cached:
            return cached
        try:
            return self._join_identity()
        except IdentityUnavailable as exc:
            logger.warning("identity_unavailable", reason=exc.reason, timeout=self.timeout)
            return ANONYMOUS_USER_ID

    async def _await_identity(self) -> str:
        try:
            return await asyncio.wait_for(self.preferences.get_user_id(), self.timeout)
        except asyncio.TimeoutError as exc:
            raise IdentityUnavailable(self.timeout) from exc

    def _join_identity(self) -> str:
        loop = self.preferences.loop
        if loop is None or loop.is_closed() or not loop.is_running():
            raise IdentityUnavailable(reason="preferences not started")
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            # joining here would wait on the loop this thread is supposed to run
            if self._prefetch is None or self._prefetch.done():
                self._prefetch = loop.create_task(self.preferences.get_user_id())
            raise IdentityUnavailable(reason="called on the preferences event loop")

        future = asyncio.run_coroutine_threadsafe(self.preferences.get_user_id(), loop)
        try:
            return future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError as exc:
            future.cancel()
            raise IdentityUnavailable(self.timeout) from exc
