"""Tests for X-User-ID header injection."""

import asyncio
import threading
import time

import httpx
import pytest

from src.services.identity_injector import (
    ANONYMOUS_USER_ID,
    USER_ID_HEADER,
    UserIdInjector,
)
from src.services.preference_store import MemoryPreferenceStore
from src.services.user_preferences import UserPreferences
from tests.fakes import GatedStore


@pytest.fixture
def background_loop():
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=2)
    loop.close()


def _wait_until_bound(preferences, timeout=1.0):
    deadline = time.monotonic() + timeout
    while preferences.loop is None and time.monotonic() < deadline:
        time.sleep(0.01)
    assert preferences.loop is not None


@pytest.mark.asyncio
async def test_async_hook_sets_header_from_cache():
    preferences = UserPreferences(MemoryPreferenceStore({"user_id": "u-42"}))
    await preferences.start()
    injector = UserIdInjector(preferences)
    request = httpx.Request("GET", "http://testserver/api/products")

    await injector(request)

    assert request.headers[USER_ID_HEADER] == "u-42"
    await preferences.close()


@pytest.mark.asyncio
async def test_async_hook_waits_for_first_load():
    preferences = UserPreferences(MemoryPreferenceStore({"user_id": "u-42"}))
    injector = UserIdInjector(preferences, timeout=1.0)

    assert await injector.resolve() == "u-42"
    await preferences.close()


@pytest.mark.asyncio
async def test_async_hook_falls_back_to_anonymous_on_timeout():
    store = GatedStore({"user_id": "u-42"})
    preferences = UserPreferences(store)
    injector = UserIdInjector(preferences, timeout=0.05)
    request = httpx.Request("GET", "http://testserver/api/products")

    await injector(request)

    assert request.headers[USER_ID_HEADER] == ANONYMOUS_USER_ID
    store.release()
    assert await preferences.get_user_id() == "u-42"
    await preferences.close()


@pytest.mark.asyncio
async def test_client_requests_carry_header():
    preferences = UserPreferences(MemoryPreferenceStore({"user_id": "u-42"}))
    await preferences.start()
    seen = []

    def handler(request):
        seen.append(request.headers.get(USER_ID_HEADER))
        return httpx.Response(200, json={})

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        event_hooks={"request": [UserIdInjector(preferences)]},
    ) as client:
        await client.get("http://testserver/one")
        await client.post("http://testserver/two")

    assert seen == ["u-42", "u-42"]
    await preferences.close()


def test_sync_hook_without_started_preferences_is_anonymous():
    preferences = UserPreferences(MemoryPreferenceStore({"user_id": "u-42"}))
    injector = UserIdInjector(preferences, timeout=0.05)
    request = httpx.Request("GET", "http://testserver/")

    injector.sync_hook(request)

    assert request.headers[USER_ID_HEADER] == ANONYMOUS_USER_ID


def test_sync_hook_joins_loop_from_worker_thread(background_loop):
    store = GatedStore({"user_id": "u-42"})
    preferences = UserPreferences(store)
    injector = UserIdInjector(preferences, timeout=2.0)
    started = asyncio.run_coroutine_threadsafe(preferences.start(), background_loop)
    _wait_until_bound(preferences)
    threading.Timer(0.05, lambda: background_loop.call_soon_threadsafe(store.release)).start()

    assert injector.resolve_blocking() == "u-42"

    started.result(timeout=2)
    asyncio.run_coroutine_threadsafe(preferences.close(), background_loop).result(timeout=2)


def test_sync_hook_times_out_to_anonymous(background_loop):
    store = GatedStore({"user_id": "u-42"})
    preferences = UserPreferences(store)
    injector = UserIdInjector(preferences, timeout=0.05)
    started = asyncio.run_coroutine_threadsafe(preferences.start(), background_loop)
    _wait_until_bound(preferences)

    assert injector.resolve_blocking() == ANONYMOUS_USER_ID

    background_loop.call_soon_threadsafe(store.release)
    started.result(timeout=2)
    assert injector.resolve_blocking() == "u-42"
    asyncio.run_coroutine_threadsafe(preferences.close(), background_loop).result(timeout=2)


@pytest.mark.asyncio
async def test_sync_hook_on_loop_thread_never_blocks():
    store = GatedStore({"user_id": "u-42"})
    preferences = UserPreferences(store)
    injector = UserIdInjector(preferences, timeout=5.0)
    starting = asyncio.create_task(preferences.start())
    await asyncio.sleep(0)

    began = time.monotonic()
    assert injector.resolve_blocking() == ANONYMOUS_USER_ID
    assert time.monotonic() - began < 1.0

    store.release()
    await starting
    assert injector.resolve_blocking() == "u-42"
    await preferences.close()


@pytest.mark.asyncio
async def test_sync_hook_on_loop_thread_reuses_pending_prefetch():
    store = GatedStore({"user_id": "u-42"})
    preferences = UserPreferences(store)
    injector = UserIdInjector(preferences, timeout=5.0)
    starting = asyncio.create_task(preferences.start())
    await asyncio.sleep(0)

    assert injector.resolve_blocking() == ANONYMOUS_USER_ID
    first = injector._prefetch
    assert first is not None
    assert injector.resolve_blocking() == ANONYMOUS_USER_ID
    assert injector._prefetch is first

    store.release()
    await starting
    assert await first == "u-42"
    await preferences.close()
