"""Tests for shared, replaying preference streams."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.domain.errors import StorageFailure
from src.services.preference_flow import LiveValue, PreferenceFlow
from src.services.preference_store import MemoryPreferenceStore
from tests.fakes import CountingStore, FailingStore, FlakyReadStore, GatedStore


def make_flow(store, default="system", grace_period=5.0, **kwargs):
    return PreferenceFlow(store, "theme_mode", default, grace_period=grace_period, **kwargs)


@pytest.mark.asyncio
async def test_empty_store_emits_default_exactly_once():
    flow = make_flow(CountingStore())
    subscription = flow.subscribe()

    await flow.get()
    await asyncio.sleep(0)

    assert subscription.drain() == ["system"]
    assert flow.is_cached
    flow.close()


@pytest.mark.asyncio
async def test_stored_value_replaces_default_after_load():
    flow = make_flow(CountingStore({"theme_mode": "dark"}))
    subscription = flow.subscribe()

    assert await subscription.next(timeout=1) == "system"
    assert await subscription.next(timeout=1) == "dark"
    flow.close()


@pytest.mark.asyncio
async def test_set_values_arrive_in_call_order_and_last_write_wins():
    store = CountingStore()
    flow = make_flow(store)
    subscription = flow.subscribe()
    await flow.get()

    await asyncio.gather(flow.set("light"), flow.set("dark"), flow.set("light"))

    assert subscription.drain() == ["system", "light", "dark", "light"]
    assert store.snapshot() == {"theme_mode": "light"}
    assert [value for _, value in store.writes] == ["light", "dark", "light"]
    flow.close()


@pytest.mark.asyncio
async def test_late_subscriber_gets_latest_value_without_reload():
    store = CountingStore({"theme_mode": "dark"})
    flow = make_flow(store)
    first = flow.subscribe()
    await flow.get()

    second = flow.subscribe()

    assert second.drain() == ["dark"]
    assert flow.load_count == 1
    first.close()
    second.close()


@pytest.mark.asyncio
async def test_concurrent_subscribers_share_one_load():
    store = GatedStore({"theme_mode": "light"})
    flow = make_flow(store)

    first = flow.subscribe()
    second = flow.subscribe()
    store.release()
    assert await flow.get() == "light"

    assert flow.load_count == 1
    assert first.drain() == ["system", "light"]
    assert second.drain() == ["system", "light"]
    flow.close()


@pytest.mark.asyncio
async def test_resubscribe_within_grace_period_keeps_cache():
    flow = make_flow(CountingStore({"theme_mode": "dark"}), grace_period=5.0)
    with flow.subscribe():
        await flow.get()

    with flow.subscribe() as again:
        assert again.drain() == ["dark"]

    assert flow.load_count == 1
    flow.close()


@pytest.mark.asyncio
async def test_cache_expires_after_grace_period():
    store = CountingStore({"theme_mode": "dark"})
    flow = make_flow(store, grace_period=0.01)
    with flow.subscribe():
        await flow.get()

    await asyncio.sleep(0.05)

    assert not flow.is_cached
    assert flow.value == "system"
    await store.set("theme_mode", "light")
    with flow.subscribe():
        assert await flow.get() == "light"
    assert flow.load_count == 2
    flow.close()


@pytest.mark.asyncio
async def test_read_failure_falls_back_to_default():
    flow = make_flow(FailingStore(fail_writes=False))
    subscription = flow.subscribe()

    assert await flow.get() == "system"

    assert flow.is_cached
    assert subscription.drain() == ["system"]
    flow.close()


@pytest.mark.asyncio
async def test_load_raises_storage_failure_directly():
    flow = make_flow(FailingStore())

    with pytest.raises(StorageFailure):
        await flow.load()


@pytest.mark.asyncio
async def test_decode_failure_falls_back_to_default():
    flow = PreferenceFlow(MemoryPreferenceStore({"grid_mode": "wide"}), "grid_mode", 2, decode=int)

    assert await flow.get() == 2
    with pytest.raises(StorageFailure) as exc_info:
        await flow.load()
    assert exc_info.value.operation == "decode"


@pytest.mark.asyncio
async def test_failed_write_keeps_value_for_the_session():
    flow = make_flow(FailingStore(fail_reads=False), grace_period=0)
    with flow.subscribe() as subscription:
        await flow.get()
        await flow.set("dark")
        assert subscription.drain() == ["system", "dark"]

    # no subscribers and no grace period: expiry has already run
    assert flow.value == "dark"
    assert flow.is_cached


@pytest.mark.asyncio
async def test_set_during_load_is_not_overwritten_by_stale_read():
    store = GatedStore({"theme_mode": "light"})
    flow = make_flow(store)
    subscription = flow.subscribe()
    load = flow.pending_load

    await flow.set("dark")
    store.release()
    await load

    assert flow.value == "dark"
    assert subscription.drain() == ["system", "dark"]
    flow.close()


@pytest.mark.asyncio
async def test_refresh_reloads_from_store():
    store = CountingStore({"theme_mode": "light"})
    flow = make_flow(store)
    await flow.get()
    await store.set("theme_mode", "dark")

    assert await flow.refresh() == "dark"
    assert flow.load_count == 2


@pytest.mark.asyncio
async def test_subscription_supports_async_iteration():
    flow = make_flow(MemoryPreferenceStore())
    subscription = flow.subscribe()
    await flow.get()
    await flow.set("dark")
    subscription.close()

    assert [value async for value in subscription] == ["system", "dark"]


@pytest.mark.asyncio
async def test_callback_errors_do_not_break_other_subscribers():
    flow = make_flow(MemoryPreferenceStore())
    seen = []

    def broken(_value):
        raise RuntimeError("boom")

    flow.subscribe(broken)
    flow.subscribe(seen.append)
    await flow.get()
    await flow.set("light")

    assert seen == ["system", "light"]
    flow.close()


def test_live_value_distinct_suppresses_repeats():
    value = LiveValue(False, distinct=True)
    seen = []
    value.subscribe(seen.append)

    value.set(False)
    value.set(True)
    value.set(True)

    assert seen == [False, True]


def test_live_value_without_distinct_re_emits():
    value = LiveValue(0)
    seen = []
    value.subscribe(seen.append)

    value.set(0)

    assert seen == [0, 0]
    assert value.subscriber_count == 1


@pytest.mark.asyncio
async def test_encode_and_decode_wrap_store_values():
    store = AsyncMock()
    store.get.return_value = "3"
    flow = PreferenceFlow(store, "grid_mode", 2, decode=int, encode=str)

    assert await flow.get() == 3
    await flow.set(4)

    store.get.assert_awaited_once_with("grid_mode")
    store.set.assert_awaited_once_with("grid_mode", "4")


@pytest.mark.asyncio
async def test_load_failed_tracks_last_load_outcome():
    store = FlakyReadStore({"theme_mode": "dark"}, failures=1)
    flow = make_flow(store)

    assert await flow.get() == "system"
    assert flow.load_failed

    assert await flow.refresh() == "dark"
    assert not flow.load_failed
