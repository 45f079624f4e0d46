"""Hot, multicast, replay-latest value streams.

``LiveValue`` holds an in-memory value (platform signals, derived state).
``PreferenceFlow`` backs its value with a ``PreferenceStore``: the first
subscriber triggers a single shared load, later subscribers get the cached
value, and once the last subscriber leaves the cache is dropped after a grace
period so the next subscription reloads from the store.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generic, List, Optional, TypeVar

import structlog

from ..domain.errors import StorageFailure
from .contracts import PreferenceStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """Handle for one subscriber.

    Values are either pushed to ``callback`` or queued for async iteration.
    """

    def __init__(
        self,
        source: "_Broadcast[T]",
        callback: Optional[Callable[[T], None]] = None,
    ) -> None:
        self._source = source
        self._callback = callback
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, value: T) -> None:
        if self._closed:
            return
        if self._callback is None:
            self._queue.put_nowait(value)
            return
        try:
            self._callback(value)
        except Exception:
            logger.exception("subscriber_callback_failed")

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def next(self, timeout: Optional[float] = None) -> T:
        """Wait for the next value."""
        return await asyncio.wait_for(self.__anext__(), timeout)

    def drain(self) -> List[T]:
        """Return every value already delivered but not yet consumed."""
        values: List[T] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not _CLOSED:
                values.append(item)
        return values

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        self._source._unsubscribe(self)

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class _Broadcast(Generic[T]):
    """Subscriber bookkeeping shared by live values and preference flows."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscribers: List[Subscription[T]] = []

    @property
    def value(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Optional[Callable[[T], None]] = None) -> Subscription[T]:
        """Subscribe and immediately receive the current value."""
        subscription: Subscription[T] = Subscription(self, callback)
        self._subscribers.append(subscription)
        subscription._deliver(self._value)
        return subscription

    def _emit(self, value: T) -> None:
        for subscription in list(self._subscribers):
            subscription._deliver(value)

    def _unsubscribe(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def close(self) -> None:
        for subscription in list(self._subscribers):
            subscription.close()


class LiveValue(_Broadcast[T]):
    """In-memory value that re-emits on every change."""

    def __init__(self, initial: T, *, distinct: bool = False) -> None:
        super().__init__(initial)
        self._distinct = distinct

    def set(self, value: T) -> None:
        if self._distinct and value == self._value:
            return
        self._value = value
        self._emit(value)


class PreferenceFlow(_Broadcast[T]):
    """Store-backed preference exposed as a shared stream."""

    def __init__(
        self,
        store: PreferenceStore,
        key: str,
        default: T,
        *,
        decode: Optional[Callable[[Any], T]] = None,
        encode: Optional[Callable[[T], Any]] = None,
        grace_period: float = 5.0,
    ) -> None:
        super().__init__(default)
        self.key = key
        self.default = default
        self.grace_period = max(0.0, float(grace_period))
        self.load_count = 0
        self._store = store
        self._decode = decode or (lambda raw: raw)
        self._encode = encode or (lambda value: value)
        self._cached = False
        self._unsaved = False
        self._load_failed = False
        self._closed = False
        self._epoch = 0
        self._version = 0
        self._load_task: Optional[asyncio.Task] = None
        self._expiry: Optional[asyncio.TimerHandle] = None
        self._write_lock = asyncio.Lock()

    @property
    def is_cached(self) -> bool:
        return self._cached

    @property
    def load_failed(self) -> bool:
        """True when the cached value is the default because the last load failed."""
        return self._load_failed

    @property
    def pending_load(self) -> Optional[asyncio.Task]:
        if self._load_task is not None and not self._load_task.done():
            return self._load_task
        return None

    def subscribe(self, callback: Optional[Callable[[T], None]] = None) -> Subscription[T]:
        """Subscribe from the event loop thread.

        The subscriber sees the cached value, or the default until the shared
        load completes.
        """
        self._cancel_expiry()
        subscription = super().subscribe(callback)
        if not self._cached:
            self._ensure_load()
        return subscription

    async def get(self) -> T:
        """Current value, loading it first when nothing is cached."""
        if self._cached:
            return self._value
        await asyncio.shield(self._ensure_load())
        return self._value

    async def load(self) -> T:
        """Read straight from the store; raises StorageFailure."""
        self.load_count += 1
        raw = await self._store.get(self.key)
        if raw is None:
            return self.default
        try:
            return self._decode(raw)
        except (TypeError, ValueError) as exc:
            raise StorageFailure(self.key, "decode", exc) from exc

    async def refresh(self) -> T:
        """Drop the cache and reload from the store."""
        self._cached = False
        self._load_task = None
        return await self.get()

    async def set(self, value: T) -> None:
        """Publish ``value`` to every subscriber, then persist it.

        Subscribers see values in call order. Writes are serialized, so the
        last call is the last write. A failed write keeps the in-memory value
        authoritative for the rest of the session.
        """
        self._version += 1
        self._value = value
        self._cached = True
        self._load_failed = False
        self._emit(value)
        async with self._write_lock:
            try:
                await self._store.set(self.key, self._encode(value))
            except StorageFailure as exc:
                self._unsaved = True
                logger.warning("preference_save_failed", key=self.key, error=str(exc))
            else:
                self._unsaved = False

    def close(self) -> None:
        self._closed = True
        self._cancel_expiry()
        super().close()

    def _ensure_load(self) -> asyncio.Task:
        if self._load_task is None or (self._load_task.done() and not self._cached):
            loop = asyncio.get_running_loop()
            self._load_task = loop.create_task(
                self._load_into_cache(self._epoch, self._version)
            )
        return self._load_task

    async def _load_into_cache(self, epoch: int, version: int) -> None:
        failed = False
        try:
            value = await self.load()
        except StorageFailure as exc:
            logger.warning("preference_load_failed", key=self.key, error=str(exc))
            value = self.default
            failed = True
        if epoch != self._epoch:
            logger.debug("preference_load_discarded", key=self.key)
            return
        if version != self._version:
            # a set() landed while loading; it is newer than the stored value
            return
        self._cached = True
        self._load_failed = failed
        if value != self._value:
            self._value = value
            self._emit(value)

    def _unsubscribe(self, subscription: Subscription[T]) -> None:
        super()._unsubscribe(subscription)
        if not self._subscribers and not self._closed:
            self._schedule_expiry()

    def _schedule_expiry(self) -> None:
        self._cancel_expiry()
        if self.grace_period <= 0:
            self._expire()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._expire()
            return
        self._expiry = loop.call_later(self.grace_period, self._expire)

    def _cancel_expiry(self) -> None:
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None

    def _expire(self) -> None:
        self._expiry = None
        if self._subscribers:
            return
        self._epoch += 1
        self._load_task = None
        if self._unsaved:
            return
        self._cached = False
        self._load_failed = False
        self._value = self.default
