"""Typed service contracts for dependency injection."""

from __future__ import annotations

from typing import Any, Optional, Protocol


class PreferenceStore(Protocol):
    """Asynchronous key-value persistence backing user preferences.

    Implementations raise ``StorageFailure`` when a read or write fails.
    """

    async def get(self, key: str, default: Optional[Any] = None) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...
