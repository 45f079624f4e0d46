"""Preference store backends."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from ..domain.errors import StorageFailure

logger = structlog.get_logger(__name__)


class JsonFilePreferenceStore:
    """JSON document store with backup and atomic replacement.

    File I/O runs on a worker thread so callers on the event loop only ever
    suspend, never block.
    """

    def __init__(self, path: str = "data/user_preferences.json") -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        document = await self._load_document(key)
        return document.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            document = await self._load_document_for_write(key)
            document[key] = value
            await self._save_document(key, document)

    async def remove(self, key: str) -> None:
        async with self._lock:
            document = await self._load_document_for_write(key)
            if key in document:
                del document[key]
                await self._save_document(key, document)

    async def _load_document(self, key: str) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(self._read)
        except (OSError, ValueError) as exc:
            raise StorageFailure(key, "read", exc) from exc

    async def _load_document_for_write(self, key: str) -> Dict[str, Any]:
        try:
            return await self._load_document(key)
        except StorageFailure as exc:
            # the unreadable document is preserved as the .bak copy
            logger.warning("preference_document_unreadable", path=str(self.path), error=str(exc))
            return {}

    async def _save_document(self, key: str, document: Dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self._write, document)
        except (OSError, TypeError, ValueError) as exc:
            raise StorageFailure(key, "write", exc) from exc

    def _read(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        if not text.strip():
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("preference document must be a JSON object")
        return data

    def _write(self, document: Dict[str, Any]) -> None:
        payload = json.dumps(document, indent=2, sort_keys=True) + "\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if self.path.exists():
            backup_path = self.path.with_suffix(self.path.suffix + ".bak")
            backup_path.write_text(self.path.read_text(encoding="utf-8"), encoding="utf-8")

        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(str(temp_path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(temp_path, self.path)


class MemoryPreferenceStore:
    """Session-only store kept in a dict."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(initial or {})

    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._values.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    async def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)
