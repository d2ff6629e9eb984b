"""Cache backends: an in-memory LRU store and a JSON file store."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
import uuid
from collections import OrderedDict
from pathlib import Path

from pydantic import ValidationError

from .models import CacheEntry, Response, calculate_expires_at

logger = logging.getLogger(__name__)


class MemoryCacheAdapter:
    """In-process cache with TTL expiry and optional LRU capacity."""

    def __init__(self, *, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _live(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    async def get(self, key: str) -> CacheEntry | None:
        return self._live(key)

    async def set(self, key: str, value: Response, ttl: float | None = None) -> None:
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=calculate_expires_at(ttl))
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("evicted cache entry %s", evicted)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    async def has(self, key: str) -> bool:
        return self._live(key) is not None

    async def cleanup(self) -> None:
        now = time.time()
        for key in [key for key, entry in self._entries.items() if entry.is_expired(now)]:
            del self._entries[key]


class FileCacheAdapter:
    """Persistent cache storing one JSON document per key.

    Unreadable or expired documents are removed and reported as misses. The
    ``raw`` adapter object of a response is never persisted.
    """

    suffix = ".json"

    def __init__(self, directory: str | Path, *, prefix: str = "wl-request:") -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(f"{self.prefix}{key}".encode()).hexdigest()
        return self.directory / f"{self._file_prefix}{digest}{self.suffix}"

    @property
    def _file_prefix(self) -> str:
        return hashlib.sha256(self.prefix.encode()).hexdigest()[:8] + "-"

    def _read(self, path: Path) -> CacheEntry | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.debug("discarding unreadable cache document %s", path.name)
            path.unlink(missing_ok=True)
            return None
        if entry.is_expired():
            path.unlink(missing_ok=True)
            return None
        return entry

    def _write(self, path: Path, entry: CacheEntry) -> None:
        tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        tmp.write_text(entry.model_dump_json(), encoding="utf-8")
        tmp.replace(path)

    def _documents(self) -> list[Path]:
        return list(self.directory.glob(f"{self._file_prefix}*{self.suffix}"))

    def _remove_all(self) -> None:
        for path in self._documents():
            path.unlink(missing_ok=True)

    def _sweep(self) -> None:
        for path in self._documents():
            self._read(path)

    # Disk access runs in a worker thread so the event loop is not blocked.
    async def get(self, key: str) -> CacheEntry | None:
        return await asyncio.to_thread(self._read, self._path(key))

    async def set(self, key: str, value: Response, ttl: float | None = None) -> None:
        entry = CacheEntry(key=key, value=value, expires_at=calculate_expires_at(ttl))
        await asyncio.to_thread(self._write, self._path(key), entry)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._path(key).unlink, missing_ok=True)

    async def clear(self) -> None:
        await asyncio.to_thread(self._remove_all)

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def cleanup(self) -> None:
        await asyncio.to_thread(self._sweep)
