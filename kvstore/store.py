"""Thread-safe in-memory key-value store with per-key expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import TextIO


@dataclass(frozen=True)
class StoreStats:
    """Counters reported by :meth:`KeyValueStore.stats`."""

    total_operations: int
    memory_usage: int
    active_threads: int
    total_keys: int


@dataclass
class _Entry:
    value: str
    expiry: float | None = None

    def expired(self, now: float) -> bool:
        return self.expiry is not None and now >= self.expiry


def _size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStore:
    """Maps string keys to string values, optionally expiring after a TTL.

    A background thread removes expired entries every ``cleanup_interval``
    seconds until :meth:`close` is called.
    """

    def __init__(self, cleanup_interval: float = 1.0) -> None:
        self._data: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._memory_usage = 0
        self._total_operations = 0
        self._active_threads = 0
        self._cleanup_interval = cleanup_interval
        self._stopping = threading.Event()
        self._cleaner = threading.Thread(
            target=self._clean_loop, name="kvstore-cleaner", daemon=True
        )
        self._cleaner.start()

    def __enter__(self) -> KeyValueStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def set(self, key: str, value: str, ttl: int = 0) -> bool:
        """Store ``value`` under ``key``; a positive ``ttl`` sets expiry in seconds."""
        entry = _Entry(value)
        if ttl > 0:
            entry.expiry = time.monotonic() + ttl
        with self._lock:
            self._data[key] = entry
            self._total_operations += 1
            self._memory_usage += _size(key, value)
        return True

    def get(self, key: str) -> str | None:
        """Return the value for ``key``, or None if it is missing or expired."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if entry.expired(time.monotonic()):
                del self._data[key]
                return None
            return entry.value

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        with self._lock:
            entry = self._data.pop(key, None)
            if entry is None:
                return False
            self._memory_usage -= _size(key, entry.value)
            self._total_operations += 1
            return True

    def exists(self, key: str) -> bool:
        """Return whether ``key`` holds a value that has not expired."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return False
            if entry.expired(time.monotonic()):
                del self._data[key]
                return False
            return True

    def expire(self, key: str, ttl_seconds: int) -> bool:
        """Make ``key`` expire ``ttl_seconds`` from now; return whether it exists."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return False
            entry.expiry = time.monotonic() + ttl_seconds
            return True

    def ttl(self, key: str) -> int | None:
        """Return whole seconds left for ``key``.

        None if the key is missing, expired, or has no expiry.
        """
        with self._lock:
            entry = self._data.get(key)
            now = time.monotonic()
            if entry is None or entry.expiry is None or entry.expired(now):
                return None
            return int(entry.expiry - now)

    def keys(self) -> list[str]:
        """Return the keys that have not expired."""
        with self._lock:
            now = time.monotonic()
            return [key for key, entry in self._data.items() if not entry.expired(now)]

    def clear(self) -> None:
        """Remove every key."""
        with self._lock:
            self._data.clear()
            self._memory_usage = 0
            self._total_operations += 1

    def _dump(self, handle: TextIO) -> None:
        now = time.monotonic()
        for key, entry in self._data.items():
            if not entry.expired(now):
                handle.write(f"{key} {entry.value}\n")

    def save(self, filename: str) -> None:
        """Write live entries to ``filename`` as ``key value`` lines.

        Raises OSError if the file cannot be written.
        """
        with self._lock, open(filename, "w", encoding="utf-8") as handle:
            self._dump(handle)

    def load(self, filename: str) -> None:
        """Replace the contents with the pairs read from ``filename``.

        Entries are whitespace-separated key/value tokens; a trailing unpaired
        token is ignored and loaded entries never expire. Raises OSError if the
        file cannot be read, leaving the store unchanged.
        """
        with self._lock:
            with open(filename, encoding="utf-8") as handle:
                tokens = iter(handle.read().split())
            self._data.clear()
            self._memory_usage = 0
            for key, value in zip(tokens, tokens):
                self._data[key] = _Entry(value)
                self._memory_usage += _size(key, value)

    def flush(self, filename: str) -> None:
        """Write live entries to ``filename`` and then empty the store.

        Raises OSError if the file cannot be written, leaving the store unchanged.
        """
        with self._lock:
            with open(filename, "w", encoding="utf-8") as handle:
                self._dump(handle)
            self._data.clear()
            self._memory_usage = 0

    def stats(self) -> StoreStats:
        """Return a snapshot of the store's counters."""
        with self._lock:
            return StoreStats(
                total_operations=self._total_operations,
                memory_usage=self._memory_usage,
                active_threads=self._active_threads,
                total_keys=len(self._data),
            )

    def _remove_expired(self) -> None:
        with self._lock:
            now = time.monotonic()
            for key in [k for k, entry in self._data.items() if entry.expired(now)]:
                entry = self._data.pop(key)
                self._memory_usage -= _size(key, entry.value)

    def _clean_loop(self) -> None:
        while True:
            self._remove_expired()
            if self._stopping.wait(self._cleanup_interval):
                return

    def close(self) -> None:
        """Stop the background cleaner and wait for it to finish."""
        self._stopping.set()
        if self._cleaner.is_alive() and self._cleaner is not threading.current_thread():
            self._cleaner.join()