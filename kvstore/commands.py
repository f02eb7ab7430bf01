"""Text command protocol on top of a :class:`KeyValueStore`."""

from __future__ import annotations

import re
from typing import Callable, Sequence

from kvstore.logger import Logger
from kvstore.store import KeyValueStore

HELP_TEXT = (
    "Commands:\n"
    "  SET <key> <value> [ttl]  - Set key-value pair\n"
    "  GET <key>               - Get value\n"
    "  DEL <key>               - Delete key\n"
    "  EXISTS <key>            - Check if key exists\n"
    "  KEYS                    - List all keys\n"
    "  STATS                   - Show statistics\n"
    "  SAVE <filename>         - Save to file\n"
    "  LOAD <filename>         - Load from file\n"
    "  CLEAR                   - Clear all data\n"
    "  FLUSH                   - Flush to disk\n"
    "  HELP                    - Show this help\n"
    "  QUIT                    - Disconnect"
)

_INT_PREFIX = re.compile(r"[+-]?\d+")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


def _parse_int(token: str) -> int | None:
    """Read a leading 32-bit integer from ``token``, or None if there is none."""
    match = _INT_PREFIX.match(token)
    if match is None:
        return None
    number = int(match.group())
    if not _INT_MIN <= number <= _INT_MAX:
        return None
    return number


class CommandHandler:
    """Parses one command line and runs it against the store.

    Every handler takes the whitespace-separated arguments that follow the
    command word and returns the reply text.
    """

    def __init__(self, store: KeyValueStore, logger: Logger) -> None:
        self._store = store
        self._logger = logger
        self._commands: dict[str, Callable[[Sequence[str]], str]] = {
            "SET": self.handle_set,
            "GET": self.handle_get,
            "DEL": self.handle_del,
            "EXISTS": self.handle_exists,
            "EXPIRE": self.handle_expire,
            "TTL": self.handle_ttl,
            "KEYS": self.handle_keys,
            "STATS": self.handle_stats,
            "SAVE": self.handle_save,
            "LOAD": self.handle_load,
            "CLEAR": self.handle_clear,
            "FLUSH": self.handle_flush,
            "HELP": self.handle_help,
            "QUIT": self.handle_quit,
        }

    def handle_command(self, command: str) -> str:
        """Run one command line; the command word is case-insensitive."""
        tokens = command.split()
        if not tokens:
            return "ERROR: Empty command"
        handler = self._commands.get(tokens[0].upper())
        if handler is None:
            return "ERROR: Unknown command"
        try:
            return handler(tokens[1:])
        except Exception as exc:
            self._logger.error(f"Error handling command: {exc}")
            return "ERROR: Internal server error"

    def handle_set(self, args: Sequence[str]) -> str:
        """SET key value [ttl]."""
        if len(args) < 2:
            return "ERROR: SET requires key and value"
        key, value = args[0], args[1]
        ttl = _parse_int(args[2]) if len(args) > 2 else None
        if ttl is None:
            self._store.set(key, value)
        else:
            self._store.set(key, value, ttl)
        return "OK"

    def handle_get(self, args: Sequence[str]) -> str:
        """GET key."""
        if not args:
            return "ERROR: GET requires a key"
        value = self._store.get(args[0])
        return value if value else "(nil)"

    def handle_del(self, args: Sequence[str]) -> str:
        """DEL key."""
        if not args:
            return "ERROR: DEL requires a key"
        return "OK" if self._store.delete(args[0]) else "Key not found"

    def handle_exists(self, args: Sequence[str]) -> str:
        """EXISTS key: "1" or "0"."""
        if not args:
            return "ERROR: EXISTS requires a key"
        return "1" if self._store.exists(args[0]) else "0"

    def handle_expire(self, args: Sequence[str]) -> str:
        """EXPIRE key seconds."""
        ttl = _parse_int(args[1]) if len(args) >= 2 else None
        if ttl is None:
            return "ERROR: EXPIRE requires key and TTL"
        key = args[0]
        if self._store.expire(key, ttl):
            self._logger.info(f"EXPIRE {key} {ttl}")
            return "OK"
        return "Key not found"

    def handle_ttl(self, args: Sequence[str]) -> str:
        """TTL key: whole seconds left."""
        if not args:
            return "ERROR: TTL requires a key"
        key = args[0]
        remaining = self._store.ttl(key)
        if remaining is None:
            return "Key not found or has no TTL"
        self._logger.info(f"TTL {key} = {remaining} seconds")
        return str(remaining)

    def handle_keys(self, args: Sequence[str]) -> str:
        """KEYS: one key per line, or "(empty)"."""
        keys = self._store.keys()
        if not keys:
            return "(empty)"
        return "".join(f"{key}\n" for key in keys)

    def handle_clear(self, args: Sequence[str]) -> str:
        """CLEAR: remove every key."""
        self._store.clear()
        return "OK"

    def handle_save(self, args: Sequence[str]) -> str:
        """SAVE filename."""
        if not args:
            return "ERROR: SAVE requires a filename"
        try:
            self._store.save(args[0])
        except OSError:
            return "ERROR: Failed to save to file"
        return "OK"

    def handle_load(self, args: Sequence[str]) -> str:
        """LOAD filename."""
        if not args:
            return "ERROR: LOAD requires a filename"
        try:
            self._store.load(args[0])
        except OSError:
            return "ERROR: Failed to load from file"
        return "OK"

    def _stats_text(self) -> str:
        stats = self._store.stats()
        return (
            f"Total operations: {stats.total_operations}\n"
            f"Active threads: {stats.active_threads}\n"
            f"Total keys: {stats.total_keys}\n"
            f"Memory usage: {stats.memory_usage} bytes"
        )

    def handle_dump(self, args: Sequence[str]) -> str:
        """Statistics report, noted in the log."""
        text = self._stats_text()
        self._logger.info("DUMP command: statistics retrieved")
        return text

    def handle_help(self, args: Sequence[str]) -> str:
        """HELP: the command summary."""
        return HELP_TEXT

    def handle_flush(self, args: Sequence[str]) -> str:
        """FLUSH filename: save, then empty the store."""
        if not args:
            return "ERROR: FLUSH requires a filename"
        try:
            self._store.flush(args[0])
        except OSError:
            return "ERROR: Failed to flush to file"
        return "OK"

    def handle_quit(self, args: Sequence[str]) -> str:
        """QUIT: "BYE"."""
        return "BYE"

    def handle_stats(self, args: Sequence[str]) -> str:
        """STATS: the store's counters."""
        return self._stats_text()