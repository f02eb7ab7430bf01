import time

import pytest

from kvstore.commands import CommandHandler
from kvstore.logger import Logger
from kvstore.store import KeyValueStore


@pytest.fixture
def store():
    kv = KeyValueStore()
    yield kv
    kv.close()


@pytest.fixture
def handler(store):
    return CommandHandler(store, Logger())


def test_source_command_sequence(handler):
    assert handler.handle_command("SET foo bar") == "OK"
    assert handler.handle_command("GET foo") == "bar"
    assert handler.handle_command("DEL foo") == "OK"
    assert handler.handle_command("GET foo") == "(nil)"

    assert handler.handle_command("SET temp value") == "OK"
    assert handler.handle_command("EXPIRE temp 1") == "OK"
    time.sleep(1.2)
    assert handler.handle_command("GET temp") == "(nil)"


@pytest.mark.parametrize(
    "command", ["SET onlykey", "GET", "DEL", "EXPIRE temp notanumber"]
)
def test_source_error_cases(handler, command):
    assert handler.handle_command(command).startswith("ERROR")


def test_empty_and_unknown(handler):
    assert handler.handle_command("") == "ERROR: Empty command"
    assert handler.handle_command("   ") == "ERROR: Empty command"
    assert handler.handle_command("FROB x") == "ERROR: Unknown command"


def test_command_word_is_case_insensitive(handler):
    assert handler.handle_command("set k v") == "OK"
    assert handler.handle_command("Get k") == "v"


def test_del_missing(handler):
    assert handler.handle_command("DEL nothing") == "Key not found"


def test_exists(handler):
    handler.handle_command("SET a 1")
    assert handler.handle_command("EXISTS a") == "1"
    assert handler.handle_command("EXISTS b") == "0"
    assert handler.handle_command("EXISTS") == "ERROR: EXISTS requires a key"


def test_set_with_ttl_then_ttl_reported(handler):
    assert handler.handle_command("SET k v 100") == "OK"
    assert handler.handle_command("TTL k") in {"99", "100"}


def test_set_with_non_numeric_ttl_never_expires(handler):
    assert handler.handle_command("SET k v soon") == "OK"
    assert handler.handle_command("TTL k") == "Key not found or has no TTL"
    assert handler.handle_command("GET k") == "v"


def test_ttl_and_expire_missing(handler):
    assert handler.handle_command("TTL nope") == "Key not found or has no TTL"
    assert handler.handle_command("EXPIRE nope 5") == "Key not found"
    assert handler.handle_command("TTL") == "ERROR: TTL requires a key"


def test_keys(handler):
    assert handler.handle_command("KEYS") == "(empty)"
    handler.handle_command("SET a 1")
    assert handler.handle_command("KEYS") == "a\n"
    handler.handle_command("SET b 2")
    assert sorted(handler.handle_command("KEYS").splitlines()) == ["a", "b"]


def test_clear(handler):
    handler.handle_command("SET a 1")
    assert handler.handle_command("CLEAR") == "OK"
    assert handler.handle_command("KEYS") == "(empty)"


def test_stats(handler):
    handler.handle_command("SET foo bar")
    assert handler.handle_command("STATS") == (
        "Total operations: 1\n"
        "Active threads: 0\n"
        "Total keys: 1\n"
        "Memory usage: 6 bytes"
    )


def test_dump_matches_stats(handler):
    handler.handle_command("SET foo bar")
    assert handler.handle_dump([]) == handler.handle_stats([])


def test_save_and_load_round_trip(handler, tmp_path):
    path = tmp_path / "data.txt"
    handler.handle_command("SET a 1")
    handler.handle_command("SET b 2")
    assert handler.handle_command(f"SAVE {path}") == "OK"
    handler.handle_command("CLEAR")
    assert handler.handle_command(f"LOAD {path}") == "OK"
    assert handler.handle_command("GET a") == "1"
    assert handler.handle_command("GET b") == "2"


def test_save_load_failures(handler, tmp_path):
    missing = tmp_path / "missing" / "file.txt"
    assert handler.handle_command(f"SAVE {missing}") == "ERROR: Failed to save to file"
    assert handler.handle_command(f"LOAD {missing}") == "ERROR: Failed to load from file"
    assert handler.handle_command(f"FLUSH {missing}") == "ERROR: Failed to flush to file"
    assert handler.handle_command("SAVE") == "ERROR: SAVE requires a filename"
    assert handler.handle_command("LOAD") == "ERROR: LOAD requires a filename"
    assert handler.handle_command("FLUSH") == "ERROR: FLUSH requires a filename"


def test_flush_writes_and_empties(handler, tmp_path):
    path = tmp_path / "flushed.txt"
    handler.handle_command("SET a 1")
    assert handler.handle_command(f"FLUSH {path}") == "OK"
    assert handler.handle_command("KEYS") == "(empty)"
    assert path.read_text(encoding="utf-8") == "a 1\n"


def test_help_and_quit(handler):
    help_text = handler.handle_command("HELP")
    assert help_text.startswith("Commands:\n")
    assert "QUIT                    - Disconnect" in help_text
    assert handler.handle_command("QUIT") == "BYE"


def test_handlers_called_directly(handler):
    assert handler.handle_set(["x", "y"]) == "OK"
    assert handler.handle_get(["x"]) == "y"
    assert handler.handle_exists(["x"]) == "1"
    assert handler.handle_del(["x"]) == "OK"
    assert handler.handle_get(["x"]) == "(nil)"
    assert handler.handle_clear([]) == "OK"
    assert handler.handle_quit([]) == "BYE"


class _BrokenStore:
    def get(self, key):
        raise RuntimeError("boom")


def test_internal_error_is_reported():
    broken = CommandHandler(_BrokenStore(), Logger())
    assert broken.handle_command("GET k") == "ERROR: Internal server error"