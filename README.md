# kvstore

An in-memory key-value store. Keys can be given a time to live, after which
they disappear. The store can be written to and read back from a plain text
file, and it can be served to many clients at once over TCP using a simple
line-based text protocol.

## Installation

```
pip install .
```

## Running the server

```
kvstore-server 6379
```

The port must lie between 1 and 65535. The server listens on all interfaces,
logs to the console and appends to `server.log` in the working directory.
Stop it with Ctrl+C (or SIGTERM). Each connecting client first receives a
welcome message listing the commands; client sessions are served by a pool
of four worker threads, all sharing one store.

## Connecting with the client

```
kvstore-client localhost 6379
```

Type commands, one per line; each reply from the server is printed as it
arrives. Typing `QUIT` disconnects at once without sending anything to the
server. When input ends, the client closes its sending side and waits for the
server to hang up. The client logs to `client.log`.

## Commands

```
SET <key> <value> [ttl]  - Set key-value pair, expiring after ttl seconds if ttl > 0
GET <key>                - Get value, or (nil) if missing or expired
DEL <key>                - Delete key: OK or "Key not found"
EXISTS <key>             - 1 if the key exists, else 0
EXPIRE <key> <seconds>   - Make the key expire after the given seconds
TTL <key>                - Whole seconds left before the key expires
KEYS                     - List all keys, one per line, or (empty)
STATS                    - Show statistics
SAVE <filename>          - Save to file
LOAD <filename>          - Replace the contents with those of a file
CLEAR                    - Clear all data
FLUSH <filename>         - Write to file, then empty the store
HELP                     - Show the command summary
QUIT                     - Reply BYE; the server then closes the connection
```

Command names are not case sensitive, but the server only closes the
connection after a `QUIT` written in capitals. Most replies are a single
line such as `OK`, `(nil)`, `1` / `0`, or a line starting with `ERROR:`
(for example `ERROR: Unknown command` or `ERROR: GET requires a key`);
`KEYS`, `STATS` and `HELP` reply with several lines.

Example session:

```
SET greeting hello
OK
SET session abc 30
OK
GET greeting
hello
TTL session
29
EXISTS missing
0
DEL greeting
OK
```

## Using the store from Python

```python
from kvstore.store import KeyValueStore
from kvstore.commands import CommandHandler
from kvstore.logger import get_logger

with KeyValueStore() as store:
    store.set("colour", "blue")
    store.set("session", "abc", ttl=10)
    print(store.get("colour"))    # "blue"
    print(store.ttl("session"))   # seconds left
    print(store.get("missing"))   # None

    handler = CommandHandler(store, get_logger())
    print(handler.handle_command("GET colour"))   # "blue"

    store.save("snapshot.txt")    # raises OSError on failure
```

`KeyValueStore` also offers `delete`, `exists`, `expire`, `keys`, `clear`,
`load` and `flush`. `stats()` returns a `StoreStats` with `total_operations`,
`memory_usage` (approximate bytes of keys and values), `active_threads` and
`total_keys`. A background thread removes expired keys about once a second
(set `cleanup_interval` to change this); `close()`, or leaving the `with`
block, stops it.

`kvstore.server.Server` can be embedded too: `Server(logger, host).start(port)`
serves in the background and returns the bound port (pass 0 for a free one);
`stop()` shuts it down. `kvstore.client.Client` takes a logger and optional
input and output streams, and has `connect(host, port)`, `start()` and
`stop()`. `kvstore.logger.get_logger()` returns the shared `Logger`, whose
`set_log_file` adds an append-mode log file.

## Limitations

- Keys and values are single words: the protocol and the file format split
  on whitespace, so a value cannot contain spaces.
- Nothing is persisted automatically; data lives in memory until `SAVE` or
  `FLUSH`. Expiry times are not written to files, and loaded keys never
  expire.
- There is no authentication or access control.

## Running the tests

```
pip install ".[test]"
pytest
```