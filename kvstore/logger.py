"""Timestamped console logger with an optional append-mode log file."""

from __future__ import annotations

import sys
import threading
from datetime import datetime
from typing import TextIO

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _timestamp() -> str:
    return datetime.now().strftime(_TIME_FORMAT)


class Logger:
    """Writes timestamped lines to the console and, when set, to a log file.

    INFO and WARNING lines go to standard output, ERROR lines to standard
    error. Every line is also appended to the log file if one is open.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._file: TextIO | None = None

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _emit(self, level: str, message: str, to_stderr: bool, method: str) -> None:
        line = f"{_timestamp()} [{level}] {message}"
        with self._lock:
            stream = sys.stderr if to_stderr else sys.stdout
            try:
                print(line, file=stream, flush=True)
                if self._file is not None:
                    self._file.write(line + "\n")
                    self._file.flush()
            except (OSError, ValueError) as exc:
                print(f"Logger error in {method}(): {exc}", file=sys.stderr, flush=True)

    def info(self, message: str) -> None:
        """Log an informational message."""
        self._emit("INFO", message, to_stderr=False, method="info")

    def warning(self, message: str) -> None:
        """Log a warning."""
        self._emit("WARNING", message, to_stderr=False, method="warning")

    def error(self, message: str) -> None:
        """Log an error; the console copy goes to standard error."""
        self._emit("ERROR", message, to_stderr=True, method="error")

    def set_log_file(self, filename: str) -> None:
        """Append further log lines to ``filename``, closing any previous file.

        A file that cannot be opened is reported on standard error and
        logging continues on the console only.
        """
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
            try:
                handle = open(filename, "a", encoding="utf-8")
            except OSError:
                print(f"Failed to open log file: {filename}", file=sys.stderr, flush=True)
                return
            self._file = handle
            try:
                handle.write(
                    f"{_timestamp()} [INFO] Logger initialized - logging to file: {filename}\n"
                )
                handle.flush()
            except OSError as exc:
                print(f"Logger error in setLogFile(): {exc}", file=sys.stderr, flush=True)
                return
            print(f"Logging to file: {filename}", flush=True)

    def close(self) -> None:
        """Write a shutdown line to the log file, if any, and close it."""
        with self._lock:
            if self._file is None:
                return
            try:
                self._file.write(f"{_timestamp()} [INFO] Logger shutting down\n")
                self._file.flush()
            except OSError as exc:
                print(f"Logger error in destructor: {exc}", file=sys.stderr, flush=True)
            finally:
                self._file.close()
                self._file = None


_instance: Logger | None = None
_instance_lock = threading.Lock()


def get_logger() -> Logger:
    """Return the process-wide shared logger, creating it on first use."""
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                _instance = Logger()
    return _instance