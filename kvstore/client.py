"""Interactive line-based client for the key-value server."""

from __future__ import annotations

import socket
import sys
import threading
from typing import TextIO

from kvstore.logger import Logger, get_logger

_RECV_SIZE = 4095


class Client:
    """Sends lines typed on ``stdin`` to the server and echoes its replies.

    One thread reads input, another prints whatever the server sends. Typing
    ``QUIT`` disconnects without telling the server; end of input closes the
    sending side so the server can finish and hang up.
    """

    def __init__(
        self,
        logger: Logger | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._logger = logger if logger is not None else get_logger()
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._sock: socket.socket | None = None
        self._sock_lock = threading.Lock()
        self._out_lock = threading.Lock()
        self._running = threading.Event()
        self._finished = threading.Event()
        self._input_thread: threading.Thread | None = None
        self._receive_thread: threading.Thread | None = None

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _print(self, text: str) -> None:
        with self._out_lock:
            print(text, file=self._stdout, flush=True)

    def connect(self, host: str, port: int) -> None:
        """Open a TCP connection to ``host``:``port``.

        Raises OSError if the name cannot be resolved or the connection fails.
        """
        try:
            infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
        except socket.gaierror:
            self._logger.error(f"Failed to resolve hostname: {host}")
            raise
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.connect(infos[0][4])
        except OSError as exc:
            self._logger.error(f"Connection failed with error: {exc}")
            sock.close()
            raise
        with self._sock_lock:
            self._sock = sock
        self._print("Connected to server successfully!")

    def start(self) -> None:
        """Run the session until either side ends it.

        Raises RuntimeError if the client is not connected.
        """
        with self._sock_lock:
            sock = self._sock
        if sock is None:
            raise RuntimeError("client is not connected")
        self._finished.clear()
        self._running.set()
        self._input_thread = threading.Thread(
            target=self._handle_input, args=(sock,), name="client-input", daemon=True
        )
        self._receive_thread = threading.Thread(
            target=self._handle_receive, args=(sock,), name="client-receive", daemon=True
        )
        self._input_thread.start()
        self._receive_thread.start()
        self._finished.wait()
        self._receive_thread.join()
        self.stop()

    def stop(self) -> None:
        """Close the connection and end the session; safe to call repeatedly."""
        self._running.clear()
        with self._sock_lock:
            sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()
        receiver = self._receive_thread
        if (
            receiver is not None
            and receiver.is_alive()
            and receiver is not threading.current_thread()
        ):
            receiver.join()
        self._finished.set()

    def _handle_input(self, sock: socket.socket) -> None:
        while self._running.is_set():
            line = self._stdin.readline()
            if not line:
                if self._running.is_set():
                    try:
                        sock.shutdown(socket.SHUT_WR)
                    except OSError:
                        pass
                return
            text = line.rstrip("\r\n")
            if not text:
                continue
            if text == "QUIT":
                self._print("Disconnecting from server...")
                self.stop()
                return
            if not self._running.is_set():
                return
            try:
                sock.sendall((text + "\n").encode("utf-8"))
            except OSError:
                self._print("Error: Failed to send command")
                self.stop()
                return

    def _handle_receive(self, sock: socket.socket) -> None:
        while self._running.is_set():
            try:
                chunk = sock.recv(_RECV_SIZE)
            except OSError as exc:
                if self._running.is_set():
                    self._logger.error(f"recv failed with error: {exc}")
                self.stop()
                return
            if not chunk:
                if self._running.is_set():
                    self._print("Server closed connection")
                self.stop()
                return
            response = chunk.decode("utf-8", errors="replace")
            if response and self._running.is_set():
                self._print(response)
                if response == "BYE":
                    self.stop()
                    return


def main(argv: list[str] | None = None) -> int:
    """Connect to ``<host> <port>`` and run an interactive session."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        print("Usage: kvstore-client <host> <port>")
        return 1
    host, port_text = args
    try:
        port = int(port_text)
    except ValueError:
        print("Error: Failed to connect to server")
        return 1

    logger = get_logger()
    logger.set_log_file("client.log")
    client = Client(logger)
    try:
        client.connect(host, port)
    except (OSError, OverflowError):
        print("Error: Failed to connect to server")
        return 1
    client.start()
    return 0