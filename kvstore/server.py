"""TCP server that speaks the line-based key-value command protocol."""

from __future__ import annotations

import select
import signal
import socket
import sys
import threading

from kvstore.commands import HELP_TEXT, CommandHandler
from kvstore.logger import Logger, get_logger
from kvstore.store import KeyValueStore
from kvstore.threadpool import ThreadPool

WELCOME = "Welcome to Key-Value Store Server!\n" + HELP_TEXT + "\n\n"

_POLL_SECONDS = 0.2
_RECV_SIZE = 1023
_TRIM = " \t\r\n"


class Server:
    """Accepts TCP clients and answers one command per line.

    Clients are served on a pool of worker threads; all share one store.
    """

    def __init__(self, logger: Logger | None = None, host: str = "0.0.0.0") -> None:
        self._logger = logger if logger is not None else get_logger()
        self._host = host
        self._store = KeyValueStore()
        self._handler = CommandHandler(self._store, self._logger)
        self._pool = ThreadPool(4)
        self._running = threading.Event()
        self._listener: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._closed = False

    def __enter__(self) -> Server:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self, port: int) -> int:
        """Listen on ``port`` and serve in the background; return the bound port.

        Raises OSError if the socket cannot be set up, and RuntimeError if the
        server is already running or has been stopped.
        """
        if self._closed:
            raise RuntimeError("server has been stopped")
        if self._running.is_set():
            raise RuntimeError("server is already running")

        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        stage = "setsockopt"
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            stage = "Bind"
            listener.bind((self._host, port))
            stage = "Listen"
            listener.listen(socket.SOMAXCONN)
        except OSError as exc:
            self._logger.error(f"{stage} failed with error: {exc}")
            listener.close()
            raise
        listener.settimeout(_POLL_SECONDS)

        bound_port = listener.getsockname()[1]
        self._listener = listener
        self._running.set()
        self._thread = threading.Thread(
            target=self._serve, args=(bound_port,), name="kvstore-server", daemon=True
        )
        self._thread.start()
        return bound_port

    def stop(self) -> None:
        """Stop accepting clients, finish open sessions and release resources."""
        self._logger.info("Server stop requested")
        self._running.clear()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
            self._logger.info("Server thread joined")
        if self._listener is not None:
            self._listener.close()
            self._listener = None
            self._logger.info("Server socket closed")
        if not self._closed:
            self._closed = True
            self._pool.shutdown()
            self._store.close()
        self._logger.info("Server stopped successfully")

    def _serve(self, port: int) -> None:
        self._logger.info(f"Server loop started, listening for connections on port {port}")
        listener = self._listener
        while self._running.is_set() and listener is not None:
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if not self._running.is_set():
                    break
                self._logger.error(f"Accept failed with error: {exc}")
                continue
            self._logger.info("New client connection accepted")
            try:
                self._pool.submit(lambda conn=conn: self._handle_client(conn))
            except Exception as exc:
                self._logger.error(f"Exception in serverLoop: {exc}")
                conn.close()
        self._logger.info("Server loop stopped")

    def _respond(self, command: str) -> str:
        try:
            response = self._handler.handle_command(command)
        except Exception as exc:
            self._logger.error(f"Exception in handleCommand: {exc}")
            response = "ERROR: Internal server error\n"
        if response and not response.endswith("\n"):
            response += "\n"
        return response

    def _handle_client(self, conn: socket.socket) -> None:
        with conn:
            try:
                conn.setblocking(True)
                self._logger.info("Handling client connection")
                try:
                    conn.sendall(WELCOME.encode("utf-8"))
                except OSError as exc:
                    self._logger.error(f"Failed to send welcome message: {exc}")
                    return

                pending = b""
                while self._running.is_set():
                    readable, _, _ = select.select([conn], [], [], _POLL_SECONDS)
                    if not readable:
                        continue
                    try:
                        chunk = conn.recv(_RECV_SIZE)
                    except OSError as exc:
                        self._logger.error(f"recv failed with error: {exc}")
                        break
                    if not chunk:
                        self._logger.info("Client disconnected gracefully")
                        break
                    pending += chunk
                    while b"\n" in pending:
                        raw, pending = pending.split(b"\n", 1)
                        command = raw.decode("utf-8", errors="replace").strip(_TRIM)
                        if not command:
                            continue
                        self._logger.info(f"[REQUEST] {command}")
                        response = self._respond(command)
                        try:
                            conn.sendall(response.encode("utf-8"))
                        except OSError as exc:
                            self._logger.error(f"Send failed with error: {exc}")
                            return
                        if command == "QUIT":
                            self._logger.info("Client requested disconnect")
                            return
            except Exception as exc:
                self._logger.error(f"Exception in handleClient: {exc}")


def main(argv: list[str] | None = None) -> int:
    """Run the server on the port given as the only argument until signalled."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: kvstore-server <port>", file=sys.stderr)
        return 1
    try:
        port = int(args[0])
        if not 0 < port <= 65535:
            print("Invalid port number. Must be between 1 and 65535.", file=sys.stderr)
            return 1

        logger = get_logger()
        logger.set_log_file("server.log")
        logger.info("Server starting up...")
        logger.info(f"Port: {port}")

        shutdown = threading.Event()

        def _on_signal(signum: int, frame: object) -> None:
            print("\nShutting down server...", flush=True)
            shutdown.set()

        with Server(logger) as server:
            signal.signal(signal.SIGINT, _on_signal)
            signal.signal(signal.SIGTERM, _on_signal)
            logger.info("Signal handlers configured")

            try:
                server.start(port)
            except OSError:
                logger.error("Failed to start server")
                print("Failed to start server", file=sys.stderr)
                return 1

            logger.info(f"Server started successfully on port {port}")
            print(f"Server started on port {port}")
            print("Press Ctrl+C to stop", flush=True)

            while not shutdown.wait(0.1):
                pass

            logger.info("Shutdown signal received, stopping server...")
        logger.info("Server stopped successfully")
        return 0
    except Exception as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1