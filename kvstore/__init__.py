"""In-memory key-value store with expiring keys, a line-based TCP server and an interactive client."""

__version__ = "0.1.0"
__all__ = ["client", "commands", "logger", "server", "store", "threadpool"]