"""Fixed-size pool of worker threads fed from a FIFO queue."""

from __future__ import annotations

import sys
import threading
from collections import deque
from typing import Callable


class ThreadPool:
    """Runs submitted callables on a fixed set of worker threads.

    Shutting down lets workers finish every task already queued.
    """

    def __init__(self, num_threads: int = 4) -> None:
        self._tasks: deque[Callable[[], object]] = deque()
        self._condition = threading.Condition()
        self._stopped = False
        self._workers = [
            threading.Thread(target=self._work, name=f"pool-worker-{n}", daemon=True)
            for n in range(num_threads)
        ]
        for worker in self._workers:
            worker.start()

    def __enter__(self) -> ThreadPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _work(self) -> None:
        while True:
            with self._condition:
                self._condition.wait_for(lambda: self._stopped or self._tasks)
                if not self._tasks:
                    return
                task = self._tasks.popleft()
            try:
                task()
            except Exception as exc:  # a failing task must not kill the worker
                print(f"Exception in thread pool task: {exc}", file=sys.stderr, flush=True)

    def submit(self, task: Callable[[], object]) -> None:
        """Queue ``task`` for execution.

        Raises RuntimeError once the pool has been shut down.
        """
        with self._condition:
            if self._stopped:
                raise RuntimeError("submit on stopped ThreadPool")
            self._tasks.append(task)
            self._condition.notify()

    def shutdown(self) -> None:
        """Stop accepting tasks, run those still queued and join the workers."""
        with self._condition:
            self._stopped = True
            self._condition.notify_all()
        current = threading.current_thread()
        for worker in self._workers:
            if worker is not current:
                worker.join()