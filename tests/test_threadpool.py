import threading
import time

import pytest

from kvstore.threadpool import ThreadPool


def test_all_submitted_tasks_run():
    results = []
    pool = ThreadPool(4)
    for n in range(20):
        pool.submit(lambda n=n: results.append(n))
    pool.shutdown()
    assert len(results) == 20
    assert sorted(results) == list(range(20))


def test_shutdown_drains_queue():
    done = []
    pool = ThreadPool(1)
    for n in range(5):
        pool.submit(lambda n=n: (time.sleep(0.01), done.append(n)))
    pool.shutdown()
    assert done == [0, 1, 2, 3, 4]


def test_submit_after_shutdown_raises():
    pool = ThreadPool(2)
    pool.shutdown()
    with pytest.raises(RuntimeError, match="submit on stopped ThreadPool"):
        pool.submit(lambda: None)


def test_failing_task_is_reported_and_worker_survives(capsys):
    done = []
    pool = ThreadPool(1)

    def boom():
        raise ValueError("boom")

    pool.submit(boom)
    pool.submit(lambda: done.append(True))
    pool.shutdown()
    _, err = capsys.readouterr()
    assert "Exception in thread pool task: boom" in err
    assert done == [True]


def test_tasks_run_concurrently():
    barrier = threading.Barrier(3, timeout=5)
    passed = []
    pool = ThreadPool(3)
    for _ in range(3):
        pool.submit(
            lambda: (barrier.wait(), passed.append(threading.current_thread().name))
        )
    pool.shutdown()
    assert len(passed) == 3
    assert len(set(passed)) == 3


def test_shutdown_twice_keeps_pool_stopped():
    pool = ThreadPool(2)
    pool.shutdown()
    pool.shutdown()
    with pytest.raises(RuntimeError):
        pool.submit(lambda: None)