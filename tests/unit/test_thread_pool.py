"""
Unit tests for the fixed-size thread pool.
"""

import threading

import pytest

from taskserver.core.thread_pool import ThreadPool


@pytest.fixture
def pool():
    pool = ThreadPool(workers=8)
    pool.start()
    yield pool
    pool.shutdown(wait=False)


class TestThreadPool:

    def test_starts_fixed_number_of_workers(self, pool: ThreadPool):
        assert pool.size == 8
        assert pool.workers == 8

    def test_rejects_zero_workers(self):
        with pytest.raises(ValueError):
            ThreadPool(workers=0)

    def test_submit_before_start(self):
        with pytest.raises(RuntimeError):
            ThreadPool(workers=1).submit(lambda: None)

    def test_runs_tasks(self, pool: ThreadPool):
        results = []
        lock = threading.Lock()

        def record(value):
            with lock:
                results.append(value)

        for i in range(20):
            assert pool.submit(record, args=(i,))

        pool.shutdown(wait=True)

        assert sorted(results) == list(range(20))

    def test_at_most_eight_tasks_run_at_once(self, pool: ThreadPool):
        release = threading.Event()
        lock = threading.Lock()
        running = [0]
        peak = [0]
        eight_running = threading.Event()

        def blocker():
            with lock:
                running[0] += 1
                peak[0] = max(peak[0], running[0])
                if running[0] == 8:
                    eight_running.set()
            release.wait(5.0)
            with lock:
                running[0] -= 1

        for _ in range(12):
            pool.submit(blocker)

        assert eight_running.wait(5.0)
        assert pool.queue_size == 4
        assert pool.size == 8

        release.set()
        pool.shutdown(wait=True)

        assert peak[0] == 8

    def test_failing_task_does_not_kill_worker(self):
        pool = ThreadPool(workers=1)
        pool.start()
        done = threading.Event()

        def boom():
            raise RuntimeError("boom")

        pool.submit(boom)
        pool.submit(done.set)

        assert done.wait(5.0)
        pool.shutdown(wait=True)

    def test_submit_after_shutdown(self):
        pool = ThreadPool(workers=1)
        pool.start()
        pool.shutdown()

        with pytest.raises(RuntimeError):
            pool.submit(lambda: None)

    def test_bounded_queue_rejects_without_blocking(self):
        pool = ThreadPool(workers=1, queue_size=1)
        pool.start()
        release = threading.Event()
        started = threading.Event()

        def blocker():
            started.set()
            release.wait(5.0)

        pool.submit(blocker)
        assert started.wait(5.0)
        assert pool.submit(lambda: None)
        assert pool.submit(lambda: None, block=False) is False

        release.set()
        pool.shutdown(wait=True)

    def test_shutdown_is_idempotent(self):
        pool = ThreadPool(workers=2)
        pool.start()
        pool.shutdown()
        pool.shutdown()

        assert pool.is_running is False
