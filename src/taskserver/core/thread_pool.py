"""
=============================================================================
FIXED-SIZE THREAD POOL
=============================================================================

A fixed number of worker threads pulling tasks from one shared queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept loop ── submit(conn) ──►  ┌──────────────────────┐          │
    │                                    │ Task Queue (FIFO)    │          │
    │                                    │ [T5][T4][T3]         │          │
    │                                    └──────────┬───────────┘          │
    │                                               │ get()                │
    │                  ┌────────────┬───────────────┼────────────┐         │
    │                  ▼            ▼               ▼            ▼         │
    │             ┌────────┐   ┌────────┐      ┌────────┐   ┌────────┐    │
    │             │Worker-0│   │Worker-1│ ...  │Worker-6│   │Worker-7│    │
    │             │ BUSY   │   │ BUSY   │      │ IDLE   │   │ IDLE   │    │
    │             └────────┘   └────────┘      └────────┘   └────────┘    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The pool never grows or shrinks. With every worker busy, new tasks wait
in the queue; the queue is unbounded by default (queue_size=0), so the
accept loop never blocks on it.

Shutdown pushes one poison pill (None) per worker. Workers finish the
task in hand, pick up the pill and exit.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)


@dataclass
class Task:
    """
    A deferred call: func(*args, **kwargs).

    submitted_at is kept so workers can log how long a task queued.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """
    Worker thread.

        loop:
            task = queue.get()        (blocks)
            None? → exit
            task.func(...)            exceptions are logged, never fatal
            queue.task_done()
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        start_time = time.monotonic()
        queued_for = start_time - task.submitted_at

        try:
            task.func(*task.args, **task.kwargs)
            elapsed = time.monotonic() - start_time
            logger.debug(
                f"Worker {self.worker_id} completed task in {elapsed:.3f}s "
                f"(queued {queued_for:.3f}s)"
            )

        except Exception as e:
            elapsed = time.monotonic() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )


class ThreadPool:
    """
    Fixed-size thread pool.

        pool = ThreadPool(workers=8)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown(wait=True)
    """

    def __init__(self, workers: int = 8, queue_size: int = 0):
        """
        Args:
            workers: Number of worker threads, fixed for the pool's lifetime.
            queue_size: Maximum queued tasks. 0 = unbounded.
        """
        if workers < 1:
            raise ValueError("workers must be >= 1")

        self.workers = workers
        self.max_queue_size = queue_size

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    def start(self):
        """Start all worker threads. Calling it again is a no-op."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.workers} workers")

            for worker_id in range(self.workers):
                worker = Worker(task_queue=self._task_queue, worker_id=worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None
    ) -> bool:
        """
        Queue func(*args, **kwargs) for a worker.

        Returns:
            True if queued, False if a bounded queue stayed full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks run before stopping. With wait=False,
                  queued tasks that have not started are dropped.
            timeout: Upper bound in seconds on waiting for the queue to
                     drain; workers still busy afterwards are left to
                     finish as daemon threads.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        if not wait:
            self._drain_queue()
        elif timeout is None:
            self._task_queue.join()
        else:
            deadline = time.monotonic() + timeout
            while self._task_queue.unfinished_tasks:
                if time.monotonic() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        for _ in self._workers:
            self._task_queue.put(None)

        for worker in self._workers:
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False

        logger.info("Thread pool shutdown complete")

    def _drain_queue(self):
        """Discard queued tasks that have not started yet."""
        dropped = 0
        while True:
            try:
                self._task_queue.get_nowait()
            except queue.Empty:
                break
            self._task_queue.task_done()
            dropped += 1
        if dropped:
            logger.warning(f"Dropped {dropped} queued tasks")

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def size(self) -> int:
        """Number of live worker threads."""
        return sum(1 for w in self._workers if w.is_alive())

    @property
    def queue_size(self) -> int:
        return self._task_queue.qsize()
