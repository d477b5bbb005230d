"""
AI Call Serializer
==================
Single ordered queue with a minimum-interval throttle in front of the AI
service: at most one call runs at a time, calls start in submission order
and consecutive calls are spaced at least ``min_interval`` seconds apart.
"""
import time
import threading
from collections import deque
from typing import Callable, Deque, Hashable, Optional, Set, Tuple

from proofreader.config import config
from proofreader.utils.logging import get_logger, debug_print

Task = Callable[[], None]


class CallSerializer:
    """
    In-order, throttled, de-duplicated executor for AI calls.

    A key stays "in flight" from enqueue() until its task has finished, so a
    second submission for the same key while the first is queued or running
    is dropped. Tasks run on one worker thread; with ``autostart=False`` no
    thread is started and drain() runs the queue on the caller's thread.
    """

    def __init__(
        self,
        min_interval: float = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        autostart: bool = True,
        name: str = 'ai-call-serializer'
    ):
        self.min_interval = min_interval if min_interval is not None else config.queue.min_interval
        self.clock = clock
        self.sleep = sleep
        self.autostart = autostart
        self.name = name
        self.logger = get_logger().ai_logger

        self._queue: Deque[Tuple[Hashable, Task]] = deque()
        self._in_flight: Set[Hashable] = set()
        self._last_call: Optional[float] = None
        self._condition = threading.Condition()
        self._worker: Optional[threading.Thread] = None
        self._stopping = False
        self._completed = 0
        self._failed = 0

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def enqueue(self, key: Hashable, task: Task) -> bool:
        """
        Queue task under key.

        Returns:
            False if key was already in flight and the task was dropped
        """
        with self._condition:
            if self._stopping:
                raise RuntimeError("Call serializer is shut down")
            if key in self._in_flight:
                self.logger.info(f"Dropped duplicate request for {key}")
                return False
            self._in_flight.add(key)
            self._queue.append((key, task))
            depth = len(self._queue)
            if self.autostart:
                self._ensure_worker()
            self._condition.notify_all()

        debug_print(f"Queued {key} (queue depth {depth})", 'DEBUG', 'QUEUE')
        return True

    def is_in_flight(self, key: Hashable) -> bool:
        with self._condition:
            return key in self._in_flight

    def pending_count(self) -> int:
        """Number of tasks queued or running."""
        with self._condition:
            return len(self._in_flight)

    def stats(self) -> dict:
        with self._condition:
            return {
                'queued': len(self._queue),
                'in_flight': len(self._in_flight),
                'completed': self._completed,
                'failed': self._failed,
                'min_interval': self.min_interval,
            }

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _ensure_worker(self) -> None:
        """Start the worker thread; caller holds the condition."""
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            with self._condition:
                while not self._queue and not self._stopping:
                    self._condition.wait()
                if not self._queue:
                    return
                key, task = self._queue.popleft()
            self._execute(key, task)

    def drain(self) -> int:
        """
        Run every queued task on the calling thread.

        Returns:
            Number of tasks executed
        """
        executed = 0
        while True:
            with self._condition:
                if not self._queue:
                    return executed
                key, task = self._queue.popleft()
            self._execute(key, task)
            executed += 1

    def _throttle(self) -> None:
        """Wait out the rest of the minimum interval since the last call started."""
        if self._last_call is not None:
            remaining = self.min_interval - (self.clock() - self._last_call)
            if remaining > 0:
                self.logger.debug(f"Throttling next AI call for {remaining:.2f}s")
                self.sleep(remaining)
        self._last_call = self.clock()

    def _execute(self, key: Hashable, task: Task) -> None:
        failed = False
        try:
            self._throttle()
            task()
        except Exception:
            failed = True
            self.logger.exception(f"Queued task {key} failed")
        finally:
            with self._condition:
                self._in_flight.discard(key)
                if failed:
                    self._failed += 1
                else:
                    self._completed += 1
                self._condition.notify_all()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def wait_idle(self, timeout: float = None) -> bool:
        """
        Block until nothing is queued or running.

        Returns:
            True if the serializer went idle before the timeout
        """
        timeout = timeout if timeout is not None else config.queue.idle_timeout
        with self._condition:
            return self._condition.wait_for(lambda: not self._in_flight, timeout=timeout)

    def shutdown(self, wait: bool = True, timeout: float = None) -> None:
        """Stop accepting tasks; the worker exits once the queue is empty."""
        with self._condition:
            self._stopping = True
            worker = self._worker
            self._condition.notify_all()
        if wait and worker is not None and worker is not threading.current_thread():
            worker.join(timeout)


# Global serializer instance
_serializer_instance: Optional[CallSerializer] = None


def get_call_serializer() -> CallSerializer:
    """Get or create the process-wide call serializer."""
    global _serializer_instance
    if _serializer_instance is None:
        _serializer_instance = CallSerializer()
    return _serializer_instance
