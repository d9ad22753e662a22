"""
Serialized execution context for the detection engine.
Notifications, poll ticks and debounce expirations all arrive from different
threads; every one of them is handed to a SerialExecutor so that the shared
subscription table and debounce window are only touched from one thread.
"""

import queue
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_STOP = object()


class SerialExecutor:
    """Runs submitted callables one at a time on a dedicated thread."""

    def __init__(self, name: str = "pbmonitor-serial"):
        self.name = name
        self.running = False
        self._queue = queue.Queue()
        self._thread = None
        self._timers = set()
        self._lock = threading.Lock()

    def start(self):
        """Start the worker thread."""
        with self._lock:
            if self.running:
                logger.warning("Serial executor is already running")
                return
            self.running = True

        self._thread = threading.Thread(target=self._run, name=self.name)
        self._thread.daemon = True
        self._thread.start()
        logger.debug(f"Serial executor '{self.name}' started")

    def _run(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                break

            future, fn, args, kwargs = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in serialized task {getattr(fn, '__qualname__', fn)}: {e}")
                future.set_exception(e)
            else:
                future.set_result(result)

        logger.debug(f"Serial executor '{self.name}' stopped")

    def in_executor_thread(self) -> bool:
        """Whether the caller is running on the executor's own thread."""
        return self._thread is not None and threading.current_thread() is self._thread

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """Queue fn for execution. Work submitted after shutdown is dropped."""
        future = Future()
        with self._lock:
            if not self.running:
                logger.debug(f"Dropping task {getattr(fn, '__qualname__', fn)}: executor not running")
                future.cancel()
                return future
            self._queue.put((future, fn, args, kwargs))
        return future

    def call_later(self, delay: float, fn: Callable, *args) -> Optional[threading.Timer]:
        """Submit fn once delay seconds have passed.

        Returns:
            The timer driving the call (its cancel() drops the call), or None
            if the executor is not running.
        """
        timer = None

        def fire():
            with self._lock:
                self._timers.discard(timer)
            self.submit(fn, *args)

        timer = threading.Timer(delay, fire)
        timer.daemon = True
        with self._lock:
            if not self.running:
                return None
            self._timers.add(timer)
        timer.start()
        return timer

    def run_sync(self, fn: Callable, *args, timeout: Optional[float] = None) -> Any:
        """Run fn on the executor thread and wait for its result."""
        if self.in_executor_thread():
            return fn(*args)
        future = self.submit(fn, *args)
        if future.cancelled():
            return None
        return future.result(timeout=timeout)

    @property
    def pending_timers(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self, wait: bool = True, timeout: float = 1.0):
        """Cancel pending timers and stop the worker once queued work is drained."""
        with self._lock:
            if not self.running:
                return
            self.running = False
            timers = list(self._timers)
            self._timers.clear()

        for timer in timers:
            timer.cancel()

        self._queue.put(_STOP)
        if wait and self._thread and not self.in_executor_thread():
            self._thread.join(timeout=timeout)
