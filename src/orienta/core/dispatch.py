"""
Single-threaded task queue and interval timers for the ingestion core.

All state changes (source switches, graph pushes, controller transitions)
happen inside closures run by one :class:`EventLoop`. Other threads only
``post`` work into it, which keeps the router switch atomic without locks.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

Task = Callable[[], Any]


class Ticker(Protocol):
    """Interval timer whose callback runs on the event-loop thread."""

    @property
    def active(self) -> bool:  # pragma: no cover - protocol
        ...

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:  # pragma: no cover - protocol
        ...

    def stop(self) -> None:  # pragma: no cover - protocol
        ...


TickerFactory = Callable[[], Ticker]


class EventLoop:
    """Thread-safe FIFO of closures executed by whoever drives the loop."""

    def __init__(self) -> None:
        self._tasks: queue.Queue[Task] = queue.Queue()
        self._stop_event = threading.Event()
        self._thread_id: Optional[int] = None

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue ``fn(*args)`` for execution on the loop thread."""
        if args:
            self._tasks.put(lambda: fn(*args))
        else:
            self._tasks.put(fn)

    def pending(self) -> int:
        return self._tasks.qsize()

    def run_pending(self, max_tasks: int | None = None) -> int:
        """Run queued tasks (including ones they post) and return how many ran."""
        self._thread_id = threading.get_ident()
        ran = 0
        while max_tasks is None or ran < max_tasks:
            try:
                task = self._tasks.get_nowait()
            except queue.Empty:
                break
            self._run(task)
            ran += 1
        return ran

    def run_forever(self, *, poll_timeout_s: float = 0.05) -> None:
        """Block running tasks until :meth:`stop` is called."""
        self._stop_event.clear()
        self._thread_id = threading.get_ident()
        while not self._stop_event.is_set():
            try:
                task = self._tasks.get(timeout=poll_timeout_s)
            except queue.Empty:
                continue
            self._run(task)

    def stop(self) -> None:
        self._stop_event.set()

    def in_loop_thread(self) -> bool:
        return self._thread_id == threading.get_ident()

    @staticmethod
    def _run(task: Task) -> None:
        try:
            task()
        except Exception:
            logger.exception("Unhandled error in event-loop task %r", task)


class ThreadTicker:
    """
    Ticker for headless use: a daemon thread that posts the callback into an
    :class:`EventLoop` every ``interval_s`` seconds.

    The callback itself always runs on the loop thread. Callbacks already
    posted when :meth:`stop` is called still run, so receivers must check
    their own running state.
    """

    def __init__(self, loop: EventLoop, *, name: str = "OrientaTicker") -> None:
        self._loop = loop
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        self.stop()
        interval = max(0.0005, float(interval_s))
        stop_event = threading.Event()
        self._stop_event = stop_event

        def _target() -> None:
            next_due = time.monotonic() + interval
            while not stop_event.wait(max(0.0, next_due - time.monotonic())):
                self._loop.post(callback)
                next_due += interval

        thread = threading.Thread(target=_target, name=self._name, daemon=True)
        self._thread = thread
        thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)


def thread_ticker_factory(loop: EventLoop) -> TickerFactory:
    """Return a factory creating :class:`ThreadTicker` objects bound to ``loop``."""

    def _factory() -> Ticker:
        return ThreadTicker(loop)

    return _factory
