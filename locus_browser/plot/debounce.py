"""Re-armable one-shot timer used to commit a zoom once the wheel goes quiet."""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Run ``callback`` once, ``delay_ms`` after the most recent ``touch()``.

    The callback only ever runs on the thread that owns the state it touches.
    Inside a running asyncio loop the timer is ``loop.call_later`` and an
    awaitable returned by the callback is scheduled as a task on that loop.
    Outside a loop nothing is scheduled: the call stays pending, ``due``
    turns True once the delay has passed, and the caller runs it with
    ``flush()``.
    """

    def __init__(self, callback: Callable[[], Any], delay_ms: int = 500):
        if delay_ms <= 0:
            raise ValueError("delay_ms must be > 0")
        self._callback = callback
        self._delay_s = delay_ms / 1000.0
        self._handle: Optional[asyncio.TimerHandle] = None
        self._deadline: Optional[float] = None
        self._task: Optional[asyncio.Future] = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    @property
    def due(self) -> bool:
        """True when a call is pending and its delay has elapsed."""
        return self._deadline is not None and time.monotonic() >= self._deadline

    def touch(self) -> None:
        self.cancel()
        self._deadline = time.monotonic() + self._delay_s
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._handle = loop.call_later(self._delay_s, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._deadline = None

    def flush(self) -> Any:
        """
        Cancel the pending timer and invoke the callback right away.

        Returns whatever the callback returns (an awaitable is handed back to
        the caller, not scheduled). Returns None when nothing was pending.
        """
        if not self.pending:
            return None
        self.cancel()
        return self._callback()

    def _fire(self) -> None:
        self._handle = None
        self._deadline = None
        try:
            result = self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._task = task
            task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Future") -> None:
        if self._task is task:
            self._task = None
        if not task.cancelled() and task.exception() is not None:
            logger.error("Debounced task failed", exc_info=task.exception())
