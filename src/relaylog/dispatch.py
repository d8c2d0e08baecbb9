"""
Background event loop for fire-and-forget sink delivery.

Log calls are synchronous. Sink sends are coroutines scheduled on a single
daemon-thread asyncio loop, so callers never wait on (or see failures from)
delivery. Started lazily on first use. Once started, in-flight work is given
up to `exit_timeout` seconds to finish when the interpreter exits.
"""

from __future__ import annotations

import asyncio
import atexit
import concurrent.futures
import threading
from typing import Any, Coroutine

from .diagnostics import get_logger

logger = get_logger("relaylog.dispatch")


class DispatchLoop:
    """A daemon thread running an asyncio loop, with tracking of in-flight work.

    Args:
        name: Thread name
        exit_timeout: Seconds to wait for in-flight work at interpreter exit
            (None waits indefinitely)
    """

    def __init__(self, name: str = "relaylog-dispatch", exit_timeout: float | None = 10.0):
        self._name = name
        self._exit_timeout = exit_timeout
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()
        self._pending: set[concurrent.futures.Future[Any]] = set()
        self._exit_hook_registered = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None and self.running:
            return self._loop

        with self._start_lock:
            if self._loop is None or not self.running:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(target=self._run, args=(loop,), name=self._name, daemon=True)
                thread.start()
                self._loop, self._thread = loop, thread
            if not self._exit_hook_registered:
                atexit.register(self._flush_at_exit)
                self._exit_hook_registered = True
        return self._loop

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        loop.run_forever()

    def _flush_at_exit(self) -> None:
        if not self.flush(self._exit_timeout):
            logger.warning("dispatch_exit_timeout", pending=len(self._pending), timeout=self._exit_timeout)

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future[Any]:
        """Schedule a coroutine and return immediately."""
        loop = self._ensure_started()
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)
        return future

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for in-flight work; True if everything finished in time."""
        pending = list(self._pending)
        if not pending:
            return True
        _, not_done = concurrent.futures.wait(pending, timeout=timeout)
        return not not_done
