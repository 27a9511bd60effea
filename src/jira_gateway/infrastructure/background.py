"""Event loop on a daemon thread for synchronous hosts.

A host with its own main loop hands coroutines to ``BackgroundLoop.submit`` and gets
``callback(error, data)`` once the coroutine finishes; the host thread never blocks.

Usage example:
    from jira_gateway.infrastructure.background import BackgroundLoop

    bridge = BackgroundLoop()
    bridge.submit(client.get_issue("PROJ-1"), lambda error, issue: print(error or issue))
    bridge.close()
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from collections.abc import Callable, Coroutine

from ..observability import get_logger

logger = get_logger("jira_gateway.infrastructure.background")

Callback = Callable[[BaseException | None, object], None]


class BackgroundLoop:
    """Thread-safe owner of an asyncio loop running on a daemon thread."""

    def __init__(self, *, name: str = "jira-gateway-loop") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.RLock()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        self._ensure_loop()
        if self._loop is None:
            raise RuntimeError("event loop not initialised")
        return self._loop

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_loop(self) -> None:
        with self._lock:
            if self._loop and self._thread and self._thread.is_alive():
                return

            loop = asyncio.new_event_loop()

            def _run_loop() -> None:
                asyncio.set_event_loop(loop)
                loop.run_forever()

            thread = threading.Thread(target=_run_loop, daemon=True, name=self._name)
            thread.start()

            self._loop = loop
            self._thread = thread

    def submit[T](
        self,
        coro: Coroutine[object, object, T],
        callback: Callback | None = None,
    ) -> concurrent.futures.Future[T]:
        """Schedule a coroutine and deliver ``callback(error, data)`` on completion.

        The callback runs on the loop thread; hosts that need their own thread must
        re-schedule from inside it.
        """
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        if callback is not None:
            future.add_done_callback(lambda done: _deliver(done, callback))
        return future

    def run[T](self, coro: Coroutine[object, object, T], timeout: float | None = None) -> T:
        """Block the calling thread until the coroutine finishes."""
        future = self.submit(coro)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise

    def close(self, timeout: float = 5.0) -> None:
        """Cancel outstanding tasks, stop the loop and join its thread.

        The loop is only closed once its thread has exited; a thread that outlives
        ``timeout`` is logged and its loop left open.
        """
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None or thread is None:
            return
        if thread.is_alive():
            shutdown = asyncio.run_coroutine_threadsafe(_cancel_pending(), loop)
            try:
                shutdown.result(timeout=timeout)
            except concurrent.futures.TimeoutError:
                logger.warning("Pending tasks still running after %ss; stopping anyway", timeout)
            loop.call_soon_threadsafe(loop.stop)
            thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("Event loop thread %s did not stop; leaving its loop open", thread.name)
            return
        loop.close()


async def _cancel_pending() -> None:
    current = asyncio.current_task()
    pending = [task for task in asyncio.all_tasks() if task is not current]
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)


def _deliver(future: concurrent.futures.Future[object], callback: Callback) -> None:
    if future.cancelled():
        callback(concurrent.futures.CancelledError(), None)
        return
    error = future.exception()
    try:
        if error is not None:
            callback(error, None)
        else:
            callback(None, future.result())
    except Exception:
        logger.exception("Background callback raised")
