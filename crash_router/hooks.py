"""Process-wide error hooks.

Three channels feed the router:
  1. ``sys.excepthook``        -> fatal, framework origin
  2. event loop exc handler    -> non-fatal, async origin
  3. ``threading.excepthook``  -> fatal, isolate origin (worker threads)

Hooks are synchronous; the routing coroutine is scheduled onto the owning
loop. The previously installed hook still runs afterwards, so tracebacks keep
reaching stderr. ``ErrorHooks.uninstall`` restores whatever was installed
before.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys
import threading
from types import TracebackType
from typing import Any, Callable

from loguru import logger

from crash_router.filters import is_missing_scanner
from crash_router.models import ErrorEvent
from crash_router.router import ErrorRouter


class ErrorHooks:
    """Installs and removes the three error handlers around one router."""

    def __init__(self, router: ErrorRouter, loop: asyncio.AbstractEventLoop | None = None):
        self._router = router
        self._loop = loop
        self._installed = False
        self._prev_excepthook: Callable[..., Any] | None = None
        self._prev_threading_hook: Callable[..., Any] | None = None
        self._prev_loop_handler: Callable[..., Any] | None = None
        self._pending: set[asyncio.Future | concurrent.futures.Future] = set()
        self._lock = threading.Lock()

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    def install(self) -> "ErrorHooks":
        if self._installed:
            logger.debug("ErrorHooks: already installed")
            return self

        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                self._loop = None  # no loop: async channel stays unhooked

        self._prev_excepthook = sys.excepthook
        sys.excepthook = self.handle_uncaught

        self._prev_threading_hook = threading.excepthook
        threading.excepthook = self.handle_thread_error

        if self._loop is not None:
            self._prev_loop_handler = self._loop.get_exception_handler()
            self._loop.set_exception_handler(self.handle_async_error)

        self._installed = True
        logger.info(f"ErrorHooks: installed (loop={'yes' if self._loop else 'no'})")
        return self

    def uninstall(self) -> None:
        if not self._installed:
            return
        if sys.excepthook == self.handle_uncaught:
            sys.excepthook = self._prev_excepthook or sys.__excepthook__
        if threading.excepthook == self.handle_thread_error:
            threading.excepthook = self._prev_threading_hook or threading.__excepthook__
        if self._loop is not None and not self._loop.is_closed():
            self._loop.set_exception_handler(self._prev_loop_handler)
        self._installed = False
        logger.info("ErrorHooks: uninstalled")

    # --- handlers ---

    def handle_uncaught(
        self,
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_tb: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, (KeyboardInterrupt, SystemExit)):
            (self._prev_excepthook or sys.__excepthook__)(exc_type, exc_value, exc_tb)
            return
        self._dispatch(ErrorEvent.framework(exc_value, exc_tb))
        (self._prev_excepthook or sys.__excepthook__)(exc_type, exc_value, exc_tb)

    def handle_async_error(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        if exc is None:
            loop.default_exception_handler(context)
            return
        if is_missing_scanner(exc):
            logger.info("ErrorHooks: ignoring camera exception")
            return
        self._dispatch(ErrorEvent.uncaught_async(exc, context=context.get("message")))

    def handle_thread_error(self, args: Any) -> None:
        if args.exc_type is SystemExit or args.exc_value is None:
            (self._prev_threading_hook or threading.__excepthook__)(args)
            return
        thread_name = args.thread.name if args.thread is not None else "unknown"
        self._dispatch(
            ErrorEvent.isolate(args.exc_value, args.exc_traceback, context=f"thread {thread_name}")
        )
        (self._prev_threading_hook or threading.__excepthook__)(args)

    # --- scheduling ---

    def _dispatch(self, event: ErrorEvent) -> None:
        coro = self._router.route(event)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        loop = self._loop
        if loop is not None and loop.is_running() and running is not loop:
            self._track(asyncio.run_coroutine_threadsafe(coro, loop))
        elif running is not None:
            self._track(running.create_task(coro))
        elif loop is not None and not loop.is_closed():
            loop.run_until_complete(coro)
        else:
            asyncio.run(coro)

    def _track(self, fut: asyncio.Future | concurrent.futures.Future) -> None:
        with self._lock:
            self._pending.add(fut)
        fut.add_done_callback(self._untrack)

    def _untrack(self, fut: asyncio.Future | concurrent.futures.Future) -> None:
        with self._lock:
            self._pending.discard(fut)

    async def drain(self) -> None:
        """Wait for every routing scheduled so far."""
        while True:
            with self._lock:
                pending = list(self._pending)
            if not pending:
                return
            await asyncio.gather(
                *(p if asyncio.isfuture(p) else asyncio.wrap_future(p) for p in pending),
                return_exceptions=True,
            )
            with self._lock:
                self._pending.difference_update(pending)


def install_error_hooks(router: ErrorRouter, loop: asyncio.AbstractEventLoop | None = None) -> ErrorHooks:
    """Build and install the hooks; the caller owns ``uninstall``."""
    return ErrorHooks(router, loop).install()
