"""Remote procedure gateway: named server operations returning futures."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, Protocol

from .errors import MethodNotFoundError

log = logging.getLogger(__name__)

Callback = Callable[[BaseException | None, Any], None]


class RemoteGateway(Protocol):
    def call(self, name: str, *args: Any) -> Future: ...


def observe(future: Future, callback: Callback | None) -> Future:
    """Attach ``callback(error, result)`` to a remote call's future."""
    if callback is None:
        return future

    def _done(fut: Future) -> None:
        if fut.cancelled():
            error: BaseException | None = CancelledError()
            result = None
        else:
            error = fut.exception()
            result = None if error is not None else fut.result()
        try:
            callback(error, result)
        except Exception:
            log.error("Completion callback failed", exc_info=True)

    future.add_done_callback(_done)
    return future


class DispatchGateway:
    """In-process gateway dispatching named operations to registered handlers."""

    def __init__(self, max_workers: int = 4):
        self._handlers: dict[str, Callable[..., Any]] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="minutekeeper-rpc"
        )

    def register(self, name: str, handler: Callable[..., Any] | None = None):
        """Register a handler for ``name``. Usable as a decorator."""
        if handler is None:
            def _decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
                self.register(name, fn)
                return fn
            return _decorator

        with self._lock:
            self._handlers[name] = handler
        log.debug("Registered handler for %s", name)
        return handler

    def call(self, name: str, *args: Any) -> Future:
        with self._lock:
            handler = self._handlers.get(name)

        if handler is None:
            log.warning("No handler registered for %s", name)
            future: Future = Future()
            future.set_exception(MethodNotFoundError(f"Unknown remote operation: {name}"))
            return future

        log.debug("Calling %s with %d argument(s)", name, len(args))
        try:
            return self._executor.submit(self._run, name, handler, args)
        except RuntimeError as e:
            # Executor already shut down
            log.warning("Cannot call %s: %s", name, e)
            future = Future()
            future.set_exception(e)
            return future

    @staticmethod
    def _run(name: str, handler: Callable[..., Any], args: tuple) -> Any:
        try:
            return handler(*args)
        except Exception:
            log.warning("Remote operation %s failed", name, exc_info=True)
            raise

    def close(self) -> None:
        self._executor.shutdown(wait=True)
