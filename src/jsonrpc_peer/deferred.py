"""Deferred outcome: a value that is resolved or rejected exactly once.

One abstraction serves both consumption styles:

    # Callback style, invoked once with (error, result)
    deferred.add_callback(lambda error, result: ...)

    # Await style (inside a running event loop)
    result = await deferred

The dispatcher also accepts a Deferred as a method's return value, so its
logic is the same whether a result arrives now or later.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Generator
from enum import Enum
from typing import Any, Generic, TypeVar

from .errors import JsonRpcProtocolError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Node-style callback: (error, result). Exactly one of the two is meaningful.
OutcomeCallback = Callable[[Any, Any], None]


class DeferredState(str, Enum):
    """Lifecycle of a deferred outcome."""

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class Deferred(Generic[T]):
    """Resolve-once / reject-once outcome holder."""

    def __init__(self) -> None:
        self._state = DeferredState.PENDING
        self._result: Any = None
        self._error: Any = None
        self._callbacks: list[OutcomeCallback] = []
        self._future: asyncio.Future[T] | None = None

    def __repr__(self) -> str:
        return f"<Deferred {self._state.value}>"

    @property
    def state(self) -> DeferredState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state is not DeferredState.PENDING

    @property
    def error(self) -> Any:
        """The rejection value, or ``None``."""
        return self._error

    def result(self) -> T:
        """Return the resolved value.

        Raises:
            RuntimeError: If the outcome is still pending.
            Exception: The rejection, as raised by ``await``.
        """
        if self._state is DeferredState.PENDING:
            raise RuntimeError("Deferred outcome is still pending")
        if self._state is DeferredState.REJECTED:
            raise _as_exception(self._error)
        return self._result

    def resolve(self, value: T) -> bool:
        """Settle successfully. Returns False if already settled."""
        if self.done:
            return False
        self._state = DeferredState.RESOLVED
        self._result = value
        self._settle()
        return True

    def reject(self, error: Any) -> bool:
        """Settle with an error value. Returns False if already settled."""
        if self.done:
            return False
        self._state = DeferredState.REJECTED
        self._error = error
        self._settle()
        return True

    def add_callback(self, callback: OutcomeCallback) -> None:
        """Register a callback invoked exactly once with ``(error, result)``.

        Runs immediately when the outcome is already settled.
        """
        if self.done:
            self._run_callback(callback)
        else:
            self._callbacks.append(callback)

    def __await__(self) -> Generator[Any, None, T]:
        return self._get_future().__await__()

    def _get_future(self) -> asyncio.Future[T]:
        if self._future is None or self._future.cancelled():
            self._future = asyncio.get_running_loop().create_future()
            if self.done:
                self._settle_future()
        return self._future

    def _settle(self) -> None:
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._run_callback(callback)
        if self._future is not None:
            self._settle_future()

    def _settle_future(self) -> None:
        future = self._future
        if future is None or future.done():
            return
        if self._state is DeferredState.REJECTED:
            future.set_exception(_as_exception(self._error))
        else:
            future.set_result(self._result)

    def _run_callback(self, callback: OutcomeCallback) -> None:
        try:
            if self._state is DeferredState.REJECTED:
                callback(self._error, None)
            else:
                callback(None, self._result)
        except Exception:
            logger.exception(f"Error in deferred callback {callback!r}")


def _as_exception(error: Any) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return JsonRpcProtocolError.from_error(error)
