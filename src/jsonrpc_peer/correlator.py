"""Pending-call bookkeeping.

Each peer owns one ``PendingCallTable``. A record is created when a request
is issued and removed exactly once: by its matching response, by an explicit
cancel, or when the peer closes.
"""

from __future__ import annotations

import itertools
import time
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .deferred import Deferred
from .errors import DuplicateRequestIdError
from .types import RequestId


@dataclass
class PendingCall:
    """Correlation record for one outstanding request."""

    id: RequestId
    method: str
    deferred: Deferred[Any] = field(default_factory=Deferred)
    created_at: float = field(default_factory=time.monotonic)

    def resolve(self, result: Any) -> None:
        self.deferred.resolve(result)

    def reject(self, error: Any) -> None:
        self.deferred.reject(error)


class PendingCallTable:
    """Identifier -> PendingCall map with explicit create/remove lifecycle."""

    def __init__(self) -> None:
        self._calls: dict[RequestId, PendingCall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._calls

    def __iter__(self) -> Iterator[RequestId]:
        return iter(list(self._calls))

    def get(self, request_id: RequestId) -> PendingCall | None:
        return self._calls.get(request_id)

    def create(self, request_id: RequestId, method: str) -> PendingCall:
        """Register a new pending call.

        Raises:
            DuplicateRequestIdError: If ``request_id`` is still outstanding.
        """
        if request_id in self._calls:
            raise DuplicateRequestIdError(request_id)
        call = PendingCall(id=request_id, method=method)
        self._calls[request_id] = call
        return call

    def pop(self, request_id: RequestId) -> PendingCall | None:
        """Remove and return the call for ``request_id``, if any."""
        return self._calls.pop(request_id, None)

    def discard(self, request_id: RequestId) -> bool:
        """Drop a call without settling it. Returns True if one was removed."""
        return self._calls.pop(request_id, None) is not None

    def reject_all(self, error: Any) -> int:
        """Remove every call, then reject each with ``error``."""
        calls = list(self._calls.values())
        self._calls.clear()
        for call in calls:
            call.reject(error)
        return len(calls)


class RequestIdFactory:
    """Generates request identifiers.

    Strategies:
        uuid: random 128-bit ids as strings, optionally prefixed
        counter: monotonically increasing integers starting at 1
    """

    STRATEGIES = ("uuid", "counter")

    def __init__(self, strategy: str = "uuid", prefix: str = "") -> None:
        if strategy not in self.STRATEGIES:
            raise ValueError(f"Unknown id strategy: {strategy!r}")
        self.strategy = strategy
        self.prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> RequestId:
        if self.strategy == "counter":
            return next(self._counter)
        return f"{self.prefix}{uuid.uuid4()}"
