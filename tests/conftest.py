"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from jsonrpc_peer import JsonRpcPeer, MethodTable


@pytest.fixture
def sent() -> list[Any]:
    """Envelopes handed to the outbound send function."""
    return []


@pytest.fixture
def methods() -> MethodTable:
    """A small method table covering sync, async, and failing handlers."""
    table = MethodTable()

    @table.register()
    def add(x, y):
        return x + y

    @table.register("async_add")
    async def async_add(x, y):
        return x + y

    @table.register()
    def fail():
        raise RuntimeError("boom")

    @table.register("async_fail")
    async def async_fail():
        raise ValueError("async boom")

    return table


@pytest.fixture
def peer(sent: list[Any], methods: MethodTable) -> JsonRpcPeer:
    """A peer whose outbound envelopes land in ``sent``."""
    return JsonRpcPeer(sent.append, methods)
