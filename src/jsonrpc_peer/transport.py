"""JSON-RPC transports.

Moves encoded envelopes between a JsonRpcPeer and a channel:
- stream: newline-delimited JSON (stdio by default), for subprocess peers
- callback: any channel with an async send function (e.g. WebSocket)

Usage:
    transport = StreamTransport()
    peer = transport.create_peer(methods)
    await transport.start()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine, Mapping
from typing import Any, TextIO

from .codec import decode_message, encode_message
from .errors import JsonRpcProtocolError
from .messages import build_error_response
from .peer import JsonRpcPeer
from .types import Envelope

logger = logging.getLogger(__name__)


class PeerTransport(ABC):
    """Abstract base class for peer transports."""

    def __init__(self) -> None:
        self._peer: JsonRpcPeer | None = None
        self._running = False

    @property
    def peer(self) -> JsonRpcPeer:
        if self._peer is None:
            raise RuntimeError("Transport is not bound to a peer")
        return self._peer

    @property
    def running(self) -> bool:
        return self._running

    def bind(self, peer: JsonRpcPeer) -> None:
        """Deliver inbound messages to ``peer``."""
        self._peer = peer

    def create_peer(self, methods: Mapping[str, Any] | None = None, **kwargs: Any) -> JsonRpcPeer:
        """Create a peer that sends through this transport, and bind it."""
        peer = JsonRpcPeer(self.send, methods, **kwargs)
        self.bind(peer)
        return peer

    @abstractmethod
    async def start(self) -> None:
        """Start the transport."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop the transport."""

    @abstractmethod
    async def send(self, envelope: Envelope) -> None:
        """Send one envelope."""

    async def deliver(self, data: str | bytes) -> None:
        """Decode one inbound message and hand it to the peer.

        Unparseable input is answered with a PARSE_ERROR response (id null).
        """
        try:
            message = decode_message(data)
        except JsonRpcProtocolError as e:
            logger.warning(f"Parse error on inbound message: {e.data}")
            await self.send(build_error_response(None, e.error))
            return
        self.peer.handle(message)


class StreamTransport(PeerTransport):
    """Peer transport over a byte stream, one JSON message per line.

    Defaults to stdin/stdout, for peers running as subprocesses.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        output: TextIO | None = None,
    ) -> None:
        super().__init__()
        self._reader = reader
        self._output = output
        self._read_task: asyncio.Task[None] | None = None
        self._writer_lock = asyncio.Lock()

    async def start(self) -> None:
        """Start reading (connecting stdin if no reader was given)."""
        if self._reader is None:
            self._reader = await self._connect_stdin()
        self._running = True
        self._read_task = asyncio.create_task(self._read_loop())

    async def stop(self) -> None:
        """Stop reading and reject calls that can no longer be answered."""
        self._running = False
        if self._read_task:
            self._read_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._read_task
        if self._peer is not None:
            self._peer.close()

    async def wait_closed(self) -> None:
        """Wait until the input stream ends."""
        if self._read_task:
            with contextlib.suppress(asyncio.CancelledError):
                await self._read_task

    async def _connect_stdin(self) -> asyncio.StreamReader:
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)

        loop = asyncio.get_running_loop()
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        return reader

    async def _read_loop(self) -> None:
        """Read messages until EOF."""
        assert self._reader is not None

        while self._running:
            try:
                line = await self._reader.readline()
                if not line:
                    break

                data = line.strip()
                if not data:
                    continue

                await self.deliver(data)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Error handling inbound message: {e}")

        self._running = False
        if self._peer is not None:
            self._peer.close()

    async def send(self, envelope: Envelope) -> None:
        """Write one envelope as a line."""
        await self._write(encode_message(envelope) + "\n")

    async def _write(self, data: str) -> None:
        """Write data to the output with locking."""
        output = self._output or sys.stdout
        async with self._writer_lock:
            output.write(data)
            output.flush()


class CallbackTransport(PeerTransport):
    """Peer transport over a channel with its own async send function.

    Used for WebSocket connections: the connection handler feeds inbound
    text to ``handle_message`` and supplies ``send_func`` for outbound text.
    """

    def __init__(self, send_func: Callable[[str], Coroutine[Any, Any, None]]) -> None:
        super().__init__()
        self._send_func = send_func

    async def start(self) -> None:
        """Start the transport."""
        self._running = True

    async def stop(self) -> None:
        """Stop the transport and reject outstanding calls."""
        self._running = False
        if self._peer is not None:
            self._peer.close()

    async def handle_message(self, data: str) -> None:
        """Handle one inbound message."""
        await self.deliver(data)

    async def send(self, envelope: Envelope) -> None:
        """Send an envelope via the channel; dropped once stopped."""
        if self._running:
            await self._send_func(encode_message(envelope))
