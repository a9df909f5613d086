"""JSON-RPC peer: call correlation and method dispatch.

A peer is symmetric. The same instance issues requests to the remote side
and serves the remote side's requests against a local method table:

    peer = JsonRpcPeer(transport.send, methods)

    # Outbound
    result = await peer.request("add", [2, 3])
    peer.notify("log", ["hello"])

    # Inbound, for every decoded message the transport delivers
    peer.handle(message)

``handle`` never blocks on method work. Awaitable results are scheduled on
the running loop and their completion emits the single response.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

from .config import PeerConfig
from .correlator import PendingCallTable, RequestIdFactory
from .deferred import Deferred, OutcomeCallback
from .errors import (
    INTERNAL_ERROR,
    METHOD_NOT_FOUND,
    JsonRpcProtocolError,
)
from .messages import (
    build_error_response,
    build_notification,
    build_request,
    build_result_response,
    classify,
    get_field,
    is_request_id,
)
from .methods import resolve_method
from .types import (
    JSONRPC_VERSION,
    Envelope,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    MessageKind,
    Params,
    RequestId,
)

logger = logging.getLogger(__name__)

# Outbound collaborator. May return an awaitable, which is scheduled.
SendFunc = Callable[[Envelope], Any]

CONNECTION_CLOSED = JsonRpcError(code=INTERNAL_ERROR.code, message="Connection closed")


class JsonRpcPeer:
    """Builds outbound envelopes, correlates responses, dispatches requests.

    Args:
        send: Called with every outbound envelope (request, notification,
            or response). Serialization is the caller's business.
        methods: Mapping of method name to handler. Plain callables and
            ``RegisteredMethod`` entries are both accepted. Not copied.
        context: Default context for handlers registered with
            ``pass_context=True``; ``handle`` can override it per message.
        config: Identifier and error-reporting options.
    """

    version = JSONRPC_VERSION

    def __init__(
        self,
        send: SendFunc,
        methods: Mapping[str, Any] | None = None,
        *,
        context: Any = None,
        config: PeerConfig | None = None,
    ) -> None:
        self.config = config or PeerConfig()
        self.methods: Mapping[str, Any] = methods if methods is not None else {}
        self.context = context
        self._send = send
        self._pending = PendingCallTable()
        self._new_id = RequestIdFactory(self.config.id_strategy, self.config.id_prefix)
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def pending(self) -> PendingCallTable:
        """Outstanding calls, keyed by request id."""
        return self._pending

    # =========================================================================
    # Outbound
    # =========================================================================

    def build_notification(self, method: str, params: Params | None = None) -> JsonRpcNotification:
        """Create a notification. No id, no pending call, nothing sent."""
        return build_notification(method, params)

    def build_request(
        self,
        method: str,
        params: Params | None = None,
        *,
        request_id: RequestId | None = None,
        callback: OutcomeCallback | None = None,
    ) -> tuple[JsonRpcRequest, Deferred[Any]]:
        """Create a request and register its pending call. Nothing is sent.

        Args:
            method: Remote method name
            params: Ordered (or by-name) parameters
            request_id: Explicit id; generated when omitted
            callback: Optional ``(error, result)`` callback, invoked once

        Returns:
            The envelope to send and the handle for its outcome

        Raises:
            DuplicateRequestIdError: If ``request_id`` is still outstanding
        """
        if request_id is None:
            request_id = self._new_id()
        request = build_request(method, params, request_id=request_id)
        call = self._pending.create(request.id, method)
        if callback is not None:
            call.deferred.add_callback(callback)
        return request, call.deferred

    def request(
        self,
        method: str,
        params: Params | None = None,
        *,
        callback: OutcomeCallback | None = None,
    ) -> Deferred[Any]:
        """Build, register, and send a request. Returns its handle."""
        request, deferred = self.build_request(method, params, callback=callback)
        try:
            self._emit(request)
        except Exception:
            self._pending.discard(request.id)
            raise
        return deferred

    def notify(self, method: str, params: Params | None = None) -> JsonRpcNotification:
        """Build and send a notification."""
        notification = self.build_notification(method, params)
        self._emit(notification)
        return notification

    def cancel(self, request_id: RequestId) -> bool:
        """Forget an outstanding call without settling its handle.

        A response arriving later for this id is treated as unmatched.
        """
        return self._pending.discard(request_id)

    def close(self, error: Any = None) -> int:
        """Reject every outstanding call. Returns how many were rejected."""
        count = self._pending.reject_all(error if error is not None else CONNECTION_CLOSED)
        if count:
            logger.info(f"Rejected {count} pending call(s) on close")
        return count

    async def drain(self) -> None:
        """Wait for scheduled method results and asynchronous sends."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # =========================================================================
    # Inbound
    # =========================================================================

    def handle(self, message: Any, context: Any = None) -> MessageKind:
        """Classify an inbound envelope and dispatch it.

        Unrecognized envelopes are dropped; foreign traffic on a shared
        channel must not break the peer.
        """
        kind = classify(message)
        if kind is MessageKind.REQUEST:
            self.handle_request(message, context)
        elif kind is MessageKind.NOTIFICATION:
            self.handle_notification(message, context)
        elif kind is MessageKind.RESPONSE:
            self.handle_response(message)
        else:
            logger.debug(f"Dropping unrecognized message: {message!r}")
        return kind

    def handle_response(self, response: Any) -> None:
        """Settle the pending call matching ``response.id``.

        The record is removed before its handle settles, so a second
        response for the same id always finds nothing and is dropped.
        """
        request_id = get_field(response, "id")
        call = self._pending.pop(request_id) if is_request_id(request_id) else None
        if call is None:
            logger.debug(f"Dropping response for unknown request: {request_id!r}")
            return

        error = get_field(response, "error")
        if error is not None:
            call.reject(error)
        else:
            call.resolve(get_field(response, "result"))

    def handle_request(self, request: Any, context: Any = None) -> None:
        """Invoke the requested method and send exactly one response."""
        request_id = get_field(request, "id")
        if not is_request_id(request_id):
            # Nothing to address a response to
            self.handle_notification(request, context)
            return
        name = get_field(request, "method")

        method = resolve_method(self.methods, name)
        if method is None:
            logger.debug(f"Method not found: {name!r}")
            self._emit(build_error_response(request_id, METHOD_NOT_FOUND))
            return

        reply = partial(self._reply, request_id, name)
        try:
            outcome = method.invoke(get_field(request, "params"), self._context(context))
        except Exception as e:
            reply(e, None)
            return
        self._on_outcome(outcome, reply)

    def handle_notification(self, notification: Any, context: Any = None) -> None:
        """Invoke the notified method; its outcome is discarded."""
        name = get_field(notification, "method")

        method = resolve_method(self.methods, name)
        if method is None:
            logger.debug(f"Dropping notification for unknown method: {name!r}")
            return

        done = partial(self._notification_done, name)
        try:
            outcome = method.invoke(get_field(notification, "params"), self._context(context))
        except Exception as e:
            done(e, None)
            return
        self._on_outcome(outcome, done)

    # =========================================================================
    # Internals
    # =========================================================================

    def _context(self, context: Any) -> Any:
        return self.context if context is None else context

    def _emit(self, envelope: Envelope) -> None:
        outcome = self._send(envelope)
        if not inspect.isawaitable(outcome):
            return
        try:
            task = self._schedule(outcome)
        except RuntimeError:
            if inspect.iscoroutine(outcome):
                outcome.close()
            raise
        task.add_done_callback(self._log_send_failure)

    def _schedule(self, awaitable: Any) -> asyncio.Future[Any]:
        """Run ``awaitable`` on the running loop, tracked for ``drain``."""
        loop = asyncio.get_running_loop()
        future = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(future)
        future.add_done_callback(self._tasks.discard)
        return future

    def _on_outcome(self, outcome: Any, callback: OutcomeCallback) -> None:
        """Deliver a method's outcome to ``callback`` as ``(error, result)``."""
        if isinstance(outcome, Deferred):
            outcome.add_callback(callback)
            return
        if not inspect.isawaitable(outcome):
            callback(None, outcome)
            return

        try:
            future = self._schedule(outcome)
        except RuntimeError as e:
            # No running event loop to await on
            if inspect.iscoroutine(outcome):
                outcome.close()
            callback(e, None)
            return

        def _done(task: asyncio.Future[Any]) -> None:
            if task.cancelled():
                callback(asyncio.CancelledError("Method call was cancelled"), None)
            elif task.exception() is not None:
                callback(task.exception(), None)
            else:
                callback(None, task.result())

        future.add_done_callback(_done)

    def _reply(self, request_id: RequestId, name: str, error: Any, result: Any) -> None:
        if error is None:
            self._emit(build_result_response(request_id, result))
            return
        if isinstance(error, BaseException) and not isinstance(error, JsonRpcProtocolError):
            logger.error(f"Error handling request {name}: {error}", exc_info=error)
        self._emit(build_error_response(request_id, self._error_object(error)))

    def _error_object(self, error: Any) -> JsonRpcError:
        """Translate a method's failure value into an error object."""
        if isinstance(error, JsonRpcProtocolError):
            return error.error
        if isinstance(error, JsonRpcError):
            return error
        if isinstance(error, Mapping) and "code" in error and "message" in error:
            return JsonRpcProtocolError.from_error(error).error
        data = None
        if self.config.include_error_data:
            data = {"type": type(error).__name__}
        message = str(error) or type(error).__name__
        return JsonRpcError(code=INTERNAL_ERROR.code, message=message, data=data)

    def _notification_done(self, name: str, error: Any, result: Any) -> None:
        if error is not None:
            logger.warning(f"Error handling notification {name}: {error}")

    def _log_send_failure(self, task: asyncio.Future[Any]) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Failed to send message: {task.exception()}", exc_info=task.exception())
