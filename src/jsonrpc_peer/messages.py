"""Envelope construction and classification.

Builders are pure: they never allocate identifiers or touch correlation
state. Identifier allocation lives in ``JsonRpcPeer.build_request``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from .types import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    MessageKind,
    Params,
    RequestId,
)


def build_notification(method: str, params: Params | None = None) -> JsonRpcNotification:
    """Create a JSON-RPC notification."""
    return JsonRpcNotification(method=method, params=[] if params is None else params)


def build_request(method: str, params: Params | None = None, *, request_id: RequestId) -> JsonRpcRequest:
    """Create a JSON-RPC request with a caller-chosen id."""
    return JsonRpcRequest(id=request_id, method=method, params=[] if params is None else params)


def build_result_response(request_id: RequestId, result: Any) -> JsonRpcResponse:
    """Create a JSON-RPC success response."""
    return JsonRpcResponse(id=request_id, result=result)


def build_error_response(request_id: RequestId | None, error: JsonRpcError) -> JsonRpcResponse:
    """Create a JSON-RPC error response."""
    return JsonRpcResponse(id=request_id, error=error)


def is_envelope_shaped(message: Any) -> bool:
    """Decoded JSON objects and envelope models; not batches or scalars."""
    return isinstance(message, (Mapping, BaseModel))


def is_request_id(value: Any) -> bool:
    """Strings and numbers are ids; booleans, objects and arrays are not."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def get_field(message: Any, name: str) -> Any:
    """Read a wire field from a decoded object or an envelope model."""
    if isinstance(message, BaseModel):
        return getattr(message, name, None)
    if isinstance(message, Mapping):
        return message.get(name)
    return None


def classify(message: Any) -> MessageKind:
    """Classify an envelope by the presence of ``method`` and ``id``.

    A field counts as present when its key exists with a non-null value.
    An ``id`` that is not a string or number counts as absent.
    Total and deterministic: every input maps to exactly one kind.
    """
    if not is_envelope_shaped(message):
        return MessageKind.UNRECOGNIZED

    has_method = get_field(message, "method") is not None
    has_id = is_request_id(get_field(message, "id"))

    if has_method:
        return MessageKind.REQUEST if has_id else MessageKind.NOTIFICATION
    if has_id:
        return MessageKind.RESPONSE
    return MessageKind.UNRECOGNIZED
