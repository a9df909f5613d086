"""JSON-RPC 2.0 peer.

Client/server-symmetric message layer: builds requests, notifications and
responses, classifies inbound messages, correlates responses with their
calls, and dispatches invocations to registered methods.

Transports and serialization live at the edges (``transport``, ``codec``);
the peer only sees structured envelopes.
"""

from .codec import decode_message, encode_message
from .config import PeerConfig
from .correlator import PendingCall, PendingCallTable, RequestIdFactory
from .deferred import Deferred, DeferredState
from .errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    STANDARD_ERRORS,
    DuplicateRequestIdError,
    JsonRpcErrorCode,
    JsonRpcProtocolError,
)
from .messages import (
    build_error_response,
    build_notification,
    build_request,
    build_result_response,
    classify,
)
from .methods import MethodTable, RegisteredMethod
from .peer import JsonRpcPeer
from .transport import CallbackTransport, PeerTransport, StreamTransport
from .types import (
    JSONRPC_VERSION,
    Envelope,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    MessageKind,
    RequestId,
)

__version__ = "0.1.0"

__all__ = [
    # Peer
    "JsonRpcPeer",
    "PeerConfig",
    "Deferred",
    "DeferredState",
    "MethodTable",
    "RegisteredMethod",
    "PendingCall",
    "PendingCallTable",
    "RequestIdFactory",
    # Envelopes
    "JSONRPC_VERSION",
    "Envelope",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MessageKind",
    "RequestId",
    "build_error_response",
    "build_notification",
    "build_request",
    "build_result_response",
    "classify",
    # Errors
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "STANDARD_ERRORS",
    "DuplicateRequestIdError",
    "JsonRpcErrorCode",
    "JsonRpcProtocolError",
    # Transports
    "PeerTransport",
    "StreamTransport",
    "CallbackTransport",
    "decode_message",
    "encode_message",
]
