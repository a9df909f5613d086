"""JSON-RPC 2.0 envelope types.

Field names match the wire format (``jsonrpc``, ``id``, ``method``, ...).
See: https://www.jsonrpc.org/specification
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Protocol version stamped on every envelope
JSONRPC_VERSION = "2.0"

RequestId = Union[str, int, float]
Params = Union[list[Any], dict[str, Any]]


class MessageKind(str, Enum):
    """Classification of an inbound envelope."""

    REQUEST = "request"
    NOTIFICATION = "notification"
    RESPONSE = "response"
    UNRECOGNIZED = "unrecognized"


# =============================================================================
# JSON-RPC 2.0 Base Types
# =============================================================================


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object.

    Frozen: catalog entries in ``jsonrpc_peer.errors`` are shared singletons.
    """

    model_config = ConfigDict(frozen=True)

    code: int
    message: str
    data: Any | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation; ``data`` is omitted when unset."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class JsonRpcNotification(BaseModel):
    """JSON-RPC 2.0 notification (no response expected)."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str
    params: Params = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": self.jsonrpc, "method": self.method, "params": self.params}


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    method: str
    params: Params = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response.

    Carries exactly one of ``result`` or ``error``. A ``None`` result is a
    legitimate success value, so ``to_dict`` keys off ``error`` only.
    ``id`` is ``None`` only for replies to unparseable input.
    """

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId | None
    result: Any | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _check_result_or_error(self) -> JsonRpcResponse:
        if self.error is not None and self.result is not None:
            raise ValueError("A response carries either a result or an error, not both")
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.to_dict()
        else:
            data["result"] = self.result
        return data


Envelope = Union[JsonRpcRequest, JsonRpcNotification, JsonRpcResponse]
