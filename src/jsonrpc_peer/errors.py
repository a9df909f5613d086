"""JSON-RPC 2.0 error catalog.

See: https://www.jsonrpc.org/specification#error_object
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .types import JsonRpcError, RequestId


# Standard JSON-RPC error codes
class JsonRpcErrorCode:
    """Standard JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


PARSE_ERROR = JsonRpcError(code=JsonRpcErrorCode.PARSE_ERROR, message="Parse error")
INVALID_REQUEST = JsonRpcError(code=JsonRpcErrorCode.INVALID_REQUEST, message="Invalid request")
METHOD_NOT_FOUND = JsonRpcError(code=JsonRpcErrorCode.METHOD_NOT_FOUND, message="Method not found")
INVALID_PARAMS = JsonRpcError(code=JsonRpcErrorCode.INVALID_PARAMS, message="Invalid params")
INTERNAL_ERROR = JsonRpcError(code=JsonRpcErrorCode.INTERNAL_ERROR, message="Internal error")

STANDARD_ERRORS: tuple[JsonRpcError, ...] = (
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
)


class JsonRpcProtocolError(Exception):
    """Exception for JSON-RPC protocol errors.

    Raised by method handlers to answer a request with a specific error
    object, and raised from an awaited ``Deferred`` whose remote call failed.
    """

    def __init__(
        self,
        code: int,
        message: str,
        data: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    @property
    def error(self) -> JsonRpcError:
        """The error object this exception carries."""
        return JsonRpcError(code=self.code, message=self.message, data=self.data)

    @classmethod
    def from_error(cls, error: Any) -> JsonRpcProtocolError:
        """Build from an error object, a decoded error mapping, or any value."""
        if isinstance(error, JsonRpcError):
            return cls(error.code, error.message, error.data)
        if isinstance(error, Mapping):
            return cls(
                code=error.get("code", JsonRpcErrorCode.INTERNAL_ERROR),
                message=error.get("message", "Unknown error"),
                data=error.get("data"),
            )
        return cls(JsonRpcErrorCode.INTERNAL_ERROR, str(error))

    def __repr__(self) -> str:
        return f"JsonRpcProtocolError(code={self.code}, message={self.message!r})"


class DuplicateRequestIdError(ValueError):
    """An explicit request id collides with an outstanding call."""

    def __init__(self, request_id: RequestId) -> None:
        super().__init__(f"Request id already outstanding: {request_id!r}")
        self.request_id = request_id
