"""JSON text <-> envelopes.

The peer itself never serializes; transports use these helpers.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter

from .errors import PARSE_ERROR, JsonRpcProtocolError
from .types import Envelope

_payload_adapter: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


def decode_message(data: str | bytes) -> Any:
    """Decode one JSON-RPC message.

    Raises:
        JsonRpcProtocolError: PARSE_ERROR if ``data`` is not valid JSON.
    """
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise JsonRpcProtocolError(
            code=PARSE_ERROR.code,
            message=PARSE_ERROR.message,
            data=str(e),
        ) from e


def encode_message(envelope: Envelope | dict[str, Any]) -> str:
    """Encode an envelope as compact JSON text.

    Results may contain pydantic models, dataclasses, and datetimes.
    """
    payload = envelope if isinstance(envelope, dict) else envelope.to_dict()
    return _payload_adapter.dump_json(payload).decode("utf-8")
