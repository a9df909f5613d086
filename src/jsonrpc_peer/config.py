"""Peer configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

ENV_ID_STRATEGY = "JSONRPC_PEER_ID_STRATEGY"
ENV_ID_PREFIX = "JSONRPC_PEER_ID_PREFIX"
ENV_INCLUDE_ERROR_DATA = "JSONRPC_PEER_INCLUDE_ERROR_DATA"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class PeerConfig:
    """Configuration for a JsonRpcPeer."""

    # "uuid" (random string ids) or "counter" (1, 2, 3, ...)
    id_strategy: str = "uuid"
    id_prefix: str = ""

    # Attach {"type": <exception class>} to INTERNAL_ERROR responses
    include_error_data: bool = False

    @classmethod
    def from_env(cls) -> PeerConfig:
        """Load configuration from JSONRPC_PEER_* environment variables."""
        return cls(
            id_strategy=os.environ.get(ENV_ID_STRATEGY, "uuid").strip().lower(),
            id_prefix=os.environ.get(ENV_ID_PREFIX, ""),
            include_error_data=os.environ.get(ENV_INCLUDE_ERROR_DATA, "").strip().lower() in _TRUTHY,
        )
