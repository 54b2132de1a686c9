from __future__ import annotations

from infrastructure.config.settings import (  # noqa: F401
    SYNC_API_BASE_URL,
    SYNC_API_TIMEOUT_S,
    SYNC_API_TOKEN,
    SYNC_GATEWAY_PROVIDER,
)

__all__ = [
    "SYNC_API_BASE_URL",
    "SYNC_API_TIMEOUT_S",
    "SYNC_API_TOKEN",
    "SYNC_GATEWAY_PROVIDER",
]
