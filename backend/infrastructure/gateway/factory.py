"""Remote gateway factory.

Picks the gateway implementation from configuration so the client
composition root never imports a concrete adapter directly.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from application.ports.remote_gateway_port import RemoteGatewayPort
from infrastructure.config.settings import (
    SYNC_API_BASE_URL,
    SYNC_API_TIMEOUT_S,
    SYNC_API_TOKEN,
    SYNC_GATEWAY_PROVIDER,
    SYNC_MEMORY_USER_ID,
)

logger = logging.getLogger(__name__)

ProviderType = Literal["http", "memory", ""]


class RemoteGatewayFactory:
    """Factory for creating remote gateway instances based on configuration."""

    @staticmethod
    def create(
        provider: ProviderType | None = None,
        *,
        token: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> RemoteGatewayPort:
        """Create a gateway for one signed-in user.

        Args:
            provider: 'http', 'memory', or None to read SYNC_GATEWAY_PROVIDER.
            token: Bearer token for the http provider (defaults to SYNC_API_TOKEN).
            user_id: Signed-in user for the memory provider.

        Raises:
            ValueError: If an unsupported provider is specified.
        """
        if provider is None:
            provider = SYNC_GATEWAY_PROVIDER  # type: ignore[assignment]

        provider = (provider or "").strip().lower()

        match provider:
            case "http" | "":
                if not SYNC_API_BASE_URL:
                    logger.warning(
                        "SYNC_GATEWAY_PROVIDER=http but SYNC_API_BASE_URL is not set; "
                        "falling back to the in-memory gateway"
                    )
                    return _memory_gateway(user_id)

                from infrastructure.gateway.http_remote_gateway import HttpRemoteGateway

                return HttpRemoteGateway(
                    base_url=SYNC_API_BASE_URL,
                    token=token if token is not None else SYNC_API_TOKEN,
                    timeout_s=SYNC_API_TIMEOUT_S,
                )

            case "memory":
                return _memory_gateway(user_id)

            case _:
                raise ValueError(
                    f"Unsupported SYNC_GATEWAY_PROVIDER: {provider!r}. "
                    f"Supported values: 'http', 'memory'"
                )


_shared_backend = None


def _memory_gateway(user_id: Optional[int]) -> RemoteGatewayPort:
    global _shared_backend
    from infrastructure.gateway.in_memory_remote_gateway import InMemorySyncBackend

    if _shared_backend is None:
        _shared_backend = InMemorySyncBackend()
    return _shared_backend.for_user(user_id if user_id is not None else SYNC_MEMORY_USER_ID)


def create_remote_gateway(
    provider: ProviderType | None = None,
    *,
    token: Optional[str] = None,
    user_id: Optional[int] = None,
) -> RemoteGatewayPort:
    """Shorthand for RemoteGatewayFactory.create()."""
    return RemoteGatewayFactory.create(provider, token=token, user_id=user_id)
