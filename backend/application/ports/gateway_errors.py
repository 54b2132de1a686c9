from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Classified failure of one logical remote operation."""

    kind = "unknown"

    def __init__(self, message: str = "", *, status_code: Optional[int] = None) -> None:
        super().__init__(message or self.kind)
        self.message = message
        self.status_code = status_code


class NetworkUnavailable(GatewayError):
    """No connectivity or the call timed out. Never retried."""

    kind = "network_unavailable"


class Unauthorized(GatewayError):
    kind = "unauthorized"


class Conflict(GatewayError):
    """A non-`none` edge already exists for the pair (duplicate attempt)."""

    kind = "conflict"


class NotFound(GatewayError):
    """The target entity is gone (deleted concurrently elsewhere)."""

    kind = "not_found"


class UnknownGatewayError(GatewayError):
    kind = "unknown"


__all__ = [
    "GatewayError",
    "NetworkUnavailable",
    "Unauthorized",
    "Conflict",
    "NotFound",
    "UnknownGatewayError",
]
