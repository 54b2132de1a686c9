from application.ports.gateway_errors import (
    Conflict,
    GatewayError,
    NetworkUnavailable,
    NotFound,
    Unauthorized,
    UnknownGatewayError,
)
from application.ports.notifier_port import Notice, NoticeLevel, NotifierPort
from application.ports.remote_gateway_port import RemoteGatewayPort
from application.ports.view_preferences_port import ViewPreferencesPort

__all__ = [
    "Conflict",
    "GatewayError",
    "NetworkUnavailable",
    "NotFound",
    "Notice",
    "NoticeLevel",
    "NotifierPort",
    "RemoteGatewayPort",
    "Unauthorized",
    "UnknownGatewayError",
    "ViewPreferencesPort",
]
