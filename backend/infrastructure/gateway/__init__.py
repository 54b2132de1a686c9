from infrastructure.gateway.factory import RemoteGatewayFactory, create_remote_gateway
from infrastructure.gateway.in_memory_remote_gateway import InMemoryRemoteGateway, InMemorySyncBackend

__all__ = [
    "InMemoryRemoteGateway",
    "InMemorySyncBackend",
    "RemoteGatewayFactory",
    "create_remote_gateway",
]
