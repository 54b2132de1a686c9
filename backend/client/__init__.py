from client.sync_client import MovieSyncClient

__all__ = ["MovieSyncClient"]
