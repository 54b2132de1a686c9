from __future__ import annotations

from functools import lru_cache
from typing import Optional

from client.sync_client import MovieSyncClient
from config.settings import (
    SYNC_DEFAULT_SORT_MODE,
    SYNC_PAGE_SIZE,
    SYNC_PENDING_COUNT_SOURCE,
    SYNC_VIEW_PREFERENCES_PATH,
)
from domain.tracking import SortMode


@lru_cache(maxsize=1)
def _build_view_preferences():
    from infrastructure.preferences import YamlViewPreferences

    return YamlViewPreferences(SYNC_VIEW_PREFERENCES_PATH, default=SortMode(SYNC_DEFAULT_SORT_MODE))


@lru_cache(maxsize=1)
def _build_notifier():
    from infrastructure.notifications import LoggingNotifier

    return LoggingNotifier()


def build_sync_client(
    *,
    token: Optional[str] = None,
    user_id: Optional[int] = None,
    provider: Optional[str] = None,
) -> MovieSyncClient:
    """Wire a client for one signed-in user; gateways are per user, not cached."""
    from infrastructure.gateway import RemoteGatewayFactory

    gateway = RemoteGatewayFactory.create(provider, token=token, user_id=user_id)  # type: ignore[arg-type]
    return MovieSyncClient(
        gateway=gateway,
        notifier=_build_notifier(),
        preferences=_build_view_preferences(),
        pending_count_source=SYNC_PENDING_COUNT_SOURCE,
        page_size=SYNC_PAGE_SIZE,
    )


def reset_cached_dependencies() -> None:
    _build_view_preferences.cache_clear()
    _build_notifier.cache_clear()
