from __future__ import annotations

from typing import Optional, Protocol

from domain.social import (
    FriendProfile,
    FriendRequest,
    FriendshipStatusView,
    SendRequestResult,
)
from domain.tracking import CatalogEntry, TrackedItem, TrackedItemDraft, TrackedItemPatch


class RemoteGatewayPort(Protocol):
    """Authenticated access to the authoritative store, scoped to the signed-in user.

    Every call may raise a `GatewayError` subclass
    (see `application.ports.gateway_errors`). No call retries.
    """

    async def list_tracked_items(self) -> list[TrackedItem]:
        ...

    async def create_tracked_item(self, *, draft: TrackedItemDraft) -> TrackedItem:
        """Server assigns the id."""
        ...

    async def update_tracked_item(self, *, item_id: int, patch: TrackedItemPatch) -> Optional[TrackedItem]:
        ...

    async def delete_tracked_item(self, *, item_id: int) -> None:
        ...

    async def search_catalog(self, *, query: str) -> list[CatalogEntry]:
        ...

    async def list_friends(self) -> list[FriendProfile]:
        ...

    async def list_incoming(self) -> list[FriendRequest]:
        ...

    async def list_outgoing(self) -> list[FriendRequest]:
        ...

    async def get_pending_count(self) -> int:
        ...

    async def send_friend_request(self, *, user_id: int) -> SendRequestResult:
        """Raises `Conflict` when a non-`none` edge already exists."""
        ...

    async def accept_friend_request(self, *, request_id: int) -> None:
        ...

    async def reject_friend_request(self, *, request_id: int) -> None:
        ...

    async def remove_friend(self, *, user_id: int) -> None:
        ...

    async def get_friendship_status(self, *, user_id: int) -> FriendshipStatusView:
        ...

    async def close(self) -> None:
        ...
