"""Client facade: one signed-in session over the sync services.

Owns the entity store, the session context and the services built on them.
Screens read through `view()`/`store` and subscribe for change notifications;
every mutation goes through the services so the optimistic and refetch
protocols stay in one place.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from application.ports.notifier_port import NotifierPort
from application.ports.remote_gateway_port import RemoteGatewayPort
from application.ports.view_preferences_port import ViewPreferencesPort
from application.sync import (
    PENDING_COUNT,
    PENDING_COUNT_REMOTE,
    CollectionRefresher,
    EntityStore,
    FriendshipStatusService,
    RelationshipService,
    SessionContext,
    StoreChange,
    StoreKind,
    SyncResult,
    TrackedItemService,
)
from domain.social import FriendProfile, FriendRequest, FriendshipStatusView
from domain.tracking import (
    DEFAULT_PAGE_SIZE,
    TAB_ALL,
    CatalogEntry,
    ProjectedView,
    SortMode,
    TrackedItem,
    TrackedItemDraft,
    TrackedItemPatch,
    ViewQuery,
    project,
)

logger = logging.getLogger(__name__)


class MovieSyncClient:
    """One signed-in user over one gateway.

    The gateway carries the identity (a per-user token or a per-user in-memory
    view), so the client is bound to that user: the in-memory gateway reports
    it up front, otherwise the first `sign_in` binds it. Signing in as anyone
    else needs a new client built for that user.

    Every operation takes an optional `context`; pass a `scope()` to tie the
    notice and the result to one screen. It defaults to the session context.
    """

    def __init__(
        self,
        *,
        gateway: RemoteGatewayPort,
        notifier: NotifierPort,
        preferences: ViewPreferencesPort,
        store: Optional[EntityStore] = None,
        pending_count_source: str = PENDING_COUNT_REMOTE,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._gateway = gateway
        self._preferences = preferences
        self._page_size = int(page_size)
        self.store = store or EntityStore()
        self._context: Optional[SessionContext] = None
        bound = getattr(gateway, "user_id", None)
        self._bound_user_id: Optional[int] = bound if isinstance(bound, int) else None

        refresher = CollectionRefresher(
            gateway=gateway,
            store=self.store,
            pending_count_source=pending_count_source,
        )
        self.tracked_items = TrackedItemService(gateway=gateway, store=self.store, notifier=notifier)
        self.relationships = RelationshipService(
            gateway=gateway,
            store=self.store,
            notifier=notifier,
            refresher=refresher,
        )
        self.friendship_status = FriendshipStatusService(gateway=gateway, refresher=refresher)

    # ---- session ----

    @property
    def context(self) -> Optional[SessionContext]:
        return self._context

    @property
    def user_id(self) -> Optional[int]:
        return self._bound_user_id

    async def sign_in(self, user_id: int) -> SessionContext:
        """Start a session; the pending-request badge is refreshed right away.

        Raises:
            ValueError: If `user_id` is not the user this client's gateway acts for.
        """
        user_id = int(user_id)
        if self._bound_user_id is not None and user_id != self._bound_user_id:
            raise ValueError(
                f"client is bound to user {self._bound_user_id}; build a new client to sign in as {user_id}"
            )
        if self._context is not None:
            self.sign_out()
        self._bound_user_id = user_id
        self._context = SessionContext(user_id=user_id)
        logger.info("session started (user_id=%s)", user_id)
        await self.friendship_status.refresh_pending_count(self._context)
        return self._context

    def sign_out(self) -> None:
        """Revoke in-flight work for the session and drop all cached state."""
        if self._context is not None:
            self._context.liveness.revoke()
            logger.info("session ended (user_id=%s)", self._context.user_id)
        self._context = None
        self.store.clear()

    def scope(self) -> Optional[SessionContext]:
        """Child context for one screen; revoke it when the screen goes away."""
        return self._context.child() if self._context is not None else None

    def _resolve(self, context: Optional[SessionContext]) -> Optional[SessionContext]:
        return context if context is not None else self._context

    async def load(self, context: Optional[SessionContext] = None) -> SyncResult[None]:
        context = self._resolve(context)
        items = await self.tracked_items.load_items(context)
        social = await self.relationships.refresh_all(context)
        if not items.ok:
            return SyncResult(status=items.status, error=items.error)
        return social

    async def close(self) -> None:
        self.sign_out()
        await self._gateway.close()

    # ---- reads ----

    def subscribe(self, callback: Callable[[StoreChange], None]) -> Callable[[], None]:
        return self.store.subscribe(callback)

    @property
    def items(self) -> list[TrackedItem]:
        return self.store.get_all(StoreKind.TRACKED_ITEMS)

    @property
    def friends(self) -> list[FriendProfile]:
        return self.store.get_all(StoreKind.FRIENDS)

    @property
    def incoming(self) -> list[FriendRequest]:
        return self.store.get_all(StoreKind.INCOMING)

    @property
    def outgoing(self) -> list[FriendRequest]:
        return self.store.get_all(StoreKind.OUTGOING)

    @property
    def pending_count(self) -> int:
        return int(self.store.get_scalar(PENDING_COUNT, 0))

    @property
    def sort_mode(self) -> SortMode:
        return self._preferences.load_sort_mode()

    def set_sort_mode(self, mode: SortMode | str) -> SortMode:
        mode = SortMode(mode)
        self._preferences.save_sort_mode(mode)
        return mode

    def view(self, *, query: str = "", tab: str = TAB_ALL, page: int = 1) -> ProjectedView:
        return project(
            self.items,
            ViewQuery(
                query=query,
                tab=tab,
                sort_mode=self.sort_mode,
                page=page,
                page_size=self._page_size,
            ),
        )

    # ---- operations ----

    async def add_item(
        self, draft: TrackedItemDraft, *, context: Optional[SessionContext] = None
    ) -> SyncResult[TrackedItem]:
        return await self.tracked_items.add_item(self._resolve(context), draft)

    async def add_from_catalog(
        self, entry: CatalogEntry, *, context: Optional[SessionContext] = None
    ) -> SyncResult[TrackedItem]:
        return await self.tracked_items.add_item(self._resolve(context), entry.to_draft())

    async def update_item(
        self, item_id: int, patch: TrackedItemPatch, *, context: Optional[SessionContext] = None
    ) -> SyncResult[TrackedItem]:
        return await self.tracked_items.update_item(self._resolve(context), item_id, patch)

    async def delete_item(self, item_id: int, *, context: Optional[SessionContext] = None) -> SyncResult[TrackedItem]:
        return await self.tracked_items.delete_item(self._resolve(context), item_id)

    async def search_catalog(
        self, query: str, *, context: Optional[SessionContext] = None
    ) -> SyncResult[list[CatalogEntry]]:
        return await self.tracked_items.search_catalog(self._resolve(context), query)

    async def send_friend_request(
        self, user_id: int, *, context: Optional[SessionContext] = None
    ) -> SyncResult[FriendshipStatusView]:
        return await self.relationships.send_friend_request(self._resolve(context), user_id)

    async def accept_friend_request(
        self, request_id: int, *, context: Optional[SessionContext] = None
    ) -> SyncResult[None]:
        return await self.relationships.accept_friend_request(self._resolve(context), request_id)

    async def reject_friend_request(
        self, request_id: int, *, context: Optional[SessionContext] = None
    ) -> SyncResult[None]:
        return await self.relationships.reject_friend_request(self._resolve(context), request_id)

    async def remove_friend(self, user_id: int, *, context: Optional[SessionContext] = None) -> SyncResult[None]:
        return await self.relationships.remove_friend(self._resolve(context), user_id)

    async def check_friendship_status(
        self, user_id: int, *, context: Optional[SessionContext] = None
    ) -> FriendshipStatusView:
        return await self.friendship_status.check_friendship_status(self._resolve(context), user_id)

    async def refresh_pending_count(self, *, context: Optional[SessionContext] = None) -> SyncResult[None]:
        return await self.friendship_status.refresh_pending_count(self._resolve(context))
