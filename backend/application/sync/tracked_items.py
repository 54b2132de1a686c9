"""Optimistic-apply-with-rollback for the tracked-items list.

Tracked items are owned by one user, so a local change can be shown before
the gateway confirms it. Protocol per mutation:

1. snapshot the affected entity
2. apply the change to the store
3. call the gateway
4. success: keep local state (creation merges the server id/fields)
5. failure: restore the whole snapshot and raise a blocking notice

Deletion removes immediately and is never rolled back.

Store repair (rollback, rekey, reconcile) follows the signed-in session. A
revoked UI scope only silences the notice and turns the result into `dropped`.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from application.ports.gateway_errors import GatewayError, NotFound, Unauthorized
from application.ports.notifier_port import Notice, NoticeLevel, NotifierPort
from application.ports.remote_gateway_port import RemoteGatewayPort
from application.sync.entity_store import EntityStore, StoreKind
from application.sync.results import SyncResult
from application.sync.session import SessionContext, is_live, session_is_live
from domain.tracking import (
    CatalogEntry,
    TrackedItem,
    TrackedItemDraft,
    TrackedItemPatch,
    TrackedItemValidationError,
    tracked_refs,
)

logger = logging.getLogger(__name__)

_KIND = StoreKind.TRACKED_ITEMS

MSG_SIGN_IN_REQUIRED = "Sign in to manage your list."
MSG_ADD_FAILED = "Could not add the movie. It was removed from your list."
MSG_UPDATE_FAILED = "Could not update the movie. Your changes were reverted."
MSG_DELETE_FAILED = "Could not delete the movie on the server."
MSG_LOAD_FAILED = "Could not load your movies."
MSG_SEARCH_FAILED = "Movie search failed."


def _merge_created(provisional: TrackedItem, created: TrackedItem) -> TrackedItem:
    """Server-assigned id/fields win; fields the server left empty keep local values."""
    return replace(
        provisional,
        id=created.id,
        title=created.title or provisional.title,
        status=created.status,
        external_ref=created.external_ref if created.external_ref is not None else provisional.external_ref,
        poster_url=created.poster_url if created.poster_url is not None else provisional.poster_url,
        external_rating=(
            created.external_rating if created.external_rating is not None else provisional.external_rating
        ),
        user_rating=created.user_rating,
        added_at=created.added_at or provisional.added_at,
    )


class TrackedItemService:
    def __init__(
        self,
        *,
        gateway: RemoteGatewayPort,
        store: EntityStore,
        notifier: NotifierPort,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._notifier = notifier
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # Provisional ids are negative so they never collide with server ids.
        self._provisional_ids = itertools.count(-1, -1)

    def _notify_error(self, message: str, *, operation: str, error: Exception, blocking: bool) -> None:
        self._notifier.notify(
            Notice(
                level=NoticeLevel.ERROR,
                message=message,
                blocking=blocking,
                operation=operation,
                error_kind=getattr(error, "kind", "validation"),
            )
        )

    def _sign_in_required(self, operation: str) -> SyncResult:
        error = Unauthorized(MSG_SIGN_IN_REQUIRED)
        self._notify_error(MSG_SIGN_IN_REQUIRED, operation=operation, error=error, blocking=False)
        return SyncResult.failed(error)

    def _reject(self, error: TrackedItemValidationError, *, operation: str) -> SyncResult:
        self._notify_error(str(error), operation=operation, error=error, blocking=False)
        return SyncResult.rejected(error)

    async def _reconcile(self, context: SessionContext) -> None:
        """Re-read the whole list after a NotFound; failure keeps the local state."""
        try:
            items = await self._gateway.list_tracked_items()
        except GatewayError as exc:
            logger.warning("tracked items reconcile failed: %s", exc)
            return
        if session_is_live(context):
            self._store.replace_all(_KIND, items)

    async def load_items(self, context: Optional[SessionContext]) -> SyncResult[list[TrackedItem]]:
        if context is None:
            return self._sign_in_required("load")
        try:
            items = await self._gateway.list_tracked_items()
        except GatewayError as exc:
            logger.warning("list_tracked_items failed: %s", exc)
            if not is_live(context):
                return SyncResult.dropped()
            self._notify_error(MSG_LOAD_FAILED, operation="load", error=exc, blocking=False)
            return SyncResult.failed(exc)
        if session_is_live(context):
            self._store.replace_all(_KIND, items)
        if not is_live(context):
            return SyncResult.dropped()
        return SyncResult.applied(list(items))

    async def add_item(
        self,
        context: Optional[SessionContext],
        draft: TrackedItemDraft,
    ) -> SyncResult[TrackedItem]:
        if context is None:
            return self._sign_in_required("add")
        try:
            draft = draft.validated()
        except TrackedItemValidationError as exc:
            return self._reject(exc, operation="add")
        if draft.external_ref and draft.external_ref in tracked_refs(self._store.get_all(_KIND)):
            return self._reject(
                TrackedItemValidationError(f"{draft.title} is already in your list"),
                operation="add",
            )

        provisional = draft.to_provisional(item_id=next(self._provisional_ids), added_at=self._clock())
        self._store.upsert(_KIND, provisional)

        try:
            created = await self._gateway.create_tracked_item(draft=draft)
        except GatewayError as exc:
            logger.warning("create_tracked_item failed (title=%r): %s", draft.title, exc)
            # No-op when sign-out already cleared the store.
            self._store.remove_by_id(_KIND, provisional.id)
            if not is_live(context):
                return SyncResult.dropped()
            self._notify_error(MSG_ADD_FAILED, operation="add", error=exc, blocking=True)
            return SyncResult.rolled_back(exc)

        if not session_is_live(context):
            return SyncResult.dropped()
        merged = _merge_created(provisional, created)
        if not self._store.rekey(_KIND, provisional.id, merged):
            # The provisional entry was replaced by a full reload meanwhile.
            if self._store.get(_KIND, merged.id) is None:
                self._store.upsert(_KIND, merged)
        if not is_live(context):
            return SyncResult.dropped()
        return SyncResult.applied(merged)

    async def update_item(
        self,
        context: Optional[SessionContext],
        item_id: int,
        patch: TrackedItemPatch,
    ) -> SyncResult[TrackedItem]:
        if context is None:
            return self._sign_in_required("update")
        try:
            patch = patch.validated()
        except TrackedItemValidationError as exc:
            return self._reject(exc, operation="update")
        snapshot = self._store.get(_KIND, item_id)
        if snapshot is None:
            return self._reject(TrackedItemValidationError(f"unknown tracked item: {item_id}"), operation="update")
        if item_id < 0:
            return self._reject(TrackedItemValidationError("item is still being added"), operation="update")

        optimistic = patch.apply_to(snapshot)
        self._store.upsert(_KIND, optimistic)

        try:
            # The success payload is not re-applied over local state.
            await self._gateway.update_tracked_item(item_id=item_id, patch=patch)
        except GatewayError as exc:
            logger.warning("update_tracked_item failed (id=%s): %s", item_id, exc)
            if not session_is_live(context):
                return SyncResult.dropped()
            # Whole-entity restore; no partial merge. Nothing re-checks whether another
            # mutation landed on this entity after the snapshot was taken.
            self._store.upsert(_KIND, snapshot)
            if isinstance(exc, NotFound):
                await self._reconcile(context)
            if not is_live(context):
                return SyncResult.dropped()
            self._notify_error(MSG_UPDATE_FAILED, operation="update", error=exc, blocking=True)
            return SyncResult.rolled_back(exc, value=snapshot)

        if not is_live(context):
            return SyncResult.dropped()
        return SyncResult.applied(optimistic)

    async def delete_item(self, context: Optional[SessionContext], item_id: int) -> SyncResult[TrackedItem]:
        if context is None:
            return self._sign_in_required("delete")
        if item_id < 0:
            return self._reject(TrackedItemValidationError("item is still being added"), operation="delete")
        removed = self._store.remove_by_id(_KIND, item_id)
        if removed is None:
            return self._reject(TrackedItemValidationError(f"unknown tracked item: {item_id}"), operation="delete")

        try:
            await self._gateway.delete_tracked_item(item_id=item_id)
        except GatewayError as exc:
            logger.warning("delete_tracked_item failed (id=%s): %s", item_id, exc)
            if isinstance(exc, NotFound):
                await self._reconcile(context)
            if not is_live(context):
                return SyncResult.dropped()
            self._notify_error(MSG_DELETE_FAILED, operation="delete", error=exc, blocking=True)
            return SyncResult.failed(exc)

        if not is_live(context):
            return SyncResult.dropped()
        return SyncResult.applied(removed)

    async def search_catalog(
        self,
        context: Optional[SessionContext],
        query: str,
    ) -> SyncResult[list[CatalogEntry]]:
        """Catalog hits annotated with whether they are already on the list."""
        if context is None:
            return self._sign_in_required("search")
        q = (query or "").strip()
        if not q:
            return SyncResult.short_circuited([])
        try:
            entries = await self._gateway.search_catalog(query=q)
        except GatewayError as exc:
            logger.warning("search_catalog failed (query=%r): %s", q, exc)
            if not is_live(context):
                return SyncResult.dropped()
            self._notify_error(MSG_SEARCH_FAILED, operation="search", error=exc, blocking=False)
            return SyncResult.failed(exc)
        if not is_live(context):
            return SyncResult.dropped()
        refs = tracked_refs(self._store.get_all(_KIND))
        return SyncResult.applied([replace(e, already_tracked=e.external_ref in refs) for e in entries])
