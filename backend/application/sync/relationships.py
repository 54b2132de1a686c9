"""Refetch-after-confirm for friendship edges.

Edges are jointly owned by two users, and the other party's derived views are
not in this client's store, so nothing is applied locally before the gateway
confirms. On success the affected collections (fixed table in
`domain.social.relationship.refetch_plan`) are re-read and replaced wholesale;
on failure the store is untouched and a transient notice is raised.

Refetches follow the signed-in session; a revoked UI scope only loses the
notice and gets a `dropped` result.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from application.ports.gateway_errors import Conflict, GatewayError, NotFound, Unauthorized, UnknownGatewayError
from application.ports.notifier_port import Notice, NoticeLevel, NotifierPort
from application.ports.remote_gateway_port import RemoteGatewayPort
from application.sync.entity_store import EntityStore, StoreKind
from application.sync.refresher import CollectionRefresher
from application.sync.results import SyncResult
from application.sync.session import SessionContext, is_live
from domain.social import (
    FriendshipStatus,
    FriendshipStatusView,
    RelationshipCollection,
    RelationshipOperation,
    RequestDirection,
    interpret_send_response,
    locate_request,
    precheck_send,
    refetch_plan,
)

logger = logging.getLogger(__name__)

MSG_SIGN_IN_REQUIRED = "Sign in to perform this action."
MSG_REQUEST_SENT = "Friend request sent."
MSG_REQUEST_ACCEPTED = "Friend request accepted."
MSG_REQUEST_REJECTED = "Friend request rejected."
MSG_FRIEND_REMOVED = "Friend removed."
MSG_DUPLICATE_REQUEST = "A friend request with this user already exists."
MSG_SEND_FAILED = "Could not send the friend request."
MSG_ACCEPT_FAILED = "Could not accept the friend request."
MSG_REJECT_FAILED = "Could not reject the friend request."
MSG_REMOVE_FAILED = "Could not remove the friend."

_ALL_COLLECTIONS = (
    RelationshipCollection.FRIENDS,
    RelationshipCollection.INCOMING,
    RelationshipCollection.OUTGOING,
    RelationshipCollection.PENDING_COUNT,
)


class RelationshipService:
    def __init__(
        self,
        *,
        gateway: RemoteGatewayPort,
        store: EntityStore,
        notifier: NotifierPort,
        refresher: CollectionRefresher,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._notifier = notifier
        self._refresher = refresher

    def _notify(self, level: NoticeLevel, message: str, *, operation: str, error: Optional[GatewayError] = None) -> None:
        self._notifier.notify(
            Notice(
                level=level,
                message=message,
                blocking=False,
                operation=operation,
                error_kind=error.kind if error is not None else None,
            )
        )

    def _sign_in_required(self, operation: str) -> SyncResult:
        error = Unauthorized(MSG_SIGN_IN_REQUIRED)
        self._notify(NoticeLevel.ERROR, MSG_SIGN_IN_REQUIRED, operation=operation, error=error)
        return SyncResult.failed(error)

    async def _confirm(
        self,
        context: SessionContext,
        *,
        operation: RelationshipOperation,
        call: Callable[[], Awaitable[object]],
        failure_message: str,
        plan_on_not_found: tuple[RelationshipCollection, ...],
    ) -> tuple[Optional[object], Optional[SyncResult]]:
        """Run the gateway call; returns (payload, None) or (None, terminal result)."""
        try:
            payload = await call()
        except GatewayError as exc:
            logger.warning("%s failed: %s", operation.value, exc)
            if isinstance(exc, NotFound):
                await self._refresher.refresh(context, plan_on_not_found)
            if not is_live(context):
                return None, SyncResult.dropped()
            if isinstance(exc, Conflict):
                # Nothing changed server-side: no refetch.
                self._notify(NoticeLevel.ERROR, exc.message or MSG_DUPLICATE_REQUEST, operation=operation.value, error=exc)
                return None, SyncResult.failed(exc)
            self._notify(NoticeLevel.ERROR, failure_message, operation=operation.value, error=exc)
            return None, SyncResult.failed(exc)
        return payload, None

    async def _settle(
        self,
        context: SessionContext,
        plan: tuple[RelationshipCollection, ...],
        *,
        operation: RelationshipOperation,
        message: str,
        value: Optional[object] = None,
    ) -> SyncResult:
        """Confirmed change: notice for a live scope, refetch for a live session."""
        if is_live(context):
            self._notify(NoticeLevel.SUCCESS, message, operation=operation.value)
        await self._refresher.refresh(context, plan)
        if not is_live(context):
            return SyncResult.dropped()
        return SyncResult.applied(value)

    async def send_friend_request(
        self,
        context: Optional[SessionContext],
        user_id: int,
    ) -> SyncResult[FriendshipStatusView]:
        if context is None:
            return self._sign_in_required(RelationshipOperation.SEND.value)

        precheck = precheck_send(
            self_id=context.user_id,
            target_id=int(user_id),
            friends=self._store.get_all(StoreKind.FRIENDS),
            incoming=self._store.get_all(StoreKind.INCOMING),
            outgoing=self._store.get_all(StoreKind.OUTGOING),
        )
        if not precheck.proceed:
            return SyncResult.short_circuited(precheck.view)

        payload, terminal = await self._confirm(
            context,
            operation=RelationshipOperation.SEND,
            call=lambda: self._gateway.send_friend_request(user_id=int(user_id)),
            failure_message=MSG_SEND_FAILED,
            plan_on_not_found=refetch_plan(RelationshipOperation.SEND),
        )
        if terminal is not None:
            return terminal

        try:
            status = interpret_send_response(payload)  # type: ignore[arg-type]
        except ValueError as exc:
            error = UnknownGatewayError(str(exc))
            logger.warning("send_friend_request returned an unusable status: %s", exc)
            # Outcome unknown: re-read everything a send can touch.
            await self._refresher.refresh(
                context, refetch_plan(RelationshipOperation.SEND, send_status=FriendshipStatus.ACCEPTED)
            )
            if not is_live(context):
                return SyncResult.dropped()
            self._notify(NoticeLevel.ERROR, MSG_SEND_FAILED, operation=RelationshipOperation.SEND.value, error=error)
            return SyncResult.failed(error)

        accepted = status is FriendshipStatus.ACCEPTED
        return await self._settle(
            context,
            refetch_plan(RelationshipOperation.SEND, send_status=status),
            operation=RelationshipOperation.SEND,
            message=MSG_REQUEST_ACCEPTED if accepted else MSG_REQUEST_SENT,
            value=FriendshipStatusView(
                status=status,
                actionable=accepted,
                edge_id=getattr(payload, "request_id", None),
                message=getattr(payload, "message", ""),
                initiator_id=context.user_id,
            ),
        )

    async def accept_friend_request(self, context: Optional[SessionContext], request_id: int) -> SyncResult[None]:
        if context is None:
            return self._sign_in_required(RelationshipOperation.ACCEPT.value)
        plan = refetch_plan(RelationshipOperation.ACCEPT)
        _, terminal = await self._confirm(
            context,
            operation=RelationshipOperation.ACCEPT,
            call=lambda: self._gateway.accept_friend_request(request_id=int(request_id)),
            failure_message=MSG_ACCEPT_FAILED,
            plan_on_not_found=plan,
        )
        if terminal is not None:
            return terminal
        return await self._settle(context, plan, operation=RelationshipOperation.ACCEPT, message=MSG_REQUEST_ACCEPTED)

    async def reject_friend_request(self, context: Optional[SessionContext], request_id: int) -> SyncResult[None]:
        """Reject an incoming request or cancel an outgoing one."""
        if context is None:
            return self._sign_in_required(RelationshipOperation.REJECT.value)
        held_in: Optional[RequestDirection] = locate_request(
            int(request_id),
            incoming=self._store.get_all(StoreKind.INCOMING),
            outgoing=self._store.get_all(StoreKind.OUTGOING),
        )
        plan = refetch_plan(RelationshipOperation.REJECT, held_in=held_in)
        _, terminal = await self._confirm(
            context,
            operation=RelationshipOperation.REJECT,
            call=lambda: self._gateway.reject_friend_request(request_id=int(request_id)),
            failure_message=MSG_REJECT_FAILED,
            plan_on_not_found=plan,
        )
        if terminal is not None:
            return terminal
        return await self._settle(context, plan, operation=RelationshipOperation.REJECT, message=MSG_REQUEST_REJECTED)

    async def remove_friend(self, context: Optional[SessionContext], user_id: int) -> SyncResult[None]:
        if context is None:
            return self._sign_in_required(RelationshipOperation.REMOVE.value)
        plan = refetch_plan(RelationshipOperation.REMOVE)
        _, terminal = await self._confirm(
            context,
            operation=RelationshipOperation.REMOVE,
            call=lambda: self._gateway.remove_friend(user_id=int(user_id)),
            failure_message=MSG_REMOVE_FAILED,
            plan_on_not_found=plan,
        )
        if terminal is not None:
            return terminal
        return await self._settle(context, plan, operation=RelationshipOperation.REMOVE, message=MSG_FRIEND_REMOVED)

    # ---- explicit refreshes (screen entry, pull-to-refresh) ----

    async def _refresh(self, context: Optional[SessionContext], collections) -> SyncResult[None]:
        if context is None:
            return self._sign_in_required("refresh")
        failures = await self._refresher.refresh(context, collections)
        if not is_live(context):
            return SyncResult.dropped()
        if failures:
            return SyncResult.failed(failures[0])
        return SyncResult.applied()

    async def refresh_friends(self, context: Optional[SessionContext]) -> SyncResult[None]:
        return await self._refresh(context, (RelationshipCollection.FRIENDS,))

    async def refresh_incoming(self, context: Optional[SessionContext]) -> SyncResult[None]:
        return await self._refresh(context, (RelationshipCollection.INCOMING,))

    async def refresh_outgoing(self, context: Optional[SessionContext]) -> SyncResult[None]:
        return await self._refresh(context, (RelationshipCollection.OUTGOING,))

    async def refresh_all(self, context: Optional[SessionContext]) -> SyncResult[None]:
        return await self._refresh(context, _ALL_COLLECTIONS)

    async def refresh_pending_count(self, context: Optional[SessionContext]) -> SyncResult[None]:
        return await self._refresh(context, (RelationshipCollection.PENDING_COUNT,))
