from __future__ import annotations

import logging
from typing import Optional

from application.ports.gateway_errors import GatewayError
from application.ports.remote_gateway_port import RemoteGatewayPort
from application.sync.refresher import CollectionRefresher
from application.sync.results import SyncResult
from application.sync.session import SessionContext, is_live
from domain.social import FriendshipStatus, FriendshipStatusView, RelationshipCollection

logger = logging.getLogger(__name__)


class FriendshipStatusService:
    """Read-only status lookups and the pending-request badge.

    Status checks never consult the cached collections: profile pages may ask
    about users that are in none of them yet.
    """

    def __init__(self, *, gateway: RemoteGatewayPort, refresher: CollectionRefresher) -> None:
        self._gateway = gateway
        self._refresher = refresher

    async def check_friendship_status(
        self,
        context: Optional[SessionContext],
        other_user_id: int,
    ) -> FriendshipStatusView:
        if context is None:
            return FriendshipStatusView(status=FriendshipStatus.NONE, actionable=False, message="not signed in")
        if int(other_user_id) == int(context.user_id):
            return FriendshipStatusView(status=FriendshipStatus.NONE, actionable=False, message="own profile")
        try:
            return await self._gateway.get_friendship_status(user_id=int(other_user_id))
        except GatewayError as exc:
            logger.warning("get_friendship_status failed (user_id=%s): %s", other_user_id, exc)
            return FriendshipStatusView(
                status=FriendshipStatus.NONE,
                actionable=False,
                message="status unavailable",
                error=exc,
            )

    async def refresh_pending_count(self, context: Optional[SessionContext]) -> SyncResult[None]:
        if context is None:
            return SyncResult.dropped()
        failures = await self._refresher.refresh(context, (RelationshipCollection.PENDING_COUNT,))
        if not is_live(context):
            return SyncResult.dropped()
        if failures:
            return SyncResult.failed(failures[0])
        return SyncResult.applied()
