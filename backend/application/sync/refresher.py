from __future__ import annotations

import logging
from typing import Iterable, Optional

from application.ports.gateway_errors import GatewayError
from application.ports.remote_gateway_port import RemoteGatewayPort
from application.sync.entity_store import PENDING_COUNT, EntityStore, StoreKind
from application.sync.session import SessionContext, session_is_live
from domain.social import RelationshipCollection

logger = logging.getLogger(__name__)

PENDING_COUNT_REMOTE = "remote"
PENDING_COUNT_DERIVED = "derived"

_KIND_BY_COLLECTION = {
    RelationshipCollection.FRIENDS: StoreKind.FRIENDS,
    RelationshipCollection.INCOMING: StoreKind.INCOMING,
    RelationshipCollection.OUTGOING: StoreKind.OUTGOING,
}


class CollectionRefresher:
    """Re-reads relationship collections and replaces them wholesale.

    Pending-count source:
    - "remote": the badge is fetched on its own and may drift from |Incoming|.
    - "derived": the badge is always len(Incoming), set on every Incoming replace.
    """

    def __init__(
        self,
        *,
        gateway: RemoteGatewayPort,
        store: EntityStore,
        pending_count_source: str = PENDING_COUNT_REMOTE,
    ) -> None:
        source = (pending_count_source or PENDING_COUNT_REMOTE).strip().lower()
        if source not in (PENDING_COUNT_REMOTE, PENDING_COUNT_DERIVED):
            raise ValueError(
                f"Unsupported pending count source: {pending_count_source!r} (expected remote|derived)"
            )
        self._gateway = gateway
        self._store = store
        self._source = source

    @property
    def pending_count_source(self) -> str:
        return self._source

    def _normalize_plan(self, collections: Iterable[RelationshipCollection]) -> list[RelationshipCollection]:
        plan: list[RelationshipCollection] = []
        for collection in collections:
            collection = RelationshipCollection(collection)
            if collection not in plan:
                plan.append(collection)
        if self._source == PENDING_COUNT_DERIVED and RelationshipCollection.PENDING_COUNT in plan:
            plan.remove(RelationshipCollection.PENDING_COUNT)
            if RelationshipCollection.INCOMING not in plan:
                plan.append(RelationshipCollection.INCOMING)
        return plan

    async def refresh(
        self,
        context: Optional[SessionContext],
        collections: Iterable[RelationshipCollection],
    ) -> list[GatewayError]:
        """Refetch each collection in order; a failed step leaves its collection as is.

        Writes follow the signed-in session, so a revoked UI scope still gets its
        confirmed change reflected in the store.
        """
        failures: list[GatewayError] = []
        for collection in self._normalize_plan(collections):
            if not session_is_live(context):
                break
            try:
                await self._refresh_one(context, collection)
            except GatewayError as exc:
                logger.warning("refetch of %s failed: %s", collection.value, exc)
                failures.append(exc)
        return failures

    async def _refresh_one(self, context: Optional[SessionContext], collection: RelationshipCollection) -> None:
        if collection is RelationshipCollection.PENDING_COUNT:
            count = await self._gateway.get_pending_count()
            if session_is_live(context):
                self._store.set_scalar(PENDING_COUNT, max(0, int(count or 0)))
            return

        if collection is RelationshipCollection.FRIENDS:
            entities = await self._gateway.list_friends()
        elif collection is RelationshipCollection.INCOMING:
            entities = await self._gateway.list_incoming()
        else:
            entities = await self._gateway.list_outgoing()

        if not session_is_live(context):
            logger.debug("dropping %s refetch for a revoked session", collection.value)
            return
        self._store.replace_all(_KIND_BY_COLLECTION[collection], entities)
        if collection is RelationshipCollection.INCOMING and self._source == PENDING_COUNT_DERIVED:
            self._store.set_scalar(PENDING_COUNT, len(entities))
