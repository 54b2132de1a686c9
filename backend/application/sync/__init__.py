from application.sync.entity_store import PENDING_COUNT, EntityStore, StoreAction, StoreChange, StoreKind
from application.sync.friendship_status import FriendshipStatusService
from application.sync.refresher import (
    PENDING_COUNT_DERIVED,
    PENDING_COUNT_REMOTE,
    CollectionRefresher,
)
from application.sync.relationships import RelationshipService
from application.sync.results import SyncResult, SyncStatus
from application.sync.session import Liveness, SessionContext
from application.sync.tracked_items import TrackedItemService

__all__ = [
    "CollectionRefresher",
    "EntityStore",
    "FriendshipStatusService",
    "Liveness",
    "PENDING_COUNT",
    "PENDING_COUNT_DERIVED",
    "PENDING_COUNT_REMOTE",
    "RelationshipService",
    "SessionContext",
    "StoreAction",
    "StoreChange",
    "StoreKind",
    "SyncResult",
    "SyncStatus",
    "TrackedItemService",
]
