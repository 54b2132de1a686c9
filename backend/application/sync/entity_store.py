"""Canonical in-memory collections for the signed-in user.

Tracked items plus the three materialized friendship collections and the
pending-count scalar. Mutations are all-or-nothing: the new state is built
first and swapped in, then subscribers are notified synchronously.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


class StoreKind(str, Enum):
    TRACKED_ITEMS = "tracked_items"
    FRIENDS = "friends"
    INCOMING = "incoming"
    OUTGOING = "outgoing"


PENDING_COUNT = "pending_count"
_SCALAR_DEFAULTS: dict[str, Any] = {PENDING_COUNT: 0}


class StoreAction(str, Enum):
    UPSERT = "upsert"
    REMOVE = "remove"
    REPLACE_ALL = "replace_all"
    REKEY = "rekey"
    SET_SCALAR = "set_scalar"
    CLEAR = "clear"


@dataclass(frozen=True)
class StoreChange:
    kind: str
    action: StoreAction
    entity_id: Any = None
    version: int = 0


Subscriber = Callable[[StoreChange], None]


def _entity_id(entity: Any) -> Any:
    entity_id = getattr(entity, "id", None)
    if entity_id is None:
        raise ValueError(f"entity has no id: {entity!r}")
    return entity_id


class EntityStore:
    def __init__(self) -> None:
        self._collections: dict[StoreKind, dict[Any, Any]] = {kind: {} for kind in StoreKind}
        self._scalars: dict[str, Any] = dict(_SCALAR_DEFAULTS)
        self._subscribers: list[Subscriber] = []
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def _bucket(self, kind: StoreKind | str) -> dict[Any, Any]:
        return self._collections[StoreKind(kind)]

    # ---- reads ----

    def get_all(self, kind: StoreKind | str) -> list[Any]:
        return list(self._bucket(kind).values())

    def get(self, kind: StoreKind | str, entity_id: Any) -> Optional[Any]:
        return self._bucket(kind).get(entity_id)

    def get_scalar(self, name: str, default: Any = None) -> Any:
        return self._scalars.get(name, default)

    # ---- writes ----

    def upsert(self, kind: StoreKind | str, entity: Any) -> None:
        """Insert or replace by id; a replaced entity keeps its position."""
        bucket = self._bucket(kind)
        entity_id = _entity_id(entity)
        bucket[entity_id] = entity
        self._commit(StoreKind(kind).value, StoreAction.UPSERT, entity_id)

    def remove_by_id(self, kind: StoreKind | str, entity_id: Any) -> Optional[Any]:
        bucket = self._bucket(kind)
        if entity_id not in bucket:
            return None
        removed = bucket.pop(entity_id)
        self._commit(StoreKind(kind).value, StoreAction.REMOVE, entity_id)
        return removed

    def replace_all(self, kind: StoreKind | str, entities: Iterable[Any]) -> None:
        store_kind = StoreKind(kind)
        # Build completely before swapping so a bad entity leaves the old state intact.
        fresh: dict[Any, Any] = {}
        for entity in entities:
            fresh[_entity_id(entity)] = entity
        self._collections[store_kind] = fresh
        self._commit(store_kind.value, StoreAction.REPLACE_ALL)

    def rekey(self, kind: StoreKind | str, old_id: Any, entity: Any) -> bool:
        """Swap the entity stored under `old_id` for `entity` (new id), same position."""
        store_kind = StoreKind(kind)
        bucket = self._collections[store_kind]
        if old_id not in bucket:
            return False
        new_id = _entity_id(entity)
        fresh: dict[Any, Any] = {}
        for key, value in bucket.items():
            if key == old_id:
                fresh[new_id] = entity
            elif key != new_id:
                fresh[key] = value
        self._collections[store_kind] = fresh
        self._commit(store_kind.value, StoreAction.REKEY, new_id)
        return True

    def set_scalar(self, name: str, value: Any) -> None:
        self._scalars[name] = value
        self._commit(name, StoreAction.SET_SCALAR)

    def clear(self) -> None:
        self._collections = {kind: {} for kind in StoreKind}
        self._scalars = dict(_SCALAR_DEFAULTS)
        self._commit("*", StoreAction.CLEAR)

    # ---- subscriptions ----

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    def _commit(self, kind: str, action: StoreAction, entity_id: Any = None) -> None:
        self._version += 1
        change = StoreChange(kind=kind, action=action, entity_id=entity_id, version=self._version)
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                # The mutation stands; remaining subscribers still run.
                logger.exception("store subscriber failed (kind=%s action=%s)", kind, action.value)
