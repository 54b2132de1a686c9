"""In-process authoritative store for dev/tests when no API is configured.

`InMemorySyncBackend` holds every user's movies and all friendship edges; each
signed-in client talks to it through `backend.for_user(user_id)`, so two
clients can exercise the mutual-request and refetch paths against one state.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from application.ports.gateway_errors import Conflict, GatewayError, NotFound, UnknownGatewayError
from application.ports.remote_gateway_port import RemoteGatewayPort
from domain.social import (
    FriendProfile,
    FriendRequest,
    FriendshipEdge,
    FriendshipStatus,
    FriendshipStatusView,
    RequestDirection,
    SendRequestResult,
    UserSummary,
    describe_status,
)
from domain.tracking import CatalogEntry, TrackedItem, TrackedItemDraft, TrackedItemPatch

logger = logging.getLogger(__name__)


class InMemorySyncBackend:
    def __init__(self, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._users: Dict[int, Tuple[UserSummary, datetime]] = {}
        self._movies: Dict[int, Dict[int, TrackedItem]] = {}
        self._edges: Dict[int, FriendshipEdge] = {}
        self._catalog: List[CatalogEntry] = []
        self._movie_ids = itertools.count(1)
        self._edge_ids = itertools.count(1)

    def register_user(self, user_id: int, username: str, avatar_url: Optional[str] = None) -> UserSummary:
        user = UserSummary(id=int(user_id), username=username, avatar_url=avatar_url)
        self._users[user.id] = (user, self._clock())
        self._movies.setdefault(user.id, {})
        return user

    def add_catalog_entry(self, entry: CatalogEntry) -> None:
        self._catalog.append(entry)

    def for_user(self, user_id: int) -> "InMemoryRemoteGateway":
        if int(user_id) not in self._users:
            self.register_user(int(user_id), f"user{int(user_id)}")
        return InMemoryRemoteGateway(backend=self, user_id=int(user_id))

    # ---- lookups shared by the per-user views ----

    def now(self) -> datetime:
        return self._clock()

    def user(self, user_id: int) -> Optional[UserSummary]:
        row = self._users.get(int(user_id))
        return row[0] if row else None

    def user_created_at(self, user_id: int) -> Optional[datetime]:
        row = self._users.get(int(user_id))
        return row[1] if row else None

    def movies_of(self, user_id: int) -> Dict[int, TrackedItem]:
        return self._movies.setdefault(int(user_id), {})

    def next_movie_id(self) -> int:
        return next(self._movie_ids)

    def edge_between(self, a: int, b: int) -> Optional[FriendshipEdge]:
        for edge in self._edges.values():
            if edge.involves(a) and edge.involves(b):
                return edge
        return None

    def edge(self, edge_id: int) -> Optional[FriendshipEdge]:
        return self._edges.get(int(edge_id))

    def edges_of(self, user_id: int) -> List[FriendshipEdge]:
        return sorted((e for e in self._edges.values() if e.involves(user_id)), key=lambda e: e.id)

    def create_edge(self, sender: int, receiver: int) -> FriendshipEdge:
        now = self._clock()
        edge = FriendshipEdge(
            id=next(self._edge_ids),
            user_a=sender,
            user_b=receiver,
            initiator=sender,
            status=FriendshipStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self._edges[edge.id] = edge
        return edge

    def save_edge(self, edge: FriendshipEdge) -> FriendshipEdge:
        edge = replace(edge, updated_at=self._clock())
        self._edges[edge.id] = edge
        return edge

    def delete_edge(self, edge_id: int) -> None:
        self._edges.pop(int(edge_id), None)

    def search(self, query: str) -> List[CatalogEntry]:
        q = (query or "").strip().lower()
        return [e for e in self._catalog if q and q in e.title.lower()]


class InMemoryRemoteGateway(RemoteGatewayPort):
    """One user's view of `InMemorySyncBackend`."""

    def __init__(self, *, backend: InMemorySyncBackend, user_id: int) -> None:
        self._backend = backend
        self._user_id = int(user_id)
        self._failures: Dict[str, List[GatewayError]] = {}

    @property
    def user_id(self) -> int:
        return self._user_id

    def fail_next(self, operation: str, error: GatewayError) -> None:
        """Make the next call of `operation` (a method name) raise `error`."""
        self._failures.setdefault(operation, []).append(error)

    def _check(self, operation: str) -> None:
        queued = self._failures.get(operation)
        if queued:
            error = queued.pop(0)
            logger.debug("injected failure for %s: %s", operation, error.kind)
            raise error

    # ---- tracked items ----

    async def list_tracked_items(self) -> list[TrackedItem]:
        self._check("list_tracked_items")
        return list(self._backend.movies_of(self._user_id).values())

    async def create_tracked_item(self, *, draft: TrackedItemDraft) -> TrackedItem:
        self._check("create_tracked_item")
        draft = draft.validated()
        item = draft.to_provisional(item_id=self._backend.next_movie_id(), added_at=self._backend.now())
        self._backend.movies_of(self._user_id)[item.id] = item
        return item

    async def update_tracked_item(self, *, item_id: int, patch: TrackedItemPatch) -> Optional[TrackedItem]:
        self._check("update_tracked_item")
        movies = self._backend.movies_of(self._user_id)
        current = movies.get(int(item_id))
        if current is None:
            raise NotFound(f"movie {item_id} not found", status_code=404)
        updated = patch.validated().apply_to(current)
        movies[updated.id] = updated
        return updated

    async def delete_tracked_item(self, *, item_id: int) -> None:
        self._check("delete_tracked_item")
        if self._backend.movies_of(self._user_id).pop(int(item_id), None) is None:
            raise NotFound(f"movie {item_id} not found", status_code=404)

    async def search_catalog(self, *, query: str) -> list[CatalogEntry]:
        self._check("search_catalog")
        return self._backend.search(query)

    # ---- friendships ----

    def _summary(self, user_id: int) -> UserSummary:
        return self._backend.user(user_id) or UserSummary(id=user_id, username="")

    async def list_friends(self) -> list[FriendProfile]:
        self._check("list_friends")
        friends: list[FriendProfile] = []
        for edge in self._backend.edges_of(self._user_id):
            if edge.status is not FriendshipStatus.ACCEPTED:
                continue
            other = self._summary(edge.other(self._user_id))
            friends.append(
                FriendProfile(
                    id=other.id,
                    username=other.username,
                    avatar_url=other.avatar_url,
                    created_at=self._backend.user_created_at(other.id),
                    friendship_id=edge.id,
                    friendship_date=edge.updated_at,
                )
            )
        return friends

    def _requests(self, direction: RequestDirection) -> list[FriendRequest]:
        requests: list[FriendRequest] = []
        for edge in self._backend.edges_of(self._user_id):
            if edge.status is not FriendshipStatus.PENDING:
                continue
            sent_by_self = edge.initiator == self._user_id
            if sent_by_self != (direction is RequestDirection.OUTGOING):
                continue
            requests.append(
                FriendRequest(
                    id=edge.id,
                    direction=direction,
                    created_at=edge.created_at,
                    counterpart=self._summary(edge.other(self._user_id)),
                )
            )
        return requests

    async def list_incoming(self) -> list[FriendRequest]:
        self._check("list_incoming")
        return self._requests(RequestDirection.INCOMING)

    async def list_outgoing(self) -> list[FriendRequest]:
        self._check("list_outgoing")
        return self._requests(RequestDirection.OUTGOING)

    async def get_pending_count(self) -> int:
        self._check("get_pending_count")
        return len(self._requests(RequestDirection.INCOMING))

    async def send_friend_request(self, *, user_id: int) -> SendRequestResult:
        self._check("send_friend_request")
        target = int(user_id)
        if target == self._user_id:
            raise UnknownGatewayError("cannot send a friend request to yourself", status_code=400)
        if self._backend.user(target) is None:
            raise NotFound(f"user {target} not found", status_code=404)

        edge = self._backend.edge_between(self._user_id, target)
        if edge is None:
            edge = self._backend.create_edge(self._user_id, target)
            return SendRequestResult(status=FriendshipStatus.PENDING, request_id=edge.id, message="friend request sent")
        if edge.status is FriendshipStatus.PENDING:
            if edge.initiator == target:
                # Both sides asked: the pending request is accepted.
                edge = self._backend.save_edge(replace(edge, status=FriendshipStatus.ACCEPTED))
                return SendRequestResult(
                    status=FriendshipStatus.ACCEPTED,
                    request_id=edge.id,
                    message="friend request accepted automatically",
                )
            raise Conflict("a friend request has already been sent to this user", status_code=409)
        if edge.status is FriendshipStatus.ACCEPTED:
            raise Conflict("you are already friends with this user", status_code=409)
        # Rejected: the new sender starts a fresh attempt on the same edge.
        edge = self._backend.save_edge(
            replace(
                edge,
                user_a=self._user_id,
                user_b=target,
                initiator=self._user_id,
                status=FriendshipStatus.PENDING,
            )
        )
        return SendRequestResult(status=FriendshipStatus.PENDING, request_id=edge.id, message="friend request renewed")

    def _pending_edge(self, request_id: int) -> FriendshipEdge:
        edge = self._backend.edge(request_id)
        if edge is None or edge.status is not FriendshipStatus.PENDING or not edge.involves(self._user_id):
            raise NotFound(f"friend request {request_id} not found", status_code=404)
        return edge

    async def accept_friend_request(self, *, request_id: int) -> None:
        self._check("accept_friend_request")
        edge = self._pending_edge(int(request_id))
        if edge.receiver != self._user_id:
            raise NotFound(f"friend request {request_id} not found", status_code=404)
        self._backend.save_edge(replace(edge, status=FriendshipStatus.ACCEPTED))

    async def reject_friend_request(self, *, request_id: int) -> None:
        self._check("reject_friend_request")
        edge = self._pending_edge(int(request_id))
        self._backend.save_edge(replace(edge, status=FriendshipStatus.REJECTED))

    async def remove_friend(self, *, user_id: int) -> None:
        self._check("remove_friend")
        edge = self._backend.edge_between(self._user_id, int(user_id))
        if edge is None or edge.status is not FriendshipStatus.ACCEPTED:
            raise NotFound(f"no friendship with user {user_id}", status_code=404)
        self._backend.delete_edge(edge.id)

    async def get_friendship_status(self, *, user_id: int) -> FriendshipStatusView:
        self._check("get_friendship_status")
        if int(user_id) == self._user_id:
            raise UnknownGatewayError("cannot check friendship status with yourself", status_code=400)
        return describe_status(self._user_id, self._backend.edge_between(self._user_id, int(user_id)))

    async def close(self) -> None:
        return None
