"""Relationship state machine for a pair of users.

Pure logic: legal transitions, local send prechecks, interpretation of
gateway responses and the fixed operation -> refetch table. The remote store
stays the source of truth; the checks here only avoid redundant calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from domain.social.friendship import (
    FriendProfile,
    FriendRequest,
    FriendshipEdge,
    FriendshipStatus,
    FriendshipStatusView,
    RequestDirection,
    SendRequestResult,
)

_S = FriendshipStatus

# `rejected` ends one attempt; either side may start a fresh one afterwards.
TRANSITIONS: dict[FriendshipStatus, frozenset[FriendshipStatus]] = {
    _S.NONE: frozenset({_S.PENDING}),
    _S.PENDING: frozenset({_S.ACCEPTED, _S.REJECTED}),
    _S.ACCEPTED: frozenset({_S.NONE}),
    _S.REJECTED: frozenset({_S.PENDING}),
}


class RelationshipOperation(str, Enum):
    SEND = "send"
    ACCEPT = "accept"
    REJECT = "reject"
    REMOVE = "remove"


class RelationshipCollection(str, Enum):
    FRIENDS = "friends"
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    PENDING_COUNT = "pending_count"


_C = RelationshipCollection


class UnexpectedSendStatusError(ValueError):
    """The gateway reported a send outcome other than pending/accepted."""


def can_transition(current: FriendshipStatus, target: FriendshipStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


@dataclass(frozen=True)
class SendPrecheck:
    proceed: bool
    # Populated when the call is short-circuited locally.
    view: Optional[FriendshipStatusView] = None


def precheck_send(
    *,
    self_id: int,
    target_id: int,
    friends: Iterable[FriendProfile],
    incoming: Iterable[FriendRequest],
    outgoing: Iterable[FriendRequest],
) -> SendPrecheck:
    """Decide whether `send_friend_request(target_id)` needs a network call.

    An incoming pending request from the target is not
    short-circuited: sending back collapses the pair into `accepted`
    server-side.
    """
    _ = incoming
    if int(target_id) == int(self_id):
        return SendPrecheck(
            proceed=False,
            view=FriendshipStatusView(status=_S.NONE, actionable=False, message="own profile"),
        )

    for friend in friends:
        if friend.id == target_id:
            return SendPrecheck(
                proceed=False,
                view=FriendshipStatusView(
                    status=_S.ACCEPTED,
                    actionable=True,
                    edge_id=friend.friendship_id,
                    message="already friends",
                ),
            )

    for request in outgoing:
        if request.counterpart_id == target_id:
            return SendPrecheck(
                proceed=False,
                view=FriendshipStatusView(
                    status=_S.PENDING,
                    actionable=False,
                    edge_id=request.id,
                    message="friend request already sent",
                    initiator_id=self_id,
                ),
            )

    return SendPrecheck(proceed=True)


def interpret_send_response(result: SendRequestResult) -> FriendshipStatus:
    status = FriendshipStatus(result.status)
    if status not in (_S.PENDING, _S.ACCEPTED):
        raise UnexpectedSendStatusError(f"unexpected send status: {status.value}")
    return status


def locate_request(
    request_id: int,
    *,
    incoming: Iterable[FriendRequest],
    outgoing: Iterable[FriendRequest],
) -> Optional[RequestDirection]:
    if any(r.id == request_id for r in incoming):
        return RequestDirection.INCOMING
    if any(r.id == request_id for r in outgoing):
        return RequestDirection.OUTGOING
    return None


def refetch_plan(
    operation: RelationshipOperation,
    *,
    send_status: Optional[FriendshipStatus] = None,
    held_in: Optional[RequestDirection] = None,
) -> tuple[RelationshipCollection, ...]:
    """Collections to re-read after a confirmed relationship mutation."""
    op = RelationshipOperation(operation)
    if op is RelationshipOperation.SEND:
        if send_status is _S.ACCEPTED:
            return (_C.OUTGOING, _C.INCOMING, _C.FRIENDS, _C.PENDING_COUNT)
        return (_C.OUTGOING,)
    if op is RelationshipOperation.ACCEPT:
        return (_C.INCOMING, _C.FRIENDS, _C.PENDING_COUNT)
    if op is RelationshipOperation.REJECT:
        if held_in is RequestDirection.INCOMING:
            return (_C.INCOMING, _C.PENDING_COUNT)
        if held_in is RequestDirection.OUTGOING:
            return (_C.OUTGOING, _C.PENDING_COUNT)
        return (_C.INCOMING, _C.OUTGOING, _C.PENDING_COUNT)
    return (_C.FRIENDS,)


def describe_status(self_id: int, edge: Optional[FriendshipEdge]) -> FriendshipStatusView:
    """Status of the pair plus whether the current user can act on it."""
    if edge is None:
        return FriendshipStatusView(status=_S.NONE, actionable=True, message="no relationship")

    sent_by_self = edge.initiator == self_id
    status = edge.status
    if status is _S.PENDING:
        actionable = not sent_by_self
        message = "friend request sent" if sent_by_self else "friend request awaiting your answer"
    elif status is _S.ACCEPTED:
        actionable = True
        message = "friends"
    elif status is _S.REJECTED:
        # The rejected sender may try again; the one who rejected has nothing to do.
        actionable = sent_by_self
        message = "your friend request was rejected" if sent_by_self else "friend request rejected"
    else:
        actionable = True
        message = "no relationship"

    return FriendshipStatusView(
        status=status,
        actionable=actionable,
        edge_id=edge.id,
        message=message,
        initiator_id=edge.initiator,
    )
