from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class FriendshipStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RequestDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass(frozen=True)
class UserSummary:
    id: int
    username: str
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class FriendProfile:
    """An accepted edge, seen from the signed-in user (either direction)."""

    id: int
    username: str
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    friendship_id: Optional[int] = None
    friendship_date: Optional[datetime] = None


@dataclass(frozen=True)
class FriendRequest:
    """A pending edge; `counterpart` is the sender (incoming) or receiver (outgoing)."""

    id: int
    direction: RequestDirection
    created_at: Optional[datetime] = None
    counterpart: Optional[UserSummary] = None

    @property
    def counterpart_id(self) -> Optional[int]:
        return self.counterpart.id if self.counterpart is not None else None


@dataclass(frozen=True)
class FriendshipEdge:
    """One relation per unordered pair; `initiator` is whoever sent the live attempt."""

    id: int
    user_a: int
    user_b: int
    initiator: int
    status: FriendshipStatus = FriendshipStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def receiver(self) -> int:
        return self.user_b if self.initiator == self.user_a else self.user_a

    def involves(self, user_id: int) -> bool:
        return user_id in (self.user_a, self.user_b)

    def other(self, user_id: int) -> int:
        return self.user_b if user_id == self.user_a else self.user_a


@dataclass(frozen=True)
class FriendshipStatusView:
    status: FriendshipStatus = FriendshipStatus.NONE
    actionable: bool = False
    edge_id: Optional[int] = None
    message: str = ""
    initiator_id: Optional[int] = None
    # Set when the status could not be fetched; the view then degrades to none.
    error: Optional[Exception] = None


@dataclass(frozen=True)
class SendRequestResult:
    status: FriendshipStatus
    request_id: Optional[int] = None
    message: str = ""
