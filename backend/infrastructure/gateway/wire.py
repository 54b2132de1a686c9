"""JSON shapes of the movie/friends REST API.

Field names follow the server's payloads (snake_case for our own rows, the
catalog proxy keeps the upstream `Title`/`imdbID` capitalisation).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.social import (
    FriendProfile,
    FriendRequest,
    FriendshipStatus,
    FriendshipStatusView,
    RequestDirection,
    SendRequestResult,
    UserSummary,
)
from domain.tracking import CatalogEntry, TrackedItem, TrackedItemDraft, WatchStatus


def _optional_float(value: Any) -> Optional[float]:
    # The catalog reports missing ratings as "N/A".
    if value is None or value == "" or value == "N/A":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MovieRow(_Wire):
    id: int
    user_id: Optional[int] = None
    title: str = ""
    imdb_id: Optional[str] = None
    poster: Optional[str] = None
    imdb_rating: Optional[float] = None
    user_rating: float = 0.0
    status: WatchStatus = WatchStatus.WATCHLIST
    created_at: Optional[datetime] = None

    @field_validator("imdb_rating", mode="before")
    @classmethod
    def _parse_imdb_rating(cls, value: Any) -> Optional[float]:
        return _optional_float(value)

    @field_validator("user_rating", mode="before")
    @classmethod
    def _parse_user_rating(cls, value: Any) -> float:
        return _optional_float(value) or 0.0

    def to_domain(self) -> TrackedItem:
        return TrackedItem(
            id=self.id,
            title=self.title,
            status=self.status,
            external_ref=self.imdb_id or None,
            poster_url=self.poster or None,
            external_rating=self.imdb_rating,
            user_rating=self.user_rating,
            added_at=self.created_at,
        )


class MovieCreateBody(_Wire):
    title: str
    imdb_id: Optional[str] = None
    poster: Optional[str] = None
    imdb_rating: Optional[float] = None
    status: WatchStatus = WatchStatus.WATCHLIST

    @classmethod
    def from_draft(cls, draft: TrackedItemDraft) -> "MovieCreateBody":
        return cls(
            title=draft.title,
            imdb_id=draft.external_ref,
            poster=draft.poster_url,
            imdb_rating=draft.external_rating,
            status=draft.status,
        )


class CatalogHit(_Wire):
    title: str = Field(alias="Title")
    imdb_id: str = Field(alias="imdbID")
    poster: Optional[str] = Field(default=None, alias="Poster")
    imdb_rating: Optional[float] = Field(default=None, alias="imdbRating")
    year: Optional[str] = Field(default=None, alias="Year")
    genre: Optional[str] = Field(default=None, alias="Genre")

    @field_validator("imdb_rating", mode="before")
    @classmethod
    def _parse_rating(cls, value: Any) -> Optional[float]:
        return _optional_float(value)

    @field_validator("poster", mode="before")
    @classmethod
    def _parse_poster(cls, value: Any) -> Optional[str]:
        if not value or value == "N/A":
            return None
        return str(value)

    def to_domain(self) -> CatalogEntry:
        return CatalogEntry(
            external_ref=self.imdb_id,
            title=self.title,
            poster_url=self.poster,
            external_rating=self.imdb_rating,
            year=self.year,
        )


class CatalogSearchResponse(_Wire):
    search: list[CatalogHit] = Field(default_factory=list, alias="Search")


class UserRow(_Wire):
    id: int
    username: str = ""
    avatar_url: Optional[str] = None

    def to_domain(self) -> UserSummary:
        return UserSummary(id=self.id, username=self.username, avatar_url=self.avatar_url)


class FriendRow(UserRow):
    created_at: Optional[datetime] = None
    friendship_id: Optional[int] = None
    friendship_date: Optional[datetime] = None

    def to_profile(self) -> FriendProfile:
        return FriendProfile(
            id=self.id,
            username=self.username,
            avatar_url=self.avatar_url,
            created_at=self.created_at,
            friendship_id=self.friendship_id,
            friendship_date=self.friendship_date,
        )


class FriendsResponse(_Wire):
    friends: list[FriendRow] = Field(default_factory=list)


class RequestRow(_Wire):
    id: int
    created_at: Optional[datetime] = None
    sender: Optional[UserRow] = None
    receiver: Optional[UserRow] = None

    def to_domain(self, direction: RequestDirection) -> FriendRequest:
        counterpart = self.sender if direction is RequestDirection.INCOMING else self.receiver
        return FriendRequest(
            id=self.id,
            direction=direction,
            created_at=self.created_at,
            counterpart=counterpart.to_domain() if counterpart is not None else None,
        )


class RequestsResponse(_Wire):
    requests: list[RequestRow] = Field(default_factory=list)


class CountResponse(_Wire):
    count: int = 0


class SendRequestResponse(_Wire):
    message: str = ""
    status: FriendshipStatus
    request_id: Optional[int] = Field(default=None, alias="requestId")

    def to_domain(self) -> SendRequestResult:
        return SendRequestResult(status=self.status, request_id=self.request_id, message=self.message)


class StatusResponse(_Wire):
    status: FriendshipStatus = FriendshipStatus.NONE
    message: str = ""
    actionable: bool = False
    friendship_id: Optional[int] = None
    sender_id: Optional[int] = None
    receiver_id: Optional[int] = None
    updated_at: Optional[datetime] = None

    def to_domain(self) -> FriendshipStatusView:
        return FriendshipStatusView(
            status=self.status,
            actionable=self.actionable,
            edge_id=self.friendship_id,
            message=self.message,
            initiator_id=self.sender_id,
        )


class ErrorBody(_Wire):
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def text(self) -> str:
        return (self.error or self.message or "").strip()


__all__ = [
    "CatalogHit",
    "CatalogSearchResponse",
    "CountResponse",
    "ErrorBody",
    "FriendRow",
    "FriendsResponse",
    "MovieCreateBody",
    "MovieRow",
    "RequestRow",
    "RequestsResponse",
    "SendRequestResponse",
    "StatusResponse",
    "UserRow",
]
