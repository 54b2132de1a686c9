from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class WatchStatus(str, Enum):
    WATCHLIST = "watchlist"
    WATCHING = "watching"
    WATCHED = "watched"


class TrackedItemValidationError(ValueError):
    """Raised for drafts/patches that must never reach the network."""


USER_RATING_MIN = 0.0
USER_RATING_MAX = 10.0


def parse_status(value: object) -> WatchStatus:
    if isinstance(value, WatchStatus):
        return value
    try:
        return WatchStatus(str(value))
    except ValueError as exc:
        raise TrackedItemValidationError(f"invalid status: {value!r}") from exc


@dataclass(frozen=True)
class TrackedItem:
    """A catalog entry on the signed-in user's personal list."""

    id: int
    title: str
    status: WatchStatus = WatchStatus.WATCHLIST
    # Idempotency key from the remote catalog (IMDb id); absent for manual items.
    external_ref: Optional[str] = None
    poster_url: Optional[str] = None
    external_rating: Optional[float] = None
    user_rating: float = 0.0
    added_at: Optional[datetime] = None


@dataclass(frozen=True)
class TrackedItemDraft:
    title: str
    external_ref: Optional[str] = None
    poster_url: Optional[str] = None
    external_rating: Optional[float] = None
    status: WatchStatus = WatchStatus.WATCHLIST

    def validated(self) -> "TrackedItemDraft":
        title = (self.title or "").strip()
        if not title:
            raise TrackedItemValidationError("title is required")
        rating = self.external_rating
        if rating is not None:
            try:
                rating = float(rating)
            except (TypeError, ValueError) as exc:
                raise TrackedItemValidationError(f"invalid external_rating: {self.external_rating!r}") from exc
            if not math.isfinite(rating):
                raise TrackedItemValidationError("external_rating must be a finite number")
        ref = (self.external_ref or "").strip() or None
        return replace(
            self,
            title=title,
            external_ref=ref,
            external_rating=rating,
            status=parse_status(self.status),
        )

    def to_provisional(self, *, item_id: int, added_at: datetime) -> TrackedItem:
        return TrackedItem(
            id=item_id,
            title=self.title,
            status=self.status,
            external_ref=self.external_ref,
            poster_url=self.poster_url,
            external_rating=self.external_rating,
            user_rating=0.0,
            added_at=added_at,
        )


@dataclass(frozen=True)
class TrackedItemPatch:
    """Partial update; only fields that are not None are applied."""

    status: Optional[WatchStatus] = None
    user_rating: Optional[float] = None

    def validated(self) -> "TrackedItemPatch":
        if self.status is None and self.user_rating is None:
            raise TrackedItemValidationError("patch must set status or user_rating")
        status = parse_status(self.status) if self.status is not None else None
        rating = self.user_rating
        if rating is not None:
            try:
                rating = float(rating)
            except (TypeError, ValueError) as exc:
                raise TrackedItemValidationError(f"invalid user_rating: {self.user_rating!r}") from exc
            if not (USER_RATING_MIN <= rating <= USER_RATING_MAX):
                raise TrackedItemValidationError(
                    f"user_rating must be within [{USER_RATING_MIN:g}, {USER_RATING_MAX:g}]"
                )
        return TrackedItemPatch(status=status, user_rating=rating)

    def apply_to(self, item: TrackedItem) -> TrackedItem:
        changes: dict[str, object] = {}
        if self.status is not None:
            changes["status"] = self.status
        if self.user_rating is not None:
            changes["user_rating"] = self.user_rating
        return replace(item, **changes)

    def as_fields(self) -> dict[str, object]:
        fields: dict[str, object] = {}
        if self.status is not None:
            fields["status"] = self.status.value
        if self.user_rating is not None:
            fields["user_rating"] = self.user_rating
        return fields


@dataclass(frozen=True)
class CatalogEntry:
    """Remote catalog search hit (not yet tracked)."""

    external_ref: str
    title: str
    poster_url: Optional[str] = None
    external_rating: Optional[float] = None
    year: Optional[str] = None
    already_tracked: bool = False

    def to_draft(self) -> TrackedItemDraft:
        return TrackedItemDraft(
            title=self.title,
            external_ref=self.external_ref,
            poster_url=self.poster_url,
            external_rating=self.external_rating,
        )
