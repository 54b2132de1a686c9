"""Derived (filtered/sorted/paginated) views over the tracked-items collection.

Everything here is pure: inputs are never mutated and results are recomputed
from the current store snapshot on every change.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from domain.tracking.tracked_item import TrackedItem, WatchStatus

DEFAULT_PAGE_SIZE = 9
TAB_ALL = "all"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SortMode(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    RATING_HIGH = "rating_high"
    RATING_LOW = "rating_low"
    USER_RATING_HIGH = "user_rating_high"
    USER_RATING_LOW = "user_rating_low"


DEFAULT_SORT_MODE = SortMode.NEWEST


def parse_sort_mode(value: object, default: SortMode = DEFAULT_SORT_MODE) -> SortMode:
    """Lenient parse used for persisted preferences (unknown -> default)."""
    if isinstance(value, SortMode):
        return value
    try:
        return SortMode(str(value or "").strip().lower())
    except ValueError:
        return default


def _added_at_key(item: TrackedItem) -> datetime:
    ts = item.added_at
    if ts is None:
        return _EPOCH
    # Naive timestamps are treated as UTC so mixed payloads stay comparable.
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def _external_rating_key(item: TrackedItem) -> float:
    return float(item.external_rating or 0.0)


def _user_rating_key(item: TrackedItem) -> float:
    return float(item.user_rating or 0.0)


_SORT_KEYS: dict[SortMode, tuple[Callable[[TrackedItem], object], bool]] = {
    SortMode.NEWEST: (_added_at_key, True),
    SortMode.OLDEST: (_added_at_key, False),
    SortMode.RATING_HIGH: (_external_rating_key, True),
    SortMode.RATING_LOW: (_external_rating_key, False),
    SortMode.USER_RATING_HIGH: (_user_rating_key, True),
    SortMode.USER_RATING_LOW: (_user_rating_key, False),
}


def filter_items(items: Iterable[TrackedItem], *, query: str = "", tab: str = TAB_ALL) -> list[TrackedItem]:
    """Case-insensitive title substring match AND status-tab membership."""
    needle = (query or "").lower()
    tab_value = (tab or TAB_ALL).strip().lower()
    if tab_value != TAB_ALL:
        # Raises ValueError for unknown tabs.
        tab_value = WatchStatus(tab_value).value

    out: list[TrackedItem] = []
    for item in items:
        if needle and needle not in (item.title or "").lower():
            continue
        if tab_value != TAB_ALL and item.status.value != tab_value:
            continue
        out.append(item)
    return out


def sort_items(items: Iterable[TrackedItem], mode: SortMode | str = DEFAULT_SORT_MODE) -> list[TrackedItem]:
    """Stable sort: equal keys keep their collection order in both directions.

    `sorted(..., reverse=True)` preserves the original order of equal elements,
    so descending modes do not flip ties.
    """
    key, descending = _SORT_KEYS[SortMode(mode)]
    return sorted(items, key=key, reverse=descending)


def page_count(total: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(max(int(total), 0) / page_size)


def paginate(items: Sequence[TrackedItem], *, page: int, page_size: int = DEFAULT_PAGE_SIZE) -> list[TrackedItem]:
    """1-indexed page slice. Out-of-range pages yield []; callers clamp."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    if page < 1:
        return []
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def clamp_page(page: int, total_pages: int) -> int:
    """Helper for callers (the presentation layer owns clamping)."""
    if total_pages <= 0:
        return 1
    return min(max(int(page), 1), int(total_pages))


def status_counts(items: Iterable[TrackedItem]) -> dict[str, int]:
    counts = {TAB_ALL: 0, **{s.value: 0 for s in WatchStatus}}
    for item in items:
        counts[TAB_ALL] += 1
        counts[item.status.value] += 1
    return counts


def tracked_refs(items: Iterable[TrackedItem]) -> frozenset[str]:
    return frozenset(i.external_ref for i in items if i.external_ref)


@dataclass(frozen=True)
class ViewQuery:
    query: str = ""
    tab: str = TAB_ALL
    sort_mode: SortMode = DEFAULT_SORT_MODE
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ProjectedView:
    items: tuple[TrackedItem, ...]
    page: int
    page_count: int
    total: int
    counts: dict[str, int]


def project(items: Sequence[TrackedItem], view: Optional[ViewQuery] = None) -> ProjectedView:
    view = view or ViewQuery()
    filtered = filter_items(items, query=view.query, tab=view.tab)
    ordered = sort_items(filtered, view.sort_mode)
    return ProjectedView(
        items=tuple(paginate(ordered, page=view.page, page_size=view.page_size)),
        page=view.page,
        page_count=page_count(len(ordered), view.page_size),
        total=len(ordered),
        counts=status_counts(items),
    )
