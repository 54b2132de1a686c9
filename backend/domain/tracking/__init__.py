from domain.tracking.projection import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_MODE,
    TAB_ALL,
    ProjectedView,
    SortMode,
    ViewQuery,
    clamp_page,
    filter_items,
    page_count,
    paginate,
    parse_sort_mode,
    project,
    sort_items,
    status_counts,
    tracked_refs,
)
from domain.tracking.tracked_item import (
    CatalogEntry,
    TrackedItem,
    TrackedItemDraft,
    TrackedItemPatch,
    TrackedItemValidationError,
    WatchStatus,
)

__all__ = [
    "CatalogEntry",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_SORT_MODE",
    "ProjectedView",
    "SortMode",
    "TAB_ALL",
    "TrackedItem",
    "TrackedItemDraft",
    "TrackedItemPatch",
    "TrackedItemValidationError",
    "ViewQuery",
    "WatchStatus",
    "clamp_page",
    "filter_items",
    "page_count",
    "paginate",
    "parse_sort_mode",
    "project",
    "sort_items",
    "status_counts",
    "tracked_refs",
]
