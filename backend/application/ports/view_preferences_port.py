from __future__ import annotations

from typing import Protocol

from domain.tracking import SortMode


class ViewPreferencesPort(Protocol):
    """Presentation-owned persistence for the selected sort mode."""

    def load_sort_mode(self) -> SortMode:
        ...

    def save_sort_mode(self, mode: SortMode) -> None:
        ...
