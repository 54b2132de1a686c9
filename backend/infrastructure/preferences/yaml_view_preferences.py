from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from application.ports.view_preferences_port import ViewPreferencesPort
from domain.tracking import DEFAULT_SORT_MODE, SortMode, parse_sort_mode

logger = logging.getLogger(__name__)

_SORT_MODE_KEY = "sort_mode"


def _load_document(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return data if isinstance(data, dict) else {}


class YamlViewPreferences(ViewPreferencesPort):
    """Selected sort mode persisted in a small YAML file.

    Unknown or unreadable values fall back to the default mode; other keys in
    the file are preserved on save.
    """

    def __init__(self, path: Path | str, *, default: SortMode = DEFAULT_SORT_MODE) -> None:
        self._path = Path(path).expanduser()
        self._default = default

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, Any]:
        try:
            return _load_document(self._path)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("view preferences unreadable (%s): %s", self._path, exc)
            return {}

    def load_sort_mode(self) -> SortMode:
        return parse_sort_mode(self._read().get(_SORT_MODE_KEY), self._default)

    def save_sort_mode(self, mode: SortMode) -> None:
        document = self._read()
        document[_SORT_MODE_KEY] = SortMode(mode).value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(document, handle, sort_keys=True, allow_unicode=True)


class InMemoryViewPreferences(ViewPreferencesPort):
    def __init__(self, *, default: SortMode = DEFAULT_SORT_MODE) -> None:
        self._mode = default

    def load_sort_mode(self) -> SortMode:
        return self._mode

    def save_sort_mode(self, mode: SortMode) -> None:
        self._mode = SortMode(mode)
