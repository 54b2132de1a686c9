from __future__ import annotations

import logging
from typing import Callable, Optional

from application.ports.notifier_port import Notice, NoticeLevel, NotifierPort

logger = logging.getLogger(__name__)


class LoggingNotifier(NotifierPort):
    """Writes notices to the log; optionally forwards them to a UI sink."""

    def __init__(self, *, sink: Optional[Callable[[Notice], None]] = None) -> None:
        self._sink = sink

    def notify(self, notice: Notice) -> None:
        if notice.level is NoticeLevel.ERROR:
            logger.warning(
                "[%s] %s (op=%s, kind=%s)",
                "dialog" if notice.blocking else "toast",
                notice.message,
                notice.operation,
                notice.error_kind,
            )
        else:
            logger.info("[toast] %s (op=%s)", notice.message, notice.operation)
        if self._sink is not None:
            self._sink(notice)


class RecordingNotifier(NotifierPort):
    """Keeps every notice in order (dev tooling and tests)."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    @property
    def blocking(self) -> list[Notice]:
        return [n for n in self.notices if n.blocking]

    def clear(self) -> None:
        self.notices.clear()
