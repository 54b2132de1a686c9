from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    # Blocking notices interrupt the user (tracked-item rollbacks only);
    # everything else is a transient toast.
    blocking: bool = False
    operation: Optional[str] = None
    error_kind: Optional[str] = None


class NotifierPort(Protocol):
    def notify(self, notice: Notice) -> None:
        ...
