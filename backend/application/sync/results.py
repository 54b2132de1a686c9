from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SyncStatus(str, Enum):
    APPLIED = "applied"
    # Answered locally without a gateway call.
    SHORT_CIRCUITED = "short_circuited"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"
    # Local validation failed; nothing reached the network.
    REJECTED = "rejected"
    # The caller's context died while the call was in flight.
    DROPPED = "dropped"


@dataclass(frozen=True)
class SyncResult(Generic[T]):
    status: SyncStatus
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status in (SyncStatus.APPLIED, SyncStatus.SHORT_CIRCUITED)

    @classmethod
    def applied(cls, value: Optional[T] = None) -> "SyncResult[T]":
        return cls(status=SyncStatus.APPLIED, value=value)

    @classmethod
    def short_circuited(cls, value: Optional[T] = None) -> "SyncResult[T]":
        return cls(status=SyncStatus.SHORT_CIRCUITED, value=value)

    @classmethod
    def rolled_back(cls, error: Exception, value: Optional[T] = None) -> "SyncResult[T]":
        return cls(status=SyncStatus.ROLLED_BACK, value=value, error=error)

    @classmethod
    def failed(cls, error: Exception) -> "SyncResult[T]":
        return cls(status=SyncStatus.FAILED, error=error)

    @classmethod
    def rejected(cls, error: Exception) -> "SyncResult[T]":
        return cls(status=SyncStatus.REJECTED, error=error)

    @classmethod
    def dropped(cls) -> "SyncResult[T]":
        return cls(status=SyncStatus.DROPPED)
