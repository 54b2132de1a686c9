from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


class Liveness:
    """Revocable token telling late gateway results whether anyone still cares."""

    def __init__(self, parent: Optional["Liveness"] = None) -> None:
        self._parent = parent
        self._revoked = False

    @property
    def alive(self) -> bool:
        if self._revoked:
            return False
        return self._parent.alive if self._parent is not None else True

    @property
    def root(self) -> "Liveness":
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    def revoke(self) -> None:
        self._revoked = True


@dataclass(frozen=True)
class SessionContext:
    """Signed-in identity passed explicitly into every core operation.

    `is_live` follows this context's own scope and gates notices and results.
    `session_is_live` follows the signed-in session that owns the store and
    gates store repair (rollback, rekey, refetch).
    """

    user_id: int
    liveness: Liveness = field(default_factory=Liveness, compare=False)

    @property
    def is_live(self) -> bool:
        return self.liveness.alive

    @property
    def session_is_live(self) -> bool:
        return self.liveness.root.alive

    def child(self) -> "SessionContext":
        """Context for one UI scope; revoking it leaves the session alive."""
        return SessionContext(user_id=self.user_id, liveness=Liveness(parent=self.liveness))


def is_live(context: Optional[SessionContext]) -> bool:
    return context is not None and context.is_live


def session_is_live(context: Optional[SessionContext]) -> bool:
    return context is not None and context.session_is_live
