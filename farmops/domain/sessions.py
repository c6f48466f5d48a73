"""Session scoping value object."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SessionScope:
    """The session filter applied to every query of one request.

    ``session_id`` is ``None`` for an unscoped request, in which case every
    record is visible regardless of the session it belongs to.
    """

    session_id: int | None = None

    @classmethod
    def unscoped(cls) -> "SessionScope":
        return cls(None)

    @property
    def scoped(self) -> bool:
        return self.session_id is not None

    def admits(self, session_id: int | None) -> bool:
        return self.session_id is None or self.session_id == session_id

    def as_meta(self) -> dict[str, object]:
        return {"session_id": self.session_id, "current_session": self.scoped}
