"""Current-session resolution hooks.

Session lifecycle lives outside the analytics service; all it needs is the
identifier of the operating cycle that is currently open.  The default
resolver reads ``FARMOPS_SESSION_ID`` and an integration can install its own
resolver through ``configure_session_resolver`` during start-up.
"""
from __future__ import annotations

import os
from typing import Protocol


class SessionResolver(Protocol):
    """Contract for current-session lookups."""

    async def current_session_id(self) -> int | None:
        """Return the identifier of the current session, if any."""


class StaticSessionResolver:
    """Resolver returning a fixed session id."""

    def __init__(self, session_id: int | None) -> None:
        self._session_id = session_id

    async def current_session_id(self) -> int | None:
        return self._session_id


class EnvironmentSessionResolver:
    """Resolver reading ``FARMOPS_SESSION_ID`` on every lookup."""

    async def current_session_id(self) -> int | None:
        raw = (os.getenv("FARMOPS_SESSION_ID") or "").strip()
        if not raw:
            return None
        return int(raw)


_resolver: SessionResolver = EnvironmentSessionResolver()


def configure_session_resolver(resolver: SessionResolver) -> None:
    """Install the resolver used by the analytics services."""

    global _resolver
    _resolver = resolver


def get_session_resolver() -> SessionResolver:
    """Return the currently configured resolver."""

    return _resolver


def reset_session_resolver() -> None:
    configure_session_resolver(EnvironmentSessionResolver())
