"""Uniform response envelope returned by every analytics view."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class AnalyticsResponse(BaseModel):
    status: bool
    message: str
    data: Any = None
    meta: dict[str, Any] = Field(default_factory=dict)
    error_kind: str | None = Field(default=None, exclude=True)

    @property
    def errors(self) -> list[str]:
        if isinstance(self.data, dict):
            return list(self.data.get("errors") or [])
        return []


def ok(message: str, data: Any, **meta: Any) -> AnalyticsResponse:
    return AnalyticsResponse(status=True, message=message, data=data, meta=meta)


def fail(message: str, errors: list[str], *, kind: str = "error", **meta: Any) -> AnalyticsResponse:
    """Failure envelope; ``kind`` is ``validation``, ``not_found`` or ``error``."""

    return AnalyticsResponse(status=False, message=message, data={"errors": errors}, meta=meta, error_kind=kind)
