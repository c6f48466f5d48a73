from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from farmops.core.schema import AnalyticsParams


class ValidationError(Exception):
    """Raised when request parameters fail validation."""

    def __init__(self, *errors: str) -> None:
        super().__init__("; ".join(errors) or "invalid parameters")
        self.errors = list(errors) or ["invalid parameters"]


class NotFoundError(Exception):
    """Raised when a referenced worker or pitak does not exist."""


def _describe(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "__root__")
    message = str(error.get("msg") or "invalid value")
    return f"{location}: {message}" if location else message


def parse_params(params: Mapping[str, Any] | AnalyticsParams | None) -> AnalyticsParams:
    if isinstance(params, AnalyticsParams):
        return params
    try:
        return AnalyticsParams.model_validate(dict(params or {}))
    except PydanticValidationError as exc:
        raise ValidationError(*(_describe(error) for error in exc.errors())) from exc


def require_pitak_id(params: AnalyticsParams) -> int:
    if params.pitak_id is None:
        raise ValidationError("pitakId is required")
    return params.pitak_id


def require_pitak_ids(params: AnalyticsParams) -> list[int]:
    if not params.pitak_ids:
        raise ValidationError("At least one pitakId is required")
    return list(dict.fromkeys(params.pitak_ids))


def status_filter(params: AnalyticsParams, allowed: tuple[str, ...], default: str | None = None) -> str | None:
    status = params.status if params.status is not None else default
    if status is not None and status not in allowed:
        raise ValidationError(f"status must be one of {', '.join(allowed)}")
    return status
