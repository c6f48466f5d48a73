"""Helpers shared by the analytics routers."""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from farmops.core.envelope import AnalyticsResponse

STATUS_CODES = {"validation": 400, "not_found": 404, "error": 500}


def query_options(request: Request, **overrides: Any) -> dict[str, Any]:
    """Collect view options from the query string.

    ``startDate``/``endDate`` are folded into ``dateRange``; path parameters
    passed as ``overrides`` win over the query string.
    """

    options: dict[str, Any] = dict(request.query_params)
    start = options.pop("startDate", None)
    end = options.pop("endDate", None)
    if start or end:
        options["dateRange"] = {"startDate": start, "endDate": end}
    options.update({key: value for key, value in overrides.items() if value is not None})
    return options


def respond(response: AnalyticsResponse) -> JSONResponse:
    """Render the envelope; failures carry a 4xx/5xx status, amounts become JSON numbers."""
    status_code = STATUS_CODES.get(response.error_kind or "", 200)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(response.model_dump()))
