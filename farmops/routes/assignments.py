from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from farmops.application import get_assignment_analytics
from farmops.routes.common import query_options, respond

router = APIRouter(prefix="/analytics/assignments", tags=["assignments"])


@router.get("/overview")
async def assignment_overview(request: Request) -> JSONResponse:
    service = get_assignment_analytics()
    return respond(await service.overview(query_options(request)))


@router.get("/trend")
async def assignment_trend(request: Request) -> JSONResponse:
    service = get_assignment_analytics()
    return respond(await service.trend(query_options(request)))


@router.get("/luwang-summary")
async def luwang_summary(request: Request) -> JSONResponse:
    service = get_assignment_analytics()
    return respond(await service.luwang_summary(query_options(request)))


@router.get("/completion-rate")
async def completion_rate(request: Request) -> JSONResponse:
    service = get_assignment_analytics()
    return respond(await service.completion_rate(query_options(request)))


@router.get("/pitak-utilization")
async def pitak_utilization(request: Request) -> JSONResponse:
    service = get_assignment_analytics()
    return respond(await service.pitak_utilization(query_options(request)))
