from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from farmops.application import get_live_dashboard
from farmops.routes.common import query_options, respond

router = APIRouter(prefix="/analytics/dashboard", tags=["dashboard"])


@router.get("/live")
async def live_dashboard(request: Request) -> JSONResponse:
    service = get_live_dashboard()
    return respond(await service.live_dashboard(query_options(request)))


@router.get("/today")
async def today_stats(request: Request) -> JSONResponse:
    service = get_live_dashboard()
    return respond(await service.today_stats(query_options(request)))


@router.get("/alerts")
async def system_alerts(request: Request) -> JSONResponse:
    service = get_live_dashboard()
    return respond(await service.system_alerts(query_options(request)))


@router.get("/assignments")
async def realtime_assignments(request: Request) -> JSONResponse:
    service = get_live_dashboard()
    return respond(await service.realtime_assignments(query_options(request)))


@router.get("/payments")
async def recent_payments(request: Request) -> JSONResponse:
    service = get_live_dashboard()
    return respond(await service.recent_payments(query_options(request)))


@router.get("/debts")
async def pending_debts(request: Request) -> JSONResponse:
    service = get_live_dashboard()
    return respond(await service.pending_debts(query_options(request)))
