from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from farmops.application import get_pitak_productivity
from farmops.routes.common import query_options, respond

router = APIRouter(prefix="/analytics/pitaks", tags=["pitaks"])


@router.get("/overview")
async def productivity_overview(request: Request) -> JSONResponse:
    service = get_pitak_productivity()
    return respond(await service.productivity_overview(query_options(request)))


@router.get("/compare")
async def compare_pitaks(request: Request) -> JSONResponse:
    """Compare the pitaks listed in ``pitakIds`` (comma separated)."""
    service = get_pitak_productivity()
    return respond(await service.compare(query_options(request)))


@router.get("/{pitak_id}")
async def productivity_details(pitak_id: int, request: Request) -> JSONResponse:
    service = get_pitak_productivity()
    return respond(await service.productivity_details(query_options(request, pitakId=pitak_id)))


@router.get("/{pitak_id}/timeline")
async def production_timeline(pitak_id: int, request: Request) -> JSONResponse:
    service = get_pitak_productivity()
    return respond(await service.production_timeline(query_options(request, pitakId=pitak_id)))


@router.get("/{pitak_id}/workers")
async def worker_productivity(pitak_id: int, request: Request) -> JSONResponse:
    service = get_pitak_productivity()
    return respond(await service.worker_productivity(query_options(request, pitakId=pitak_id)))


@router.get("/{pitak_id}/efficiency")
async def efficiency_analysis(pitak_id: int, request: Request) -> JSONResponse:
    service = get_pitak_productivity()
    return respond(await service.efficiency_analysis(query_options(request, pitakId=pitak_id)))
