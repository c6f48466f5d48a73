from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from farmops.application import get_financial_analytics
from farmops.routes.common import query_options, respond

router = APIRouter(prefix="/analytics/financial", tags=["financial"])


@router.get("/overview")
async def financial_overview(request: Request) -> JSONResponse:
    service = get_financial_analytics()
    return respond(await service.financial_overview(query_options(request)))


@router.get("/revenue-trend")
async def revenue_trend(request: Request) -> JSONResponse:
    service = get_financial_analytics()
    return respond(await service.revenue_trend(query_options(request)))


@router.get("/debt-collection")
async def debt_collection_rate(request: Request) -> JSONResponse:
    service = get_financial_analytics()
    return respond(await service.debt_collection_rate(query_options(request)))


@router.get("/debts")
async def debt_summary(request: Request) -> JSONResponse:
    service = get_financial_analytics()
    return respond(await service.debt_summary(query_options(request)))


@router.get("/payments")
async def payment_summary(request: Request) -> JSONResponse:
    service = get_financial_analytics()
    return respond(await service.payment_summary(query_options(request)))
