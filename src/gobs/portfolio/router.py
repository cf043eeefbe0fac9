"""Portfolio API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from gobs.dependencies import Services, get_current_user_id, get_services
from gobs.portfolio.schemas import (
    PortfolioHistoryResponse,
    PortfolioResponse,
    PortfolioSummaryResponse,
    SnapshotResponse,
)

router = APIRouter(prefix="/api/v1/portfolio", tags=["Portfolio"])


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> PortfolioResponse:
    valuation = await services.valuation.get_portfolio_with_values(user_id)
    return PortfolioResponse.from_valuation(valuation)


@router.get("/summary", response_model=PortfolioSummaryResponse)
async def get_summary(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> PortfolioSummaryResponse:
    summary = await services.valuation.get_portfolio_summary(user_id)
    return PortfolioSummaryResponse.from_summary(summary)


@router.get("/history", response_model=PortfolioHistoryResponse)
async def get_history(
    days: int | None = Query(None),
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> PortfolioHistoryResponse:
    """Daily snapshots, oldest first. ``days`` is clamped to the configured maximum."""
    history = await services.valuation.get_portfolio_history(user_id, days)
    return PortfolioHistoryResponse(
        days=history.days,
        snapshots=[SnapshotResponse.from_record(s) for s in history.snapshots],
    )


@router.post("/snapshot", response_model=SnapshotResponse, status_code=201)
async def create_snapshot(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> SnapshotResponse:
    record = await services.valuation.create_portfolio_snapshot(user_id)
    return SnapshotResponse.from_record(record)
