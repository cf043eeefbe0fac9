"""Trading API endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from gobs.dependencies import Services, get_current_user_id, get_services
from gobs.trading.executor import DEFAULT_HISTORY_LIMIT
from gobs.trading.schemas import TradeHistoryResponse, TradeRequest, TradeResponse, TradeStatsResponse

router = APIRouter(prefix="/api/v1/trades", tags=["Trading"])


@router.post("/buy", response_model=TradeResponse, status_code=201)
async def buy(
    body: TradeRequest,
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> TradeResponse:
    result = await services.executor.execute_buy(user_id, body.symbol, body.amount_usd)
    return TradeResponse.from_result(result)


@router.post("/sell", response_model=TradeResponse, status_code=201)
async def sell(
    body: TradeRequest,
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> TradeResponse:
    result = await services.executor.execute_sell(user_id, body.symbol, body.amount_usd)
    return TradeResponse.from_result(result)


@router.get("", response_model=TradeHistoryResponse)
async def trade_history(
    symbol: str | None = Query(None),
    type: str | None = Query(None),  # noqa: A002
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    limit: int = Query(DEFAULT_HISTORY_LIMIT),
    offset: int = Query(0),
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> TradeHistoryResponse:
    history = await services.executor.get_trade_history(
        user_id,
        symbol=symbol,
        trade_type=type,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return TradeHistoryResponse.from_history(history)


@router.get("/stats", response_model=TradeStatsResponse)
async def trade_stats(
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> TradeStatsResponse:
    return TradeStatsResponse.from_stats(await services.executor.get_trade_stats(user_id))
