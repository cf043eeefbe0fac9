"""Market data endpoints."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from gobs.dependencies import Services, get_services
from gobs.market.symbols import CryptoSymbol

router = APIRouter(prefix="/api/v1/crypto", tags=["Market"])


class CryptoPriceResponse(BaseModel):
    symbol: str
    name: str
    price: float
    change_24h: float
    sparkline: list[float]


class CryptoPricesResponse(BaseModel):
    prices: list[CryptoPriceResponse]


@router.get("/prices", response_model=CryptoPricesResponse)
async def list_prices(services: Services = Depends(get_services)) -> CryptoPricesResponse:
    """Current price, 24h change and recent closes for every supported symbol."""
    settings = services.settings
    quotes = await services.oracle.get_prices()
    symbols = list(CryptoSymbol)
    sparklines = await asyncio.gather(
        *(
            services.oracle.get_sparkline(symbol, settings.sparkline_interval, settings.sparkline_points)
            for symbol in symbols
        )
    )
    return CryptoPricesResponse(
        prices=[
            CryptoPriceResponse(
                symbol=symbol.value,
                name=symbol.display_name,
                price=quotes[symbol].price,
                change_24h=quotes[symbol].change_24h,
                sparkline=sparkline,
            )
            for symbol, sparkline in zip(symbols, sparklines)
        ]
    )
