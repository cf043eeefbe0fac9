"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gobs.accounts.router import router as accounts_router
from gobs.config import Settings, get_settings
from gobs.dependencies import Services, build_services
from gobs.gamification.router import router as gamification_router
from gobs.health.router import router as health_router
from gobs.market.router import router as market_router
from gobs.middleware import setup_middleware
from gobs.portfolio.router import router as portfolio_router
from gobs.quests.router import router as quests_router
from gobs.quests.seed import seed_quests
from gobs.trading.router import router as trading_router

logger = logging.getLogger(__name__)


async def seed_catalog(services: Services) -> None:
    """Seed quest definitions (idempotent)."""
    try:
        async with services.database.unit_of_work() as uow:
            await seed_quests(uow.session)
    except Exception:
        logger.warning("Quest seeding failed (tables may not exist yet)", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    services = build_services(app.state.settings)
    app.state.services = services
    await seed_catalog(services)

    yield

    await services.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="GobsVault API",
        description="Gamified crypto paper-trading backend",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(accounts_router)
    app.include_router(trading_router)
    app.include_router(portfolio_router)
    app.include_router(quests_router)
    app.include_router(gamification_router)
    app.include_router(market_router)

    return app


app = create_app()
