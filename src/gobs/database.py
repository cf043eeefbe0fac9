"""Async SQLAlchemy engine, session factory and unit of work."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gobs.db.base import Base
from gobs.db.stores import (
    PortfolioStore,
    QuestCatalogStore,
    SnapshotStore,
    TradeStore,
    UserStore,
    XPLedgerStore,
)


class UnitOfWork:
    """Stores bound to one session and one transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserStore(session)
        self.portfolios = PortfolioStore(session)
        self.trades = TradeStore(session)
        self.snapshots = SnapshotStore(session)
        self.quests = QuestCatalogStore(session)
        self.xp = XPLedgerStore(session)


class Database:
    """Owns the engine. Callers get atomic scopes through ``unit_of_work()``."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        kwargs: dict[str, Any] = {"echo": echo}
        if not url.startswith("sqlite"):
            kwargs.update(
                pool_size=20,
                max_overflow=10,
                pool_pre_ping=True,
                connect_args={"statement_cache_size": 0},
            )
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[UnitOfWork]:
        """Commit on normal exit, roll back on any exception."""
        async with self.session_factory() as session, session.begin():
            yield UnitOfWork(session)

    async def create_all(self) -> None:
        """Create tables from ORM metadata (tests and local development)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()
