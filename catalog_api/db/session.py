"""Database engine and session management."""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from catalog_api.core.config import settings
from catalog_api.core.logging_config import get_logger
from catalog_api.db.base import Base


logger = get_logger(__name__)


def build_engine(database_url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """Create an async engine with SQLite-specific connect args when needed."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_async_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.is_debug_mode)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_models(target: Optional[AsyncEngine] = None) -> None:
    """Create any missing tables."""
    from catalog_api.db import models  # noqa: F401  (register tables)

    target = target or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_schema_initialized", tables=sorted(Base.metadata.tables))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
