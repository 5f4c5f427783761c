from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool, NullPool
from sqlalchemy import text
from fastapi import Request
from typing import AsyncGenerator, Optional
import logging

from blog_api.config import Settings
from blog_api.db.base import Base

logger = logging.getLogger(__name__)

class Database:
    """Owns the engine and session factory for one process.

    Built by the application factory and disposed on shutdown; handlers
    reach it through the ``get_db`` dependency.
    """

    def __init__(self, url: str, echo: bool = False, pool_size: int = 20, max_overflow: int = 40):
        self.url = url
        self.engine: AsyncEngine = self._create_engine(url, echo, pool_size, max_overflow)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @staticmethod
    def _create_engine(url: str, echo: bool, pool_size: int, max_overflow: int) -> AsyncEngine:
        if "sqlite" in url:
            # A single shared connection keeps in-memory databases alive
            return create_async_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool if ":memory:" in url else NullPool,
            )
        return create_async_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.DEBUG,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
        )

    async def create_all(self) -> None:
        """Create all tables"""
        import blog_api.models  # noqa: F401  registers the mappers
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped")

    async def ping(self) -> bool:
        """Check that the database answers a trivial query"""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return False

    async def close(self) -> None:
        """Close database connections"""
        await self.engine.dispose()
        logger.info("Database connections closed")

async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not configured on this application")
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
