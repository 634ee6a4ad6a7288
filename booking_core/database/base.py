"""
Database Base Module

Declarative base, timestamp mixin and the engine/session owner shared by the
SQL repositories.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, AsyncGenerator, Dict, Optional

from sqlalchemy import DateTime, String, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..core.logging import get_logger

if TYPE_CHECKING:
    from ..config import Settings

logger = get_logger(__name__)

ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


# =============================================================================
# Base Declarative Class
# =============================================================================


class Base(DeclarativeBase):
    """Base class for all booking tables."""

    # Domain objects generate their own prefixed IDs
    id: Mapped[str] = mapped_column(String(36), primary_key=True)


class TimestampMixin:
    """Row creation and last-change times, copied from the domain object."""

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


# =============================================================================
# Database Manager
# =============================================================================


class DatabaseManager:
    """
    Owns the async engine and hands out short-lived sessions.

    Every repository call opens its own session, so a booking write and the
    read that precedes it never share a transaction. Serialization of writes
    is the job of the booking locks, not the database.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        echo: bool = False,
    ):
        """
        Args:
            database_url: Connection URL; sync driver prefixes are swapped
                for their async counterparts
            pool_size: Connection pool size (ignored for SQLite)
            max_overflow: Connections beyond pool_size (ignored for SQLite)
            pool_timeout: Seconds to wait for a pooled connection
            pool_recycle: Recycle connections after this many seconds
            echo: Log every SQL statement
        """
        for sync_prefix, async_prefix in ASYNC_DRIVERS.items():
            if database_url.startswith(sync_prefix):
                database_url = async_prefix + database_url[len(sync_prefix):]
                break

        self._database_url = database_url
        self._pool_options: Dict[str, Any] = {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_timeout": pool_timeout,
            "pool_recycle": pool_recycle,
        }
        self._echo = echo

        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DatabaseManager":
        return cls(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            echo=settings.debug,
        )

    @property
    def url(self) -> str:
        return self._database_url

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            options = {} if self.is_sqlite else self._pool_options
            self._engine = create_async_engine(self._database_url, echo=self._echo, **options)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Open a session that commits on exit and rolls back on any exception.

        Usage:
            async with db.session() as session:
                row = await session.get(AppointmentModel, appointment_id)
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create the booking tables if they do not exist."""
        # Registers the mapped classes on Base.metadata
        from . import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_ready", url=self._safe_url())

    async def health_check(self) -> bool:
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("database_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def _safe_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)


__all__ = [
    "Base",
    "TimestampMixin",
    "DatabaseManager",
]
