"""Database management for the texture provider."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from texture_provider.models.records import Base

logger = logging.getLogger(__name__)

DBSession = AsyncSession

__all__ = ["Base", "DBSession", "DatabaseManager"]


class DatabaseManager:
    """
    Manages the asynchronous engine and sessions for the texture database.

    One instance is created at startup and shared by every in-flight request;
    the engine's connection pool does the synchronisation.
    """

    def __init__(self, database_url: str):
        """
        Initialize the DatabaseManager.

        Args:
            database_url: An async SQLAlchemy URL, e.g. ``postgresql+psycopg://...``
                or ``sqlite+aiosqlite:///...``.

        """
        self.database_url = database_url
        self._engine: AsyncEngine | None = None
        self._session_local: async_sessionmaker[AsyncSession] | None = None
        self._initialize_engine()

    def _initialize_engine(self) -> None:
        """Initialize the async engine and session maker."""
        if not self.database_url:
            raise ValueError("DATABASE_URL not set. Cannot initialize database.")

        self._engine = create_async_engine(self.database_url)
        self._session_local = async_sessionmaker(bind=self._engine, expire_on_commit=False)
        logger.info("Initialized async database engine for (%s)", self._engine.url.render_as_string(hide_password=True))

    @property
    def engine(self) -> AsyncEngine:
        """Return the SQLAlchemy AsyncEngine."""
        if self._engine is None:
            raise RuntimeError("Async Database engine has not been initialized.")
        return self._engine

    def get_db_session(self) -> AsyncSession:
        """
        Provide a new asynchronous database session.

        The caller is responsible for closing the session, typically using `async with`.
        """
        if self._session_local is None:
            raise RuntimeError("AsyncSessionLocal has not been initialized and cannot create a session.")
        return self._session_local()

    async def create_db_and_tables(self) -> None:
        """Create all tables (no-op for tables that already exist)."""
        logger.info("Attempting to create database tables...")
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created (or verified existing)")
        except Exception:
            logger.exception("Error creating tables.")
            raise

    async def dispose(self) -> None:
        """Close every pooled connection."""
        if self._engine is not None:
            await self._engine.dispose()
