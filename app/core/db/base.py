from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from fastapi import Request

from app.core.errors import PipelineError

from typing import AsyncIterator, Optional
import logging


Base = declarative_base()


logger = logging.getLogger(__name__)


class Database:
    """Engine and session factory for one process.

    Built once in the application lifespan and reached by handlers through
    ``get_session``; the engine is created lazily on first use.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            kwargs = {"echo": self.echo}
            if not self.url.startswith("sqlite"):
                kwargs["pool_pre_ping"] = True
            self._engine = create_async_engine(self.url, **kwargs)
        return self._engine

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                self.engine,
                expire_on_commit=False,
            )
        return self._session_maker

    async def create_schema(self) -> None:
        # Import models so Base metadata is aware of them
        import app.core.db.schemas  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield session
            await session.commit()
        except PipelineError as e:
            await session.rollback()
            if e.status_code >= 500:
                logger.error(f"Session rolled back due to error: {e}")
            else:
                logger.debug(f"Session rolled back: {e}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back due to error: {e}")
            raise
