"""Database session management."""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Tuple, List

import sqlalchemy
from sqlalchemy import exc
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from forumdb.core.config import Settings
from forumdb.core.errors import (
    BaseServiceError,
    ConflictError,
    QueryFailedError,
    QueryTimeoutError,
    StoreUnavailableError,
)
from forumdb.core.logging import get_logger
from forumdb.db.query.render import render

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base ORM model."""
    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the shared async engine (and its connection pool)."""
    connect_args = {}
    pool_kwargs = {}
    if settings.is_sqlite:
        connect_args = {
            "check_same_thread": False,
            "timeout": 30,  # seconds to wait on a locked database
        }
    else:
        # Pool settings only for non-SQLite databases
        pool_kwargs = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_pre_ping": True,
        }

    return create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        connect_args=connect_args,
        **pool_kwargs,
    )


class Database:
    """
    Data-access context shared by every repository.

    Owns the engine and its pool, hands out request-scoped sessions and
    transactions, and runs each statement under the configured timeout,
    translating driver failures into the service error hierarchy.
    """

    def __init__(self, engine: AsyncEngine, query_timeout: float = 15.0) -> None:
        self.engine = engine
        self.query_timeout = query_timeout
        self._sessionmaker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(create_engine_from_settings(settings), query_timeout=settings.query_timeout)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Acquire a pooled session; it is always closed on exit."""
        async with self._sessionmaker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self, operation: str = "transaction") -> AsyncIterator[AsyncSession]:
        """Run the enclosed statements in one transaction (commit or rollback)."""
        async with self._sessionmaker() as session:
            try:
                yield session
                await self._run(session.commit(), operation=f"{operation}.commit")
            except Exception:
                await session.rollback()
                logger.debug("transaction_rolled_back", operation=operation)
                raise

    async def execute(
        self,
        session: AsyncSession,
        statement: Any,
        params: Any = None,
        *,
        operation: str,
    ) -> Result:
        """Execute one statement bounded by ``query_timeout``."""
        return await self._run(session.execute(statement, params), operation=operation, statement=statement)

    async def flush(self, session: AsyncSession, *, operation: str) -> None:
        """Flush pending ORM objects under the same timeout and error handling."""
        await self._run(session.flush(), operation=operation)

    async def _run(self, awaitable, *, operation: str, statement: Any = None):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.query_timeout)
        except asyncio.TimeoutError as e:
            text, params = self.describe(statement)
            raise QueryTimeoutError(
                operation, self.query_timeout, statement=text, params=params, original_error=e
            ) from e
        except BaseServiceError:
            raise
        except exc.IntegrityError as e:
            raise ConflictError(operation, statement=e.statement, params=e.params, original_error=e) from e
        except (exc.InterfaceError, exc.DisconnectionError, exc.TimeoutError) as e:
            text, params = self.describe(statement)
            raise StoreUnavailableError(operation, statement=text, params=params, original_error=e) from e
        except exc.DBAPIError as e:
            if e.connection_invalidated:
                raise StoreUnavailableError(
                    operation, statement=e.statement, params=e.params, original_error=e
                ) from e
            raise QueryFailedError(operation, statement=e.statement, params=e.params, original_error=e) from e
        except exc.SQLAlchemyError as e:
            text, params = self.describe(statement)
            raise QueryFailedError(operation, statement=text, params=params, original_error=e) from e

    def describe(self, statement: Any) -> Tuple[Optional[str], List[Any]]:
        """SQL text and ordered parameters of a statement, for diagnostics."""
        if statement is None:
            return None, []
        if isinstance(statement, str):
            return statement, []
        try:
            return render(statement, self.engine.dialect)
        except exc.SQLAlchemyError:
            return str(statement), []

    async def create_all(self) -> None:
        """Create all tables (development and tests; not a migration tool)."""
        import forumdb.db.models  # noqa: F401  registers every table on Base.metadata

        url = self.engine.url
        async with self.engine.begin() as conn:
            if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
                await conn.execute(sqlalchemy.text("PRAGMA journal_mode=WAL"))
                await conn.execute(sqlalchemy.text("PRAGMA synchronous=NORMAL"))
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close pooled connections."""
        await self.engine.dispose()
