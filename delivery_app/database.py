"""
Record Store

Key-addressed document storage on top of the SQLAlchemy async engine.
One table per collection, one string primary key per table.

The store is an explicitly constructed handle: the application lifespan
builds it from settings and disposes it on shutdown; services receive it
by injection.

Operations:
    - get(model, key) -> record | None
    - put(record) -> record, conditioned on the key not existing yet
    - update(model, key, changes, *conditions) -> updated record
    - scan(model, *criteria) -> list of records
    - transaction() -> StoreSession running all of the above atomically
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional, TypeVar

from sqlalchemy import inspect as sa_inspect, select, text, update
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from delivery_app.errors import (
    ConditionFailedError,
    NotFoundError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound="Base")


# Base class for all our models
class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _primary_key(model: type[Base]):
    return sa_inspect(model).primary_key[0]


class StoreSession:
    """
    Store operations bound to one database transaction.

    Obtained from ``RecordStore.transaction()``; everything done through
    one instance commits or rolls back together.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, model: type[RecordT], key: str) -> Optional[RecordT]:
        """Fetch a record by key, reloading any cached copy."""
        return await self._session.get(model, key, populate_existing=True)

    async def put(self, record: RecordT) -> RecordT:
        """
        Insert a new record.

        Raises:
            ConditionFailedError: A record with the same key already exists
        """
        self._session.add(record)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise ConditionFailedError(
                f"{type(record).__name__} already exists",
                detail=str(e.orig),
            ) from e
        return record

    async def update(
        self,
        model: type[RecordT],
        key: str,
        changes: dict[str, Any],
        *conditions: Any,
    ) -> RecordT:
        """
        Apply attribute changes to one record.

        ``changes`` values may be SQL expressions (``Rider.total_deliveries + 1``),
        evaluated by the database. ``conditions`` are extra WHERE criteria;
        the write happens only if all of them hold.

        Raises:
            NotFoundError: No record has this key
            ConditionFailedError: The record exists but a condition is false
        """
        pk = _primary_key(model)
        stmt = (
            update(model)
            .where(pk == key, *conditions)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount == 0:
            if await self._session.get(model, key) is None:
                raise NotFoundError(f"{model.__name__} not found")
            raise ConditionFailedError(f"{model.__name__} {key} did not match update condition")

        return await self.get(model, key)

    async def scan(
        self,
        model: type[RecordT],
        *criteria: Any,
        order_by: Any = None,
    ) -> list[RecordT]:
        """Full-table scan with optional filter predicates."""
        stmt = select(model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class RecordStore:
    """
    Handle on the record store.

    Example:
        >>> store = RecordStore("sqlite+aiosqlite:///./delivery.db")
        >>> await store.create_schema()
        >>> async with store.transaction() as tx:
        ...     await tx.put(user)
        ...     await tx.put(rider)
        >>> await store.close()
    """

    def __init__(self, database_url: str, echo: bool = False):
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)

        self.database_url = database_url
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Records stay readable after commit
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreSession]:
        """
        Run several store operations atomically.

        Commits when the block exits normally, rolls back on any exception.
        Driver-level connectivity and schema errors surface as
        StoreUnavailableError.
        """
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield StoreSession(session)
        except (OperationalError, InterfaceError, ProgrammingError, OSError) as e:
            logger.error(f"Record store unavailable: {e}")
            raise StoreUnavailableError("Record store unavailable", detail=str(e)) from e

    async def get(self, model: type[RecordT], key: str) -> Optional[RecordT]:
        async with self.transaction() as tx:
            return await tx.get(model, key)

    async def put(self, record: RecordT) -> RecordT:
        async with self.transaction() as tx:
            return await tx.put(record)

    async def update(
        self,
        model: type[RecordT],
        key: str,
        changes: dict[str, Any],
        *conditions: Any,
    ) -> RecordT:
        async with self.transaction() as tx:
            return await tx.update(model, key, changes, *conditions)

    async def scan(self, model: type[RecordT], *criteria: Any, order_by: Any = None) -> list[RecordT]:
        async with self.transaction() as tx:
            return await tx.scan(model, *criteria, order_by=order_by)

    async def create_schema(self) -> None:
        """
        Create all tables.
        Called once at application startup.
        """
        # Models register themselves on Base.metadata at import time
        import delivery_app.models  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (OperationalError, InterfaceError, OSError) as e:
            raise StoreUnavailableError("Could not create store schema", detail=str(e)) from e

    async def ping(self) -> bool:
        """Round-trip a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (OperationalError, InterfaceError, OSError) as e:
            raise StoreUnavailableError("Record store unavailable", detail=str(e)) from e
        return True

    async def close(self) -> None:
        await self.engine.dispose()
