"""Generic async repository plus the store-error translation shared by all repositories."""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.core.exceptions import StoreError
from staffing_api.db.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def store_operation(message: str):
    """Translate SQLAlchemy failures raised by a repository coroutine into StoreError."""

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any):
            try:
                return await fn(*args, **kwargs)
            except SQLAlchemyError as exc:
                logger.error("%s: %s", message, exc)
                raise StoreError(message) from exc

        return wrapper

    return decorator


@store_operation("Failed to save changes")
async def commit(session: AsyncSession) -> None:
    """Commit the session; commit-time failures surface as StoreError."""
    await session.commit()


def dialect_insert(session: AsyncSession, table: Any):
    """Return a dialect INSERT supporting ON CONFLICT for the session's engine."""
    dialect = session.get_bind().dialect.name
    factory = _DIALECT_INSERTS.get(dialect)
    if factory is None:
        raise StoreError(f"Upsert is not supported on the '{dialect}' dialect")
    return factory(table)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository.

    Rows are never hard-deleted through this class; join relations that do
    need deletes expose them explicitly in their own repository.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _base_query(self):
        return select(self.model)

    def _insert(self):
        return dialect_insert(self._session, self.model.__table__)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @store_operation("Failed to fetch record")
    async def get_by_id(self, entity_id: str) -> ModelT | None:
        result = await self._session.execute(
            self._base_query()
            .where(self.model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @store_operation("Failed to update record")
    async def update(self, entity_id: str, **kwargs: Any) -> ModelT | None:
        kwargs.pop("id", None)
        if "updated_at" not in kwargs and hasattr(self.model, "updated_at"):
            kwargs["updated_at"] = datetime.now(timezone.utc)

        await self._session.execute(
            update(self.model)
            .where(self.model.id == entity_id)
            .values(**kwargs)
        )
        await self._session.flush()
        return await self.get_by_id(entity_id)
