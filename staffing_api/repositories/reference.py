"""Repositories for trade/region lookups and the agency join relations over them.

A relation is described by its join model and the join column pointing at the
reference table, so one membership repository serves both trades and regions.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.domain.mixins import new_id
from staffing_api.domain.reference import AgencyRegion, AgencyTrade, Region, Trade
from staffing_api.repositories.base import BaseRepository, dialect_insert, store_operation

RefT = TypeVar("RefT", Trade, Region)


class ReferenceRepository(BaseRepository[RefT], Generic[RefT]):
    """Read-only access to a lookup table."""

    @store_operation("Failed to fetch reference rows")
    async def find_by_ids(self, ids: Iterable[str]) -> list[RefT]:
        ids = list(ids)
        if not ids:
            return []
        result = await self._session.execute(
            self._base_query().where(self.model.id.in_(ids)).order_by(self.model.name)
        )
        return list(result.scalars().all())


class TradeRepository(ReferenceRepository[Trade]):
    model = Trade


class RegionRepository(ReferenceRepository[Region]):
    model = Region


class MembershipRepository:
    """Join-row access for one agency relation (agency_trades / agency_regions)."""

    def __init__(self, session: AsyncSession, join_model: type, reference_column: str):
        self._session = session
        self._model = join_model
        self._column_name = reference_column
        self._column = getattr(join_model, reference_column)

    @store_operation("Failed to fetch current memberships")
    async def list_reference_ids(self, agency_id: str) -> set[str]:
        result = await self._session.execute(
            select(self._column).where(self._model.agency_id == agency_id)
        )
        return set(result.scalars().all())

    @store_operation("Failed to insert/update memberships")
    async def upsert_many(self, agency_id: str, reference_ids: Iterable[str]) -> None:
        """Insert one row per id; pairs that already exist are left untouched."""
        now = datetime.now(timezone.utc)
        rows = [
            {
                "id": new_id(),
                "agency_id": agency_id,
                self._column_name: ref_id,
                "created_at": now,
                "updated_at": now,
            }
            for ref_id in sorted(set(reference_ids))
        ]
        if not rows:
            return
        stmt = dialect_insert(self._session, self._model.__table__).values(rows)
        stmt = stmt.on_conflict_do_nothing(index_elements=["agency_id", self._column_name])
        await self._session.execute(stmt)
        await self._session.flush()

    @store_operation("Failed to delete orphaned memberships")
    async def delete_many(self, agency_id: str, reference_ids: Iterable[str]) -> int:
        reference_ids = list(reference_ids)
        if not reference_ids:
            return 0
        result = await self._session.execute(
            delete(self._model)
            .where(self._model.agency_id == agency_id)
            .where(self._column.in_(reference_ids))
        )
        await self._session.flush()
        return result.rowcount


def trade_memberships(session: AsyncSession) -> MembershipRepository:
    return MembershipRepository(session, AgencyTrade, "trade_id")


def region_memberships(session: AsyncSession) -> MembershipRepository:
    return MembershipRepository(session, AgencyRegion, "region_id")

