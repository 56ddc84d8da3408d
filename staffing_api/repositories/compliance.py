"""Compliance status repository keyed by (agency, compliance type)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update

from staffing_api.domain.compliance import AgencyCompliance
from staffing_api.domain.mixins import new_id
from staffing_api.repositories.base import BaseRepository, store_operation


class ComplianceRepository(BaseRepository[AgencyCompliance]):
    model = AgencyCompliance

    @store_operation("Failed to fetch compliance record")
    async def get(self, agency_id: str, compliance_type: str) -> AgencyCompliance | None:
        result = await self._session.execute(
            self._base_query()
            .where(AgencyCompliance.agency_id == agency_id)
            .where(AgencyCompliance.compliance_type == compliance_type)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @store_operation("Failed to fetch compliance data")
    async def list_for_agency(self, agency_id: str) -> list[AgencyCompliance]:
        result = await self._session.execute(
            self._base_query()
            .where(AgencyCompliance.agency_id == agency_id)
            .order_by(AgencyCompliance.compliance_type)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @store_operation("Failed to update compliance record")
    async def upsert(
        self, agency_id: str, compliance_type: str, **values: Any
    ) -> AgencyCompliance:
        """Insert or update the single row for the pair; only *values* are overwritten."""
        now = datetime.now(timezone.utc)
        row = {
            "id": new_id(),
            "agency_id": agency_id,
            "compliance_type": compliance_type,
            "created_at": now,
            "updated_at": now,
            **values,
        }
        stmt = self._insert().values(row)
        stmt = stmt.on_conflict_do_update(
            index_elements=["agency_id", "compliance_type"],
            set_={**values, "updated_at": now},
        )
        await self._session.execute(stmt)
        await self._session.flush()
        return await self.get(agency_id, compliance_type)  # type: ignore[return-value]

    @store_operation("Failed to update compliance record")
    async def update_pair(
        self, agency_id: str, compliance_type: str, **values: Any
    ) -> AgencyCompliance | None:
        values["updated_at"] = datetime.now(timezone.utc)
        await self._session.execute(
            update(AgencyCompliance)
            .where(AgencyCompliance.agency_id == agency_id)
            .where(AgencyCompliance.compliance_type == compliance_type)
            .values(**values)
        )
        await self._session.flush()
        return await self.get(agency_id, compliance_type)
