"""Append-only repository for the agency profile edit trail."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.domain.audit import AgencyProfileEdit
from staffing_api.repositories.base import store_operation


class ProfileEditRepository:
    """Rows are only ever inserted; there is no update or delete."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @store_operation("Failed to append profile edit")
    async def append(
        self,
        *,
        agency_id: str,
        edited_by: str,
        field_name: str,
        old_value: list[str],
        new_value: list[str],
    ) -> AgencyProfileEdit:
        entry = AgencyProfileEdit(
            agency_id=agency_id,
            edited_by=edited_by,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
        )
        self._session.add(entry)
        await self._session.flush()
        return entry

    @store_operation("Failed to fetch profile edits")
    async def list_for_agency(
        self, agency_id: str, field_name: str | None = None
    ) -> list[AgencyProfileEdit]:
        q = select(AgencyProfileEdit).where(AgencyProfileEdit.agency_id == agency_id)
        if field_name:
            q = q.where(AgencyProfileEdit.field_name == field_name)
        result = await self._session.execute(q.order_by(AgencyProfileEdit.created_at))
        return list(result.scalars().all())
