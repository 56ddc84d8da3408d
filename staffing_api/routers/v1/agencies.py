"""Admin agency router — partial profile edits.

Pattern:
  1. Declare a router with prefix and tags
  2. Inject DB session + admin profile via Depends
  3. Instantiate the service with the session
  4. Call service methods and wrap result in response envelope
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.core.security import require_admin
from staffing_api.db.base import get_db
from staffing_api.domain.profile import Profile
from staffing_api.schemas.agency import AgencyOut, AgencyUpdate, RegionOut, TradeOut
from staffing_api.services.agency import AgencyAdminService

router = APIRouter(prefix="/admin/agencies", tags=["Admin Agencies"])

_RELATION_SCHEMAS = {"trades": TradeOut, "regions": RegionOut}


@router.patch("/{agency_id}", response_model=None)
async def update_agency(
    agency_id: str,
    body: AgencyUpdate,
    admin: Profile = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    """Edit scalar fields and/or the trade and region sets of an agency.

    ``trades`` / ``regions`` appear in the response only when the matching
    id list was sent.
    """
    result = await AgencyAdminService(session).update_agency(agency_id, body, admin.id)

    data: dict = {"agency": AgencyOut.model_validate(result.agency).model_dump(mode="json")}
    for name, members in result.relations().items():
        schema = _RELATION_SCHEMAS[name]
        data[name] = [schema.model_validate(m).model_dump(mode="json") for m in members]
    return {"data": data, "message": "Agency updated successfully"}
