"""Agency admin service — partial updates of an agency's profile.

A single PATCH may carry scalar fields, a desired set of trades, a desired set
of regions, or any combination.  Both relation sets are admitted before any
write so an unknown region id never leaves the trades half-applied.

Rule: No FastAPI here. Raise AppException subclasses for business rule violations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.core.exceptions import NotFoundError, ValidationError
from staffing_api.domain.agency import Agency
from staffing_api.domain.reference import Region, Trade
from staffing_api.repositories.agency import AgencyRepository
from staffing_api.repositories.base import commit
from staffing_api.schemas.agency import AgencyUpdate
from staffing_api.services.reconciler import RelationReconciler
from staffing_api.services.steps import Step, StepRunner, StepWarning

logger = logging.getLogger(__name__)

RELATION_FIELDS: dict[str, str] = {
    "trade_ids": "trades",
    "region_ids": "regions",
}


@dataclass
class AgencyUpdateResult:
    agency: Agency
    trades: list[Trade] | None = None
    regions: list[Region] | None = None
    warnings: list[StepWarning] = field(default_factory=list)

    def relations(self) -> dict[str, list[Any]]:
        """Only the relations that were part of the request."""
        out: dict[str, list[Any]] = {}
        if self.trades is not None:
            out["trades"] = self.trades
        if self.regions is not None:
            out["regions"] = self.regions
        return out


class AgencyAdminService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = AgencyRepository(session)
        self._reconciler = RelationReconciler(session)

    async def get_agency(self, agency_id: str) -> Agency:
        agency = await self._repo.get_by_id(agency_id)
        if not agency:
            raise NotFoundError("Agency", agency_id)
        return agency

    async def update_agency(
        self, agency_id: str, data: AgencyUpdate, editor_id: str
    ) -> AgencyUpdateResult:
        fields = data.scalar_fields()
        desired = {
            kind: set(getattr(data, attr))
            for attr, kind in RELATION_FIELDS.items()
            if getattr(data, attr) is not None
        }
        if not fields and not desired:
            raise ValidationError("No fields provided to update")

        await self.get_agency(agency_id)

        admissions = [
            await self._reconciler.admit(agency_id, kind, ids)
            for kind, ids in desired.items()
        ]

        result_kwargs: dict[str, Any] = {}
        warnings: list[StepWarning] = []
        for admission in admissions:
            reconciled = await self._reconciler.apply(admission, editor_id)
            result_kwargs[admission.kind.name] = reconciled.members
            warnings.extend(reconciled.warnings)

        now = datetime.now(timezone.utc)
        if fields:
            await self._repo.update(
                agency_id, **fields, last_edited_at=now, last_edited_by=editor_id
            )
            await commit(self._session)
        else:
            warnings.extend(await self._stamp_last_edited(agency_id, editor_id, now))

        if warnings:
            # a best-effort rollback expired the members loaded above
            for admission in admissions:
                result_kwargs[admission.kind.name] = await self._reconciler.members(admission)

        agency = await self.get_agency(agency_id)
        logger.info(
            "Agency %s updated by %s (fields=%s, relations=%s)",
            agency_id,
            editor_id,
            sorted(fields),
            sorted(desired),
        )
        return AgencyUpdateResult(agency=agency, warnings=warnings, **result_kwargs)

    async def _stamp_last_edited(
        self, agency_id: str, editor_id: str, now: datetime
    ) -> list[StepWarning]:
        async def stamp(_: dict[str, Any]) -> None:
            await self._repo.update(agency_id, last_edited_at=now, last_edited_by=editor_id)
            await commit(self._session)

        runner = StepRunner(
            f"stamp agency {agency_id}", on_best_effort_failure=self._session.rollback
        )
        report = await runner.run([Step("stamp", stamp, critical=False)])
        return report.warnings
