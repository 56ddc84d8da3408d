"""Agency relation reconciler — keeps an agency's trades / regions in line with
the set an administrator submits.

Reconciliation runs in two phases:

  1. ``admit``  — fail-fast check that every desired reference exists.  Raises
     ValidationError listing exactly the unknown ids; nothing is written.
  2. ``apply``  — read current membership, upsert the desired pairs, prune the
     orphans, append one profile edit row, and return the final members.

Only the upsert is critical.  Orphan pruning and the audit append are
best-effort: their failure is logged and rolled back on its own, leaving the
already-committed upsert in place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.core.exceptions import ValidationError
from staffing_api.repositories.audit import ProfileEditRepository
from staffing_api.repositories.base import commit
from staffing_api.repositories.reference import (
    MembershipRepository,
    ReferenceRepository,
    RegionRepository,
    TradeRepository,
    region_memberships,
    trade_memberships,
)
from staffing_api.services.steps import Step, StepRunner, StepWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationKind:
    name: str
    label: str
    reference_repository: type[ReferenceRepository]
    memberships: Callable[[AsyncSession], MembershipRepository]

    @property
    def invalid_key(self) -> str:
        return f"invalid_{self.label}_ids"


RELATION_KINDS: dict[str, RelationKind] = {
    "trades": RelationKind("trades", "trade", TradeRepository, trade_memberships),
    "regions": RelationKind("regions", "region", RegionRepository, region_memberships),
}


@dataclass(frozen=True)
class Admission:
    """Outcome of a successful admission check; input to :meth:`apply`."""

    agency_id: str
    kind: RelationKind
    desired_ids: frozenset[str]
    references: tuple[Any, ...]  # desired reference rows, ordered by name


@dataclass
class ReconciliationResult:
    members: list[Any]
    audit_written: bool
    warnings: list[StepWarning] = field(default_factory=list)


class RelationReconciler:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._audit = ProfileEditRepository(session)

    @staticmethod
    def relation(kind_name: str) -> RelationKind:
        try:
            return RELATION_KINDS[kind_name]
        except KeyError:
            raise ValidationError(f"Unknown relation: {kind_name}") from None

    async def admit(
        self, agency_id: str, kind_name: str, desired_ids: Iterable[str]
    ) -> Admission:
        kind = self.relation(kind_name)
        desired = frozenset(desired_ids)
        references: list[Any] = []
        if desired:
            references = await kind.reference_repository(self._session).find_by_ids(desired)
            if len(references) != len(desired):
                found = {ref.id for ref in references}
                invalid = sorted(desired - found)
                raise ValidationError(
                    f"Invalid {kind.label} IDs provided",
                    details={kind.invalid_key: invalid},
                )
        return Admission(
            agency_id=agency_id,
            kind=kind,
            desired_ids=desired,
            references=tuple(references),
        )

    async def apply(self, admission: Admission, editor_id: str) -> ReconciliationResult:
        kind = admission.kind
        agency_id = admission.agency_id
        desired = admission.desired_ids
        references = kind.reference_repository(self._session)
        memberships = kind.memberships(self._session)
        new_names = [ref.name for ref in admission.references]

        async def read_current(_: dict[str, Any]) -> set[str]:
            return await memberships.list_reference_ids(agency_id)

        async def read_old_names(results: dict[str, Any]) -> list[str]:
            current = await references.find_by_ids(results["current"])
            return [ref.name for ref in current]

        async def upsert_desired(_: dict[str, Any]) -> None:
            if desired:
                await memberships.upsert_many(agency_id, desired)
            await commit(self._session)

        async def prune_orphans(results: dict[str, Any]) -> int:
            orphaned = results["current"] - desired
            deleted = await memberships.delete_many(agency_id, orphaned)
            await commit(self._session)
            return deleted

        async def append_audit(results: dict[str, Any]) -> None:
            await self._audit.append(
                agency_id=agency_id,
                edited_by=editor_id,
                field_name=kind.name,
                old_value=results["old_names"],
                new_value=new_names,
            )
            await commit(self._session)

        async def read_members(_: dict[str, Any]) -> list[Any]:
            return await self.members(admission)

        runner = StepRunner(
            f"reconcile {kind.name} for agency {agency_id}",
            on_best_effort_failure=self._session.rollback,
        )
        report = await runner.run(
            [
                Step("current", read_current),
                Step("old_names", read_old_names),
                Step("upsert", upsert_desired),
                Step("prune", prune_orphans, critical=False),
                Step("audit", append_audit, critical=False),
                Step("members", read_members),
            ]
        )
        logger.info(
            "Reconciled %s for agency %s: %d desired, %d pruned",
            kind.name,
            agency_id,
            len(desired),
            report.results.get("prune") or 0,
        )
        return ReconciliationResult(
            members=report.results["members"],
            audit_written=report.succeeded("audit"),
            warnings=report.warnings,
        )

    async def members(self, admission: Admission) -> list[Any]:
        """Current reference rows for the admitted set, ordered by name."""
        if not admission.desired_ids:
            return []
        repo = admission.kind.reference_repository(self._session)
        return await repo.find_by_ids(admission.desired_ids)

    async def reconcile(
        self, agency_id: str, kind_name: str, desired_ids: Iterable[str], editor_id: str
    ) -> ReconciliationResult:
        admission = await self.admit(agency_id, kind_name, desired_ids)
        return await self.apply(admission, editor_id)
