"""Compliance document lifecycle as an explicit state machine.

A compliance row's ``document_url`` / ``is_verified`` / ``verified_*`` columns
are read into one of three states.  Transition functions accept only the
documented (state, action) pairs and return the column values to write, so a
caller can never produce e.g. ``is_verified=True`` without a document.

    NoDocument    --upload-->  PendingReview
    PendingReview --upload-->  PendingReview   (replacement)
    Verified      --upload-->  PendingReview   (replacement must be re-reviewed)
    PendingReview --verify-->  Verified
    Verified      --verify-->  Verified        (re-verification)
    PendingReview --reject-->  NoDocument
    Verified      --reject-->  NoDocument
    PendingReview --revoke-->  PendingReview
    Verified      --revoke-->  PendingReview   (admin withdraws verification)
    any           --remove-->  NoDocument
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Union

from staffing_api.core.exceptions import ValidationError
from staffing_api.domain.compliance import AgencyCompliance


@dataclass(frozen=True)
class NoDocument:
    name: ClassVar[str] = "no_document"


@dataclass(frozen=True)
class PendingReview:
    document_url: str
    name: ClassVar[str] = "pending_review"


@dataclass(frozen=True)
class Verified:
    document_url: str
    verified_by: str | None
    verified_at: datetime | None
    name: ClassVar[str] = "verified"


ComplianceState = Union[NoDocument, PendingReview, Verified]

_CLEARED_VERIFICATION: dict[str, Any] = {
    "is_verified": False,
    "verified_by": None,
    "verified_at": None,
}


def state_of(row: AgencyCompliance | None) -> ComplianceState:
    """Read the lifecycle state of a row (a missing row has no document)."""
    if row is None or not row.document_url:
        return NoDocument()
    if row.is_verified:
        return Verified(row.document_url, row.verified_by, row.verified_at)
    return PendingReview(row.document_url)


def upload(state: ComplianceState, document_url: str) -> dict[str, Any]:
    if not document_url:
        raise ValidationError("Uploaded document has no URL")
    return {"document_url": document_url, **_CLEARED_VERIFICATION}


def verify(
    state: ComplianceState,
    *,
    verifier_id: str,
    now: datetime,
    notes: str | None = None,
) -> dict[str, Any]:
    if isinstance(state, NoDocument):
        raise ValidationError("Cannot verify compliance without a supporting document")
    values: dict[str, Any] = {
        "is_verified": True,
        "verified_by": verifier_id,
        "verified_at": now,
    }
    if notes is not None:
        values["notes"] = notes
    return values


def reject(state: ComplianceState, *, notes: str | None = None) -> dict[str, Any]:
    if isinstance(state, NoDocument):
        raise ValidationError("There is no compliance document to reject")
    return {"document_url": None, "notes": notes or None, **_CLEARED_VERIFICATION}


def remove(state: ComplianceState) -> dict[str, Any]:
    return {"document_url": None, **_CLEARED_VERIFICATION}


def revoke(state: ComplianceState) -> dict[str, Any]:
    """Withdraw verification; the document (if any) stays in place."""
    return dict(_CLEARED_VERIFICATION)
