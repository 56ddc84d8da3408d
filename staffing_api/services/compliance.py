"""Compliance document lifecycle — upload, verify, reject, delete, admin settings.

Ordering rules:
  - upload: the object is stored and signed *before* the status row points
    at it; if signing or the row write fails the new object is removed again.
    The previous object is removed last, best-effort.
  - reject / delete: the status row is committed *first*; removing the stored
    object and emailing the owner are best-effort afterwards.

Rule: No FastAPI here. Raise AppException subclasses for business rule violations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.core.config import settings
from staffing_api.core.exceptions import NotFoundError, StorageError, ValidationError
from staffing_api.domain.agency import Agency
from staffing_api.domain.compliance import COMPLIANCE_TYPES, AgencyCompliance
from staffing_api.repositories.agency import AgencyRepository, ProfileRepository
from staffing_api.repositories.base import commit
from staffing_api.repositories.compliance import ComplianceRepository
from staffing_api.schemas.compliance import ComplianceSettingsItem
from staffing_api.services import compliance_state
from staffing_api.services.notifications import (
    NotificationDispatcher,
    compliance_rejected_email,
)
from staffing_api.services.steps import Step, StepRunner
from staffing_api.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ACCEPTED_MIME_TYPES: tuple[str, ...] = ("application/pdf", "image/png", "image/jpeg")

MIME_EXTENSIONS: dict[str, str] = {
    "application/pdf": "pdf",
    "image/png": "png",
    "image/jpeg": "jpg",
}

ALLOWED_EXTENSIONS: frozenset[str] = frozenset({*MIME_EXTENSIONS.values(), "jpeg"})

DEFAULT_EXTENSION = "pdf"

MIN_REJECTION_REASON_LENGTH = 10

# ---------------------------------------------------------------------------
# Commands / results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentUpload:
    filename: str
    content_type: str
    content: bytes


@dataclass(frozen=True)
class ReviewCommand:
    compliance_type: str
    action: str  # "verify" | "reject"
    reason: str | None = None
    notes: str | None = None


@dataclass
class ReviewOutcome:
    compliance: AgencyCompliance
    message: str
    notified: bool | None = None  # None when no notification applies


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def document_extension(filename: str | None, content_type: str | None) -> str:
    """Extension from the filename suffix, else the MIME table, else ``pdf``.

    Only suffixes of accepted document types are taken from the filename, so a
    client-supplied name can never put ``.exe`` or a ``/`` into the object key.
    """
    name = filename or ""
    if "." in name:
        suffix = name.rsplit(".", 1)[1].lower()
        if suffix in ALLOWED_EXTENSIONS:
            return suffix
    return MIME_EXTENSIONS.get(content_type or "", DEFAULT_EXTENSION)


def build_object_path(
    agency_id: str, compliance_type: str, extension: str, epoch_ms: int
) -> str:
    return f"{agency_id}/{compliance_type}/{epoch_ms}.{extension}"


def require_compliance_type(value: str | None) -> str:
    if not value or value not in COMPLIANCE_TYPES:
        raise ValidationError(
            "Invalid or missing compliance_type",
            details={"valid_types": list(COMPLIANCE_TYPES)},
        )
    return value


def validate_upload(upload: DocumentUpload, max_bytes: int) -> None:
    if upload.content_type not in ACCEPTED_MIME_TYPES:
        raise ValidationError("Invalid file type. Accepted types: PDF, PNG, JPEG")
    if not upload.content:
        raise ValidationError("Uploaded file is empty")
    if len(upload.content) > max_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB"
        )


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ComplianceService:
    def __init__(
        self,
        session: AsyncSession,
        storage: ObjectStorage,
        notifier: NotificationDispatcher,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self._session = session
        self._storage = storage
        self._notifier = notifier
        self._agencies = AgencyRepository(session)
        self._profiles = ProfileRepository(session)
        self._repo = ComplianceRepository(session)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def _get_agency(self, agency_id: str) -> Agency:
        agency = await self._agencies.get_by_id(agency_id)
        if not agency:
            raise NotFoundError("Agency", agency_id)
        return agency

    async def _get_record(self, agency_id: str, compliance_type: str) -> AgencyCompliance:
        record = await self._repo.get(agency_id, compliance_type)
        if not record:
            raise NotFoundError(f"Compliance record for type '{compliance_type}'")
        return record

    def _runner(self, label: str) -> StepRunner:
        return StepRunner(label, on_best_effort_failure=self._session.rollback)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_compliance(self, agency_id: str) -> list[AgencyCompliance]:
        await self._get_agency(agency_id)
        return await self._repo.list_for_agency(agency_id)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload_document(
        self, agency_id: str, compliance_type: str | None, upload: DocumentUpload
    ) -> str:
        """Store *upload* and point the status row at it; returns the signed URL."""
        await self._get_agency(agency_id)
        compliance_type = require_compliance_type(compliance_type)
        validate_upload(upload, settings.max_upload_size_bytes)

        existing = await self._repo.get(agency_id, compliance_type)
        state = compliance_state.state_of(existing)
        previous_path = self._storage.path_from_url(existing.document_url if existing else None)
        is_active = existing.is_active if existing else False

        epoch_ms = int(self._clock().timestamp() * 1000)
        path = build_object_path(
            agency_id,
            compliance_type,
            document_extension(upload.filename, upload.content_type),
            epoch_ms,
        )

        async def store_object(_: dict[str, Any]) -> str:
            await self._storage.upload(path, upload.content, upload.content_type)
            return path

        async def sign_url(_: dict[str, Any]) -> str:
            try:
                return await self._storage.create_signed_url(path, settings.signed_url_ttl_seconds)
            except StorageError:
                await self._discard_object(path)
                raise

        async def write_status(results: dict[str, Any]) -> AgencyCompliance:
            values = compliance_state.upload(state, results["sign"])
            try:
                record = await self._repo.upsert(
                    agency_id, compliance_type, is_active=is_active, **values
                )
                await commit(self._session)
            except Exception:
                await self._discard_object(path)
                raise
            return record

        async def remove_previous(_: dict[str, Any]) -> None:
            if previous_path and previous_path != path:
                await self._storage.remove([previous_path])

        report = await self._runner(f"upload {compliance_type} for agency {agency_id}").run(
            [
                Step("store", store_object),
                Step("sign", sign_url),
                Step("status", write_status),
                Step("remove_previous", remove_previous, critical=False),
            ]
        )
        logger.info(
            "Uploaded %s document for agency %s (%s -> pending_review)",
            compliance_type,
            agency_id,
            state.name,
        )
        return report.results["sign"]

    async def _discard_object(self, path: str) -> None:
        try:
            await self._storage.remove([path])
        except StorageError as exc:
            logger.warning("Could not clean up uploaded object %s: %s", path, exc)

    # ------------------------------------------------------------------
    # Verify / reject
    # ------------------------------------------------------------------

    async def review(
        self, agency_id: str, command: ReviewCommand, reviewer_id: str
    ) -> ReviewOutcome:
        compliance_type = require_compliance_type(command.compliance_type)
        if command.action == "verify":
            return await self.verify_document(
                agency_id, compliance_type, reviewer_id, notes=command.notes
            )
        if command.action == "reject":
            return await self.reject_document(
                agency_id, compliance_type, command.reason, notes=command.notes
            )
        raise ValidationError('Action must be either "verify" or "reject"')

    async def verify_document(
        self,
        agency_id: str,
        compliance_type: str,
        reviewer_id: str,
        notes: str | None = None,
    ) -> ReviewOutcome:
        await self._get_agency(agency_id)
        record = await self._get_record(agency_id, compliance_type)
        values = compliance_state.verify(
            compliance_state.state_of(record),
            verifier_id=reviewer_id,
            now=self._clock(),
            notes=_clean_text(notes),
        )
        updated = await self._repo.update_pair(agency_id, compliance_type, **values)
        await commit(self._session)
        logger.info("Verified %s document for agency %s", compliance_type, agency_id)
        return ReviewOutcome(
            compliance=updated,  # type: ignore[arg-type]
            message="Compliance document verified successfully",
        )

    async def reject_document(
        self,
        agency_id: str,
        compliance_type: str,
        reason: str | None,
        notes: str | None = None,
    ) -> ReviewOutcome:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required when rejecting")
        if len(reason) < MIN_REJECTION_REASON_LENGTH:
            raise ValidationError(
                f"Rejection reason must be at least {MIN_REJECTION_REASON_LENGTH} "
                f"characters (currently {len(reason)} characters)"
            )

        agency = await self._get_agency(agency_id)
        record = await self._get_record(agency_id, compliance_type)
        values = compliance_state.reject(
            compliance_state.state_of(record), notes=_clean_text(notes)
        )
        old_path = self._storage.path_from_url(record.document_url)
        agency_name, agency_slug, owner_id = agency.name, agency.slug, agency.claimed_by

        async def write_status(_: dict[str, Any]) -> AgencyCompliance:
            updated = await self._repo.update_pair(agency_id, compliance_type, **values)
            await commit(self._session)
            return updated  # type: ignore[return-value]

        async def remove_object(_: dict[str, Any]) -> None:
            if old_path:
                await self._storage.remove([old_path])

        async def notify_owner(_: dict[str, Any]) -> bool:
            return await self._send_rejection_email(
                owner_id, agency_name, agency_slug, compliance_type, reason
            )

        report = await self._runner(f"reject {compliance_type} for agency {agency_id}").run(
            [
                Step("status", write_status),
                Step("remove_object", remove_object, critical=False),
                Step("notify", notify_owner, critical=False),
            ]
        )

        # a failed best-effort step rolls the session back, expiring loaded rows
        updated = await self._repo.get(agency_id, compliance_type)

        message = "Compliance document rejected successfully."
        notified: bool | None = None
        if not report.succeeded("notify"):
            notified = False
            message += " Agency owner could not be notified."
        elif report.results["notify"]:
            notified = True
            message += " Agency owner has been notified."

        logger.info(
            "Rejected %s document for agency %s (notified=%s)",
            compliance_type,
            agency_id,
            notified,
        )
        return ReviewOutcome(
            compliance=updated, message=message, notified=notified  # type: ignore[arg-type]
        )

    async def _send_rejection_email(
        self,
        owner_id: str | None,
        agency_name: str,
        agency_slug: str,
        compliance_type: str,
        reason: str,
    ) -> bool:
        """Email the claimed owner. Returns False when there is nobody to notify."""
        if not owner_id or not self._notifier.is_configured():
            logger.warning(
                "Email not configured or agency not claimed - skipping rejection email"
            )
            return False

        owner = await self._profiles.get_by_id(owner_id)
        if not owner or not owner.email:
            logger.warning("Unable to send rejection email: owner %s has no email", owner_id)
            return False

        await self._notifier.send(
            compliance_rejected_email(
                to=owner.email,
                recipient_name=owner.full_name,
                agency_name=agency_name,
                agency_slug=agency_slug,
                compliance_type=compliance_type,
                reason=reason,
                site_url=settings.site_url,
            )
        )
        return True

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def update_settings(
        self, agency_id: str, items: list[ComplianceSettingsItem], editor_id: str
    ) -> list[AgencyCompliance]:
        """Set active flag, expiration, verification and notes per compliance type.

        Every item is checked against the current row before anything is
        written; one invalid item leaves all rows untouched.
        """
        await self._get_agency(agency_id)

        planned: list[tuple[str, dict[str, Any]]] = []
        for item in items:
            compliance_type = require_compliance_type(item.compliance_type)
            state = compliance_state.state_of(await self._repo.get(agency_id, compliance_type))

            values: dict[str, Any] = {
                "is_active": item.is_active,
                "expiration_date": item.expiration_date,
            }
            if item.is_verified is True:
                values.update(
                    compliance_state.verify(state, verifier_id=editor_id, now=self._clock())
                )
            elif item.is_verified is False:
                values.update(compliance_state.revoke(state))
            if "notes" in item.model_fields_set:
                values["notes"] = _clean_text(item.notes)
            planned.append((compliance_type, values))

        for compliance_type, values in planned:
            await self._repo.upsert(agency_id, compliance_type, **values)
        await commit(self._session)

        logger.info(
            "Updated compliance settings for agency %s: %s",
            agency_id,
            [compliance_type for compliance_type, _ in planned],
        )
        return await self._repo.list_for_agency(agency_id)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_document(self, agency_id: str, compliance_type: str | None) -> None:
        await self._get_agency(agency_id)
        compliance_type = require_compliance_type(compliance_type)

        record = await self._repo.get(agency_id, compliance_type)
        if record is None:
            return
        values = compliance_state.remove(compliance_state.state_of(record))
        old_path = self._storage.path_from_url(record.document_url)

        async def write_status(_: dict[str, Any]) -> None:
            await self._repo.update_pair(agency_id, compliance_type, **values)
            await commit(self._session)

        async def remove_object(_: dict[str, Any]) -> None:
            if old_path:
                await self._storage.remove([old_path])

        await self._runner(f"delete {compliance_type} for agency {agency_id}").run(
            [
                Step("status", write_status),
                Step("remove_object", remove_object, critical=False),
            ]
        )
        logger.info("Removed %s document for agency %s", compliance_type, agency_id)
