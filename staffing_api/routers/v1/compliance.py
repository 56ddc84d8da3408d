"""Admin compliance router — document upload, review and removal."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.core.response import DataResponse, MessageResponse
from staffing_api.core.security import require_admin
from staffing_api.db.base import get_db
from staffing_api.domain.profile import Profile
from staffing_api.schemas.compliance import (
    ComplianceOut,
    ComplianceReviewRequest,
    ComplianceSettingsUpdate,
    DocumentUrlOut,
)
from staffing_api.services.compliance import (
    ComplianceService,
    DocumentUpload,
    ReviewCommand,
)
from staffing_api.services.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from staffing_api.services.storage import ObjectStorage, get_object_storage

router = APIRouter(prefix="/admin/agencies/{agency_id}/compliance", tags=["Admin Compliance"])


# ------------------------------------------------------------------
# Helper: build the service from its collaborators
# ------------------------------------------------------------------

def _svc(
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ComplianceService:
    return ComplianceService(session, storage, notifier)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("", response_model=DataResponse[list[ComplianceOut]])
async def list_compliance(
    agency_id: str,
    _: Profile = Depends(require_admin),
    svc: ComplianceService = Depends(_svc),
):
    rows = await svc.list_compliance(agency_id)
    return {"data": [ComplianceOut.model_validate(r) for r in rows]}


@router.put("", response_model=DataResponse[list[ComplianceOut]])
async def update_settings(
    agency_id: str,
    body: ComplianceSettingsUpdate,
    admin: Profile = Depends(require_admin),
    svc: ComplianceService = Depends(_svc),
):
    """Set active flag, expiration, verification and notes for several types at once."""
    rows = await svc.update_settings(agency_id, body.items, admin.id)
    return {"data": [ComplianceOut.model_validate(r) for r in rows]}


@router.post("/document", response_model=DataResponse[DocumentUrlOut])
async def upload_document(
    agency_id: str,
    file: UploadFile = File(...),
    compliance_type: str | None = Form(default=None),
    _: Profile = Depends(require_admin),
    svc: ComplianceService = Depends(_svc),
):
    """Store a compliance document; the row returns to pending review."""
    upload = DocumentUpload(
        filename=file.filename or "",
        content_type=file.content_type or "",
        content=await file.read(),
    )
    url = await svc.upload_document(agency_id, compliance_type, upload)
    return {"data": DocumentUrlOut(document_url=url)}


@router.delete("/document", response_model=DataResponse[DocumentUrlOut])
async def delete_document(
    agency_id: str,
    compliance_type: str | None = Query(default=None),
    _: Profile = Depends(require_admin),
    svc: ComplianceService = Depends(_svc),
):
    await svc.delete_document(agency_id, compliance_type)
    return {"data": DocumentUrlOut(document_url=None)}


@router.post("/verify", response_model=MessageResponse[ComplianceOut])
async def review_document(
    agency_id: str,
    body: ComplianceReviewRequest,
    admin: Profile = Depends(require_admin),
    svc: ComplianceService = Depends(_svc),
):
    """Verify or reject the current document for one compliance type."""
    outcome = await svc.review(
        agency_id,
        ReviewCommand(
            compliance_type=body.compliance_type,
            action=body.action,
            reason=body.reason,
            notes=body.notes,
        ),
        admin.id,
    )
    return {"data": ComplianceOut.model_validate(outcome.compliance), "message": outcome.message}
