"""Compliance document schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import Field, StrictBool, computed_field, field_validator

from staffing_api.domain.compliance import COMPLIANCE_DISPLAY_NAMES
from staffing_api.schemas.common import ApiModel
from staffing_api.services import compliance_state


class ComplianceOut(ApiModel):
    id: str
    agency_id: str
    compliance_type: str
    document_url: str | None = None
    is_verified: bool
    verified_by: str | None = None
    verified_at: datetime | None = None
    is_active: bool
    expiration_date: date | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        return COMPLIANCE_DISPLAY_NAMES.get(self.compliance_type, self.compliance_type)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def state(self) -> str:
        return compliance_state.state_of(self).name  # type: ignore[arg-type]


class ComplianceReviewRequest(ApiModel):
    """Body of POST .../compliance/verify."""

    compliance_type: str = Field(alias="complianceType")
    action: Literal["verify", "reject"]
    reason: str | None = None
    notes: str | None = None


class DocumentUrlOut(ApiModel):
    document_url: str | None = None


class ComplianceSettingsItem(ApiModel):
    """One compliance type in PUT .../compliance.

    ``isVerified`` and ``notes`` are written only when present in the body.
    """

    compliance_type: str = Field(alias="type")
    is_active: StrictBool = Field(alias="isActive")
    expiration_date: date | None = Field(default=None, alias="expirationDate")
    is_verified: StrictBool | None = Field(default=None, alias="isVerified")
    notes: str | None = None

    @field_validator("expiration_date", mode="before")
    @classmethod
    def blank_date_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ComplianceSettingsUpdate(ApiModel):
    items: list[ComplianceSettingsItem]
