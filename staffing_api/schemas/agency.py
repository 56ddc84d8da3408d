"""Agency Pydantic schemas (PATCH body and response models)."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import field_validator, model_validator

from staffing_api.schemas.common import ApiModel

EmployeeCount = Literal["1-10", "11-50", "51-100", "101-200", "201-500", "501-1000", "1001+"]
CompanySize = Literal["Small", "Medium", "Large", "Enterprise"]

_WEBSITE_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
_PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_YEAR_RE = re.compile(r"^\d{4}$")

MIN_FOUNDED_YEAR = 1800

_TEXT_FIELDS = (
    "name",
    "description",
    "website",
    "phone",
    "email",
    "headquarters",
    "employee_count",
    "company_size",
)
_NOT_NULLABLE = ("name", "offers_per_diem", "is_union")


class AgencyUpdate(ApiModel):
    """Sparse agency edit. Only fields present in the body are written.

    Audit columns (``last_edited_at`` / ``last_edited_by``) are not part of
    this schema and are ignored if sent.
    """

    name: str | None = None
    description: str | None = None
    website: str | None = None
    phone: str | None = None
    email: str | None = None
    headquarters: str | None = None
    founded_year: int | None = None
    employee_count: EmployeeCount | None = None
    company_size: CompanySize | None = None
    offers_per_diem: bool | None = None
    is_union: bool | None = None

    trade_ids: list[str] | None = None
    region_ids: list[str] | None = None

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("founded_year", mode="before")
    @classmethod
    def parse_founded_year(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if isinstance(v, bool):
            raise ValueError("founded_year must be a 4-digit year")
        text = str(v).strip()
        if not _YEAR_RE.match(text):
            raise ValueError("founded_year must be a 4-digit year")
        year = int(text)
        current = datetime.now(timezone.utc).year
        if not MIN_FOUNDED_YEAR <= year <= current:
            raise ValueError(f"founded_year must be between {MIN_FOUNDED_YEAR} and {current}")
        return year

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        if v is not None and not 2 <= len(v) <= 200:
            raise ValueError("name must be between 2 and 200 characters")
        return v

    @field_validator("website")
    @classmethod
    def check_website(cls, v: str | None) -> str | None:
        if v is not None and not _WEBSITE_RE.match(v):
            raise ValueError("website must start with http:// or https://")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        if v is not None and not _PHONE_RE.match(v):
            raise ValueError("phone must be in E.164 format, e.g. +15551234567")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        if v is not None and not _EMAIL_RE.match(v):
            raise ValueError("email must be a valid email address")
        return v

    @model_validator(mode="after")
    def reject_null_required(self) -> "AgencyUpdate":
        for name in _NOT_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be empty")
        return self

    def scalar_fields(self) -> dict[str, Any]:
        """Scalar columns the caller sent, with relation id lists stripped."""
        return self.model_dump(exclude_unset=True, exclude={"trade_ids", "region_ids"})


class TradeOut(ApiModel):
    id: str
    name: str
    slug: str
    description: str | None = None


class RegionOut(ApiModel):
    id: str
    name: str
    slug: str
    state_code: str


class AgencyOut(ApiModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    website: str | None = None
    phone: str | None = None
    email: str | None = None
    headquarters: str | None = None
    founded_year: int | None = None
    employee_count: str | None = None
    company_size: str | None = None
    offers_per_diem: bool
    is_union: bool
    claimed_by: str | None = None
    last_edited_at: datetime | None = None
    last_edited_by: str | None = None
    created_at: datetime
    updated_at: datetime
