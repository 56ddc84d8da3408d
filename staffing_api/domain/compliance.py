"""SQLAlchemy ORM model for per-agency compliance status rows."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from staffing_api.db.base import Base
from staffing_api.domain.mixins import IdMixin, TimestampMixin

COMPLIANCE_TYPES: tuple[str, ...] = (
    "osha_certified",
    "drug_testing",
    "background_checks",
    "workers_comp",
    "general_liability",
)

COMPLIANCE_DISPLAY_NAMES: dict[str, str] = {
    "osha_certified": "OSHA Certified",
    "drug_testing": "Drug Testing",
    "background_checks": "Background Checks",
    "workers_comp": "Workers' Compensation",
    "general_liability": "General Liability Insurance",
}


class AgencyCompliance(Base, IdMixin, TimestampMixin):
    """One row per (agency, compliance type). Rejection clears the document
    but keeps the row; rows are never hard-deleted."""

    __tablename__ = "agency_compliance"
    __table_args__ = (
        UniqueConstraint("agency_id", "compliance_type", name="uq_agency_compliance_type"),
    )

    agency_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    compliance_type: Mapped[str] = mapped_column(String(50), nullable=False)

    document_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verified_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expiration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
