"""SQLAlchemy ORM model for Agencies — the aggregate root of the admin back office.

Pattern shared by all domain models:
  - Inherit Base, IdMixin, TimestampMixin
  - UUID primary key (immutable once created)
  - created_at / updated_at (from TimestampMixin)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from staffing_api.db.base import Base
from staffing_api.domain.mixins import IdMixin, TimestampMixin

EMPLOYEE_COUNT_CHOICES: tuple[str, ...] = (
    "1-10",
    "11-50",
    "51-100",
    "101-200",
    "201-500",
    "501-1000",
    "1001+",
)

COMPANY_SIZE_CHOICES: tuple[str, ...] = ("Small", "Medium", "Large", "Enterprise")


class Agency(Base, IdMixin, TimestampMixin):
    __tablename__ = "agencies"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    headquarters: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    founded_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # "1-10" | "11-50" | ... | "1001+"
    employee_count: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    # "Small" | "Medium" | "Large" | "Enterprise"
    company_size: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    offers_per_diem: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_union: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Profile id of the owner who claimed this listing
    claimed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    # Set only by successful mutating operations, never by the caller
    last_edited_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_edited_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
