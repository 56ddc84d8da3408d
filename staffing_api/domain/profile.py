"""SQLAlchemy ORM model for user profiles (role source for admin checks)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from staffing_api.db.base import Base
from staffing_api.domain.mixins import IdMixin, TimestampMixin


class Profile(Base, IdMixin, TimestampMixin):
    __tablename__ = "profiles"

    email: Mapped[Optional[str]] = mapped_column(String(255), index=True, nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # "user" | "agency_owner" | "admin"
    role: Mapped[str] = mapped_column(String(50), default="user", nullable=False)
