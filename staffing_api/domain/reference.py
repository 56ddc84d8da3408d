"""Lookup entities (trades, regions) and their agency join relations."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from staffing_api.db.base import Base
from staffing_api.domain.mixins import IdMixin, TimestampMixin


class Trade(Base, IdMixin):
    __tablename__ = "trades"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Region(Base, IdMixin):
    __tablename__ = "regions"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    state_code: Mapped[str] = mapped_column(String(2), nullable=False)


class AgencyTrade(Base, IdMixin, TimestampMixin):
    """At most one row per (agency, trade) pair."""

    __tablename__ = "agency_trades"
    __table_args__ = (UniqueConstraint("agency_id", "trade_id", name="uq_agency_trades_pair"),)

    agency_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    trade_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("trades.id", ondelete="CASCADE"), nullable=False, index=True
    )


class AgencyRegion(Base, IdMixin, TimestampMixin):
    """At most one row per (agency, region) pair."""

    __tablename__ = "agency_regions"
    __table_args__ = (UniqueConstraint("agency_id", "region_id", name="uq_agency_regions_pair"),)

    agency_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    region_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("regions.id", ondelete="CASCADE"), nullable=False, index=True
    )
