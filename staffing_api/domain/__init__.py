"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  agency.py      — Agency aggregate root
  reference.py   — Trade / Region lookups and their agency join relations
  compliance.py  — Per-(agency, type) compliance status rows
  audit.py       — Immutable profile edit trail (never updated or deleted)
  profile.py     — User profiles (role + contact for notifications)
  mixins.py      — Shared IdMixin, TimestampMixin
"""

from staffing_api.domain.agency import Agency
from staffing_api.domain.audit import AgencyProfileEdit
from staffing_api.domain.compliance import AgencyCompliance
from staffing_api.domain.profile import Profile
from staffing_api.domain.reference import AgencyRegion, AgencyTrade, Region, Trade

__all__ = [
    "Agency",
    "AgencyCompliance",
    "AgencyProfileEdit",
    "AgencyRegion",
    "AgencyTrade",
    "Profile",
    "Region",
    "Trade",
]
