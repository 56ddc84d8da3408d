import asyncio
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import staffing_api.domain  # noqa: F401
from staffing_api.core.config import settings
from staffing_api.core.exceptions import StorageError
from staffing_api.db.base import Base, get_db
from staffing_api.domain import (
    Agency,
    AgencyCompliance,
    AgencyRegion,
    AgencyTrade,
    Profile,
    Region,
    Trade,
)
from staffing_api.services.notifications import (
    NotificationDispatcher,
    NotificationError,
    get_notification_dispatcher,
)
from staffing_api.services.storage import ObjectStorage, get_object_storage

ADMIN_ID = "00000000-0000-0000-0000-00000000admn"
OWNER_ID = "00000000-0000-0000-0000-00000000ownr"
USER_ID = "00000000-0000-0000-0000-00000000user"
AGENCY_ID = "00000000-0000-0000-0000-0000000agncy"


class TestDatabase:
    """File-backed SQLite database; NullPool so each asyncio.run gets fresh connections."""

    __test__ = False

    def __init__(self, url: str):
        self.engine = create_async_engine(url, poolclass=NullPool)
        self.session_factory = async_sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def run(self, fn):
        """Run ``fn(session)`` to completion in a fresh session."""

        async def _go():
            async with self.session_factory() as session:
                return await fn(session)

        return asyncio.run(_go())

    def add(self, *objects):
        async def _add(session: AsyncSession):
            session.add_all(objects)
            await session.commit()

        self.run(_add)
        return objects


class FakeStorage(ObjectStorage):
    """In-memory bucket with switchable failures."""

    def __init__(self):
        super().__init__(settings.compliance_bucket, client=None)
        self.objects: dict[str, bytes] = {}
        self.removed: list[str] = []
        self.fail_upload = False
        self.fail_remove = False
        self.fail_sign = False

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_upload:
            raise StorageError("Failed to upload document: simulated")
        self.objects[path] = data

    async def remove(self, paths: list[str]) -> None:
        if self.fail_remove:
            raise StorageError("Failed to delete document: simulated")
        for path in paths:
            self.objects.pop(path, None)
            self.removed.append(path)

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        if self.fail_sign:
            raise StorageError("Failed to generate document URL: simulated")
        return f"https://storage.test/object/sign/{self.bucket}/{path}?token=t{ttl_seconds}"


class FakeDispatcher(NotificationDispatcher):
    def __init__(self, configured: bool = True):
        super().__init__(
            api_key="test-key" if configured else None,
            api_url="https://email.test/emails",
            sender="test@example.com",
        )
        self.sent = []
        self.fail = False

    async def send(self, message) -> str:
        if self.fail:
            raise NotificationError("Email API returned 500: simulated")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


class Clock:
    """Monotonic fake clock advancing one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def make_token(sub: str, **claims) -> str:
    payload = {
        "sub": sub,
        "exp": int((datetime.now(timezone.utc) + timedelta(minutes=30)).timestamp()),
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(sub: str = ADMIN_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub)}"}


@pytest.fixture
def db(tmp_path):
    database = TestDatabase(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    asyncio.run(database.create_all())
    yield database
    asyncio.run(database.engine.dispose())


@pytest.fixture
def seeded(db):
    """Admin, owner, plain user, one claimed agency and a few trades / regions."""
    db.add(
        Profile(id=ADMIN_ID, email="admin@example.com", full_name="Ada Admin", role="admin"),
        Profile(id=OWNER_ID, email="owner@example.com", full_name="Olive Owner", role="agency_owner"),
        Profile(id=USER_ID, email="user@example.com", full_name="Uma User", role="user"),
        Agency(id=AGENCY_ID, name="Acme Staffing", slug="acme-staffing", claimed_by=OWNER_ID),
        Trade(id="trade-electrician", name="Electrician", slug="electrician"),
        Trade(id="trade-plumber", name="Plumber", slug="plumber"),
        Trade(id="trade-welder", name="Welder", slug="welder"),
        Trade(id="trade-carpenter", name="Carpenter", slug="carpenter"),
        Region(id="region-tx", name="Texas", slug="texas", state_code="TX"),
        Region(id="region-ca", name="California", slug="california", state_code="CA"),
    )
    return db


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def client(seeded, storage, dispatcher):
    from staffing_api.main import app

    async def override_db():
        async with seeded.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def add_memberships(db: TestDatabase, trade_ids=(), region_ids=()):
    rows = [AgencyTrade(agency_id=AGENCY_ID, trade_id=t) for t in trade_ids]
    rows += [AgencyRegion(agency_id=AGENCY_ID, region_id=r) for r in region_ids]
    db.add(*rows)


def add_compliance(db: TestDatabase, compliance_type: str = "general_liability", **values):
    row = AgencyCompliance(agency_id=AGENCY_ID, compliance_type=compliance_type, **values)
    db.add(row)
    return row
