"""
Shared test fixtures.

Domain tests run against in-memory fakes of the store / roster / notifier
ports.  Repository tests use an in-memory SQLite database (via aiosqlite)
holding only the verification tables; the ``drivers`` table needs PostGIS
and is left out.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from driver_onboarding.domain.entities import (
    DocumentHandle,
    Location,
    Notification,
    VerificationStatus,
    WizardProgress,
)
from driver_onboarding.domain.enums import DocumentSlot, NotificationKind
from driver_onboarding.domain.gate import AvailabilityGate
from driver_onboarding.domain.ports import (
    DriverRoster,
    LocationTracker,
    Notifier,
    VerificationStore,
)
from driver_onboarding.domain.wizard import VerificationWizard
from driver_onboarding.infrastructure.database import Base
from driver_onboarding.infrastructure.models import (
    VerificationStatusModel,
    WizardProgressModel,
)
from driver_onboarding.infrastructure.serialization import (
    decode_progress,
    encode_progress,
)


PERSONAL = {
    "full_name": "A B",
    "phone_number": "+1",
    "address": "X",
    "date_of_birth": "2000-01-01",
}
VEHICLE = {
    "make": "Toyota",
    "model": "Camry",
    "year": "2020",
    "color": "Black",
    "license_plate": "ABC123",
}


def make_document(slot: DocumentSlot) -> DocumentHandle:
    return DocumentHandle(
        file_name=f"{slot.value}.jpg",
        content_type="image/jpeg",
        size_bytes=1024,
        storage_ref=f"uploads/{slot.value}.jpg",
    )


# ── In-memory fakes ───────────────────────────────────────────────────


class InMemoryVerificationStore(VerificationStore):
    """Stores encoded payloads, so loads go through the real codec."""

    def __init__(self):
        self.progress: dict[int, dict] = {}
        self.statuses: dict[int, VerificationStatus] = {}

    async def load_progress(self, driver_id: int) -> Optional[WizardProgress]:
        payload = self.progress.get(driver_id)
        if payload is None:
            return None
        return decode_progress(driver_id, payload)

    async def save_progress(self, progress: WizardProgress) -> None:
        self.progress[progress.driver_id] = encode_progress(progress)

    async def create_progress(self, progress: WizardProgress) -> WizardProgress:
        self.progress.setdefault(progress.driver_id, encode_progress(progress))
        return decode_progress(progress.driver_id, self.progress[progress.driver_id])

    async def clear_progress(self, driver_id: int) -> None:
        self.progress.pop(driver_id, None)

    async def get_status(self, driver_id: int) -> Optional[VerificationStatus]:
        return self.statuses.get(driver_id)

    async def finalize(self, status: VerificationStatus) -> None:
        self.statuses[status.driver_id] = status
        self.progress.pop(status.driver_id, None)


class InMemoryRoster(DriverRoster):
    def __init__(self):
        self.profiles: dict[int, dict] = {}
        self.online: dict[int, bool] = {}
        self.locations: dict[int, Location] = {}

    def add(self, driver_id: int, name: str, phone: str) -> None:
        self.profiles[driver_id] = {"name": name, "phone": phone}
        self.online[driver_id] = False

    async def get_profile(self, driver_id: int) -> Optional[dict]:
        return self.profiles.get(driver_id)

    async def set_online_status(self, driver_id: int, is_online: bool) -> None:
        self.online[driver_id] = is_online

    async def set_location(self, driver_id: int, location: Location) -> None:
        self.locations[driver_id] = location

    async def get_location(self, driver_id: int) -> Optional[Location]:
        return self.locations.get(driver_id)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.posted: list[Notification] = []
        self.owners: dict[str, int] = {}

    async def post(self, driver_id, kind, title, message) -> str:
        notification = Notification(
            id=uuid.uuid4().hex,
            kind=NotificationKind(kind),
            title=title,
            message=message,
            timestamp=datetime.now(timezone.utc),
        )
        self.posted.append(notification)
        self.owners[notification.id] = driver_id
        return notification.id

    def titles(self) -> list[str]:
        return [n.title for n in self.posted]

    async def active(self, driver_id: int) -> list[Notification]:
        return [n for n in self.posted if self.owners[n.id] == driver_id]

    async def dismiss(self, driver_id: int, notification_id: str) -> bool:
        before = len(self.posted)
        self.posted = [n for n in self.posted if n.id != notification_id]
        return len(self.posted) < before


class RecordingTracker(LocationTracker):
    def __init__(self):
        self.running: set[int] = set()
        self.stopped_all = False

    async def start(self, driver_id: int) -> None:
        self.running.add(driver_id)

    async def stop(self, driver_id: int) -> None:
        self.running.discard(driver_id)

    async def stop_all(self) -> None:
        self.running.clear()
        self.stopped_all = True


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def store() -> InMemoryVerificationStore:
    return InMemoryVerificationStore()


@pytest.fixture
def roster() -> InMemoryRoster:
    r = InMemoryRoster()
    r.add(1, "A B", "+1")
    r.add(2, "Ngozi Eze", "+234 809 222 3344")
    return r


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def tracker() -> RecordingTracker:
    return RecordingTracker()


@pytest.fixture
def wizard(store, roster, notifier) -> VerificationWizard:
    return VerificationWizard(store, roster, notifier, submission_delay=0)


@pytest.fixture
def gate(store, roster, notifier, tracker) -> AvailabilityGate:
    return AvailabilityGate(store, roster, notifier, tracker)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create the verification tables, yield a session, then drop them."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool
    )
    tables = [WizardProgressModel.__table__, VerificationStatusModel.__table__]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=tables)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all, tables=tables)
    await engine.dispose()
