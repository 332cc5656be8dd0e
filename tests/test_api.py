"""
Integration tests for the REST API endpoints.

Dependencies are overridden so the routes run on the in-memory store,
roster, notifier and tracker from ``conftest``.  The drivers routes read
the roster table directly, so ``DriverRepository`` is patched with a
roster-backed stand-in.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from driver_onboarding.api import dependencies
from driver_onboarding.api.app import create_app
from driver_onboarding.api.middleware import limiter
from driver_onboarding.config import settings
from driver_onboarding.domain.entities import Location, VerificationStatus
from driver_onboarding.domain.enums import DocumentSlot
from driver_onboarding.domain.gate import AvailabilityGate
from driver_onboarding.domain.geo import driver_h3_cell
from driver_onboarding.domain.wizard import VerificationWizard
from driver_onboarding.infrastructure.locks import verification_lock
from tests.conftest import PERSONAL, VEHICLE

BASE = "/api/v1/drivers"


class _RosterBackedDriverRepository:
    """Mirrors ``DriverRepository`` reads on top of the in-memory roster."""

    def __init__(self, roster):
        self.roster = roster

    def _row(self, driver_id: int) -> SimpleNamespace:
        location = self.roster.locations.get(driver_id)
        return SimpleNamespace(
            id=driver_id,
            name=self.roster.profiles[driver_id]["name"],
            email=f"driver{driver_id}@speed.ng",
            phone=self.roster.profiles[driver_id]["phone"],
            rating=5.0,
            is_online=self.roster.online[driver_id],
            current_lat=location.latitude if location else None,
            current_lng=location.longitude if location else None,
            h3_cell=(
                driver_h3_cell(location.latitude, location.longitude, settings.h3_resolution)
                if location
                else None
            ),
        )

    async def get_by_id(self, driver_id: int) -> Optional[SimpleNamespace]:
        if driver_id not in self.roster.profiles:
            return None
        return self._row(driver_id)

    async def get_online_in_cells(self, cells: set[str]) -> list[SimpleNamespace]:
        rows = [self._row(d) for d in self.roster.profiles]
        return [r for r in rows if r.is_online and r.h3_cell in cells]


async def _no_db():
    yield None


@pytest.fixture
def app(store, roster, notifier, tracker):
    app = create_app()
    app.dependency_overrides[dependencies.get_db] = _no_db
    app.dependency_overrides[dependencies.get_notifier] = lambda: notifier
    app.dependency_overrides[dependencies.get_tracker] = lambda: tracker
    app.dependency_overrides[dependencies.get_wizard] = lambda: VerificationWizard(
        store, roster, notifier, submission_delay=0
    )
    app.dependency_overrides[dependencies.get_gate] = lambda: AvailabilityGate(
        store, roster, notifier, tracker
    )
    return app


@pytest_asyncio.fixture
async def client(app, roster):
    limiter.enabled = False
    with patch(
        "driver_onboarding.api.routes.drivers.DriverRepository",
        new=lambda session: _RosterBackedDriverRepository(roster),
    ):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    limiter.enabled = True


async def _walk_to_review(client: AsyncClient, driver_id: int = 1) -> dict:
    url = f"{BASE}/{driver_id}/verification"
    await client.patch(f"{url}/fields", json={"values": PERSONAL})
    await client.post(f"{url}/advance")
    await client.patch(f"{url}/fields", json={"values": VEHICLE})
    await client.post(f"{url}/advance")
    for slot in DocumentSlot:
        await client.put(
            f"{url}/documents/{slot.value}",
            json={"file_name": f"{slot.value}.jpg", "content_type": "image/jpeg"},
        )
    resp = await client.post(f"{url}/advance")
    return resp.json()


# ── Health ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(app, client):
    mock_redis = AsyncMock()
    mock_redis.ping = AsyncMock(return_value=True)
    app.dependency_overrides[dependencies.get_redis_client] = lambda: mock_redis

    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "redis": True}


@pytest.mark.asyncio
async def test_health_degraded_without_redis(app, client):
    mock_redis = AsyncMock()
    mock_redis.ping = AsyncMock(side_effect=ConnectionError("refused"))
    app.dependency_overrides[dependencies.get_redis_client] = lambda: mock_redis

    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "degraded", "redis": False}


# ── Wizard ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_enter_wizard_prefills_profile(client):
    resp = await client.get(f"{BASE}/1/verification")
    assert resp.status_code == 200
    body = resp.json()
    assert body["current_step"] == 0
    assert body["total_steps"] == 4
    assert body["completed_count"] == 0
    assert body["form_data"]["personal"]["full_name"] == "A B"
    assert body["form_data"]["personal"]["phone_number"] == "+1"
    assert [s["state"] for s in body["steps"]] == [
        "current",
        "pending",
        "pending",
        "pending",
    ]
    assert body["steps"][0]["missing_fields"] == ["address", "date_of_birth"]


@pytest.mark.asyncio
async def test_enter_wizard_unknown_driver(client):
    resp = await client.get(f"{BASE}/99/verification")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_advance_incomplete_step(client, notifier):
    resp = await client.post(f"{BASE}/1/verification/advance")
    assert resp.status_code == 422
    assert resp.json()["missing_fields"] == ["address", "date_of_birth"]
    assert notifier.titles() == ["Incomplete Information"]


@pytest.mark.asyncio
async def test_unknown_field(client):
    resp = await client.patch(
        f"{BASE}/1/verification/fields", json={"values": {"shoe_size": "44"}}
    )
    assert resp.status_code == 422
    assert "shoe_size" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_unknown_document_slot(client):
    resp = await client.put(
        f"{BASE}/1/verification/documents/passport", json={"file_name": "p.jpg"}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_attach_and_remove_document(client):
    url = f"{BASE}/1/verification/documents/insurance"
    resp = await client.put(url, json={"file_name": "ins.pdf", "size_bytes": 10})
    assert resp.status_code == 200
    doc = resp.json()["form_data"]["documents"]["insurance"]
    assert doc["file_name"] == "ins.pdf"
    assert doc["uploaded_at"] is not None

    resp = await client.delete(url)
    assert resp.json()["form_data"]["documents"]["insurance"] is None


@pytest.mark.asyncio
async def test_retreat_keeps_completed(client):
    url = f"{BASE}/1/verification"
    await client.patch(f"{url}/fields", json={"values": PERSONAL})
    await client.post(f"{url}/advance")
    resp = await client.post(f"{url}/retreat")
    body = resp.json()
    assert body["current_step"] == 0
    assert body["completed_steps"] == [0]


@pytest.mark.asyncio
async def test_submit_before_review(client):
    resp = await client.post(f"{BASE}/1/verification/submit")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_status_defaults_to_unverified(client):
    resp = await client.get(f"{BASE}/1/verification/status")
    assert resp.status_code == 200
    assert resp.json()["is_verified"] is False
    assert resp.json()["completed_steps"] == []


@pytest.mark.asyncio
async def test_concurrent_edit_is_conflict(app, client, store, roster, notifier):
    mock_redis = AsyncMock()
    mock_redis.set = AsyncMock(return_value=None)
    app.dependency_overrides[dependencies.get_wizard] = (
        lambda: VerificationWizard(
            store,
            roster,
            notifier,
            submission_delay=0,
            lock_factory=lambda driver_id: verification_lock(mock_redis, driver_id),
        )
    )
    resp = await client.patch(
        f"{BASE}/1/verification/fields", json={"values": {"address": "X"}}
    )
    assert resp.status_code == 409


# ── Gate ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_go_online_unverified_redirects(client, roster):
    resp = await client.post(f"{BASE}/1/online")
    assert resp.status_code == 403
    assert resp.json()["redirect_to"] == "/driver/verification"
    assert roster.online[1] is False


@pytest.mark.asyncio
async def test_go_online_unknown_driver(client):
    resp = await client.post(f"{BASE}/99/online")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_get_driver(client):
    resp = await client.get(f"{BASE}/2")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Ngozi Eze"
    assert resp.json()["is_online"] is False


# ── Full flow ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_full_verification_flow(client, store, roster, tracker):
    body = await _walk_to_review(client)
    assert body["current_step"] == 3
    assert body["completed_steps"] == [0, 1, 2]

    resp = await client.post(f"{BASE}/1/verification/submit")
    assert resp.status_code == 200
    assert resp.json()["is_verified"] is True
    assert resp.json()["completed_steps"] == [0, 1, 2, 3]
    assert 1 not in store.progress

    resp = await client.post(f"{BASE}/1/verification/submit")
    assert resp.status_code == 409

    resp = await client.post(f"{BASE}/1/online")
    assert resp.status_code == 200
    assert resp.json() == {
        "accepted": True,
        "is_online": True,
        "reason": None,
        "redirect_to": None,
    }
    assert roster.online[1] is True
    assert tracker.running == {1}

    resp = await client.post(f"{BASE}/1/offline")
    assert resp.status_code == 200
    assert resp.json()["is_online"] is False
    assert tracker.running == set()


@pytest.mark.asyncio
async def test_nearby_drivers(client, store, roster):
    store.statuses[1] = VerificationStatus.approved(
        1, submitted_at=datetime.now(timezone.utc)
    )
    roster.locations[1] = Location(6.5250, 3.3800)
    roster.locations[2] = Location(6.5245, 3.3793)
    await client.post(f"{BASE}/1/online")

    resp = await client.get(f"{BASE}/nearby", params={"lat": 6.5244, "lng": 3.3792})
    assert resp.status_code == 200
    drivers = resp.json()
    # Driver 2 is closer but offline
    assert [d["id"] for d in drivers] == [1]
    assert drivers[0]["distance_km"] < 1


# ── Notifications ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_and_dismiss_notifications(client):
    await client.post(f"{BASE}/1/online")

    resp = await client.get(f"{BASE}/1/notifications")
    assert resp.status_code == 200
    items = resp.json()
    assert [n["title"] for n in items] == ["Verification Required"]
    assert items[0]["kind"] == "warning"

    nid = items[0]["id"]
    resp = await client.delete(f"{BASE}/1/notifications/{nid}")
    assert resp.status_code == 204

    resp = await client.delete(f"{BASE}/1/notifications/{nid}")
    assert resp.status_code == 404
    assert (await client.get(f"{BASE}/1/notifications")).json() == []
