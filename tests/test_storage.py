from datetime import datetime, timedelta, timezone

import pytest

from aqualink.core.errors import DuplicateError
from aqualink.core.security import verify_password
from aqualink.models.water_request import RequestStatus
from aqualink.schemas import (
    AnomalyCreate,
    DriverLocationCreate,
    UserCreate,
    WaterRequestCreate,
    WaterRequestUpdate,
)
from aqualink.storage import DatabaseStorage, MemStorage

pytestmark = pytest.mark.anyio


@pytest.fixture(params=["memory", "database"])
async def store(request, tmp_path, anyio_backend):
    if request.param == "memory":
        yield MemStorage()
        return
    storage = DatabaseStorage.from_url(f"sqlite+aiosqlite:///{tmp_path / 'aqualink.db'}")
    await storage.init()
    yield storage
    await storage.close()


def _user(name: str, role: str = "resident") -> UserCreate:
    return UserCreate(username=name, email=f"{name}@example.com", password="identity-provider", role=role)


def _request(code: str, user_id: int = 1) -> WaterRequestCreate:
    return WaterRequestCreate(
        request_id=code, user_id=user_id, address="1 Main St", water_amount=2000, urgency="normal"
    )


async def test_missing_entities_are_none(store):
    assert await store.get_user(1) is None
    assert await store.get_user_by_email("nobody@example.com") is None
    assert await store.get_user_by_username("nobody") is None
    assert await store.get_water_request(1) is None
    assert await store.get_water_request_by_request_id("WD00000") is None
    assert await store.update_water_request(1, {"status": RequestStatus.ACCEPTED}) is None
    assert await store.get_latest_driver_location(1) is None
    assert await store.resolve_anomaly(1) is None


async def test_create_user_assigns_ids_and_enforces_uniqueness(store):
    alice = await store.create_user(_user("alice"))
    bob = await store.create_user(_user("bob", role="driver"))
    assert (alice.id, bob.id) == (1, 2)
    assert alice.created_at is not None

    with pytest.raises(DuplicateError):
        await store.create_user(_user("alice"))
    with pytest.raises(DuplicateError):
        await store.create_user(
            UserCreate(username="alice", email="fresh@example.com", password="x")
        )

    assert (await store.get_user_by_email("alice@example.com")).id == alice.id
    assert (await store.get_user_by_email("alice@EXAMPLE.COM")).id == alice.id
    assert await store.get_user_by_email("ALICE@example.com") is None
    assert [u.username for u in await store.get_users_by_role("driver")] == ["bob"]
    assert await store.get_users_by_role("nobody") == []


async def test_passwords_are_hashed(store):
    await store.create_user(_user("alice"))
    if isinstance(store, MemStorage):
        stored = store.users[1].hashed_password
        assert stored != "identity-provider"
        assert verify_password("identity-provider", stored)


async def test_water_request_defaults_and_update(store):
    created = await store.create_water_request(_request("WD12345"))
    assert created.id == 1
    assert created.status == RequestStatus.PENDING
    assert created.driver_id is None
    assert created.accepted_at is None

    by_code = await store.get_water_request_by_request_id("WD12345")
    assert by_code == await store.get_water_request(created.id)

    with pytest.raises(DuplicateError):
        await store.create_water_request(_request("WD12345"))

    updated = await store.update_water_request(
        created.id, WaterRequestUpdate(status=RequestStatus.ACCEPTED, driver_id=7)
    )
    assert updated.status == RequestStatus.ACCEPTED
    assert updated.driver_id == 7
    assert updated.address == "1 Main St"


async def test_update_merges_blindly(store):
    created = await store.create_water_request(_request("WD12345"))
    # lifecycle rules live above the storage layer
    updated = await store.update_water_request(created.id, {"status": RequestStatus.COMPLETED})
    assert updated.status == RequestStatus.COMPLETED


async def test_request_filters(store):
    await store.create_water_request(_request("WD1", user_id=1))
    second = await store.create_water_request(_request("WD2", user_id=2))
    await store.create_water_request(_request("WD3", user_id=1))
    await store.update_water_request(second.id, {"status": RequestStatus.ACCEPTED, "driver_id": 9})

    assert {r.request_id for r in await store.get_user_water_requests(1)} == {"WD1", "WD3"}
    assert [r.request_id for r in await store.get_driver_water_requests(9)] == ["WD2"]
    assert [r.request_id for r in await store.get_water_requests_by_status("pending")] == ["WD1", "WD3"]
    assert await store.get_water_requests_by_status("bogus") == []
    assert len(await store.get_all_water_requests()) == 3


async def test_latest_driver_location(store):
    await store.create_driver_location(DriverLocationCreate(driver_id=1, latitude=1.0, longitude=1.0))
    await store.create_driver_location(DriverLocationCreate(driver_id=2, latitude=5.0, longitude=5.0))
    last = await store.create_driver_location(DriverLocationCreate(driver_id=1, latitude=2.0, longitude=2.0))

    latest = await store.get_latest_driver_location(1)
    assert latest.id == last.id
    assert latest.latitude == 2.0
    assert len(await store.get_all_driver_locations()) == 3


async def test_anomalies(store):
    anomaly = await store.create_anomaly(AnomalyCreate(request_id=3, type="delay", description="Late"))
    assert anomaly.resolved is False
    await store.create_anomaly(AnomalyCreate(request_id=4, type="delay", description="Later"))

    assert [a.id for a in await store.get_anomalies_by_request_id(3)] == [anomaly.id]
    assert (await store.resolve_anomaly(anomaly.id)).resolved is True
    assert (await store.resolve_anomaly(anomaly.id)).resolved is True
    assert [a.resolved for a in await store.get_all_anomalies()] == [True, False]


async def test_timestamps_come_back_in_utc(store):
    user = await store.create_user(_user("tz"))
    request = await store.create_water_request(_request("WD54321"))
    local = datetime(2026, 10, 19, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    await store.update_water_request(
        request.id, WaterRequestUpdate(status=RequestStatus.ACCEPTED, driver_id=7, accepted_at=local)
    )

    stored = await store.get_water_request(request.id)
    assert stored.created_at.utcoffset() == timedelta(0)
    assert stored.accepted_at == local
    assert stored.accepted_at.utcoffset() == timedelta(0)
    assert (await store.get_user(user.id)).created_at.utcoffset() == timedelta(0)
