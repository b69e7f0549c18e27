from fastapi.testclient import TestClient

from aqualink.core.config import Settings
from aqualink.main import create_app
from aqualink.storage import DatabaseStorage, MemStorage, build_storage


class BrokenStorage(MemStorage):
    async def get_user(self, id):
        raise RuntimeError("connection reset")


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "storage": "memory"}


def test_each_app_gets_its_own_store(settings):
    with TestClient(create_app(settings=settings)) as first, TestClient(create_app(settings=settings)) as second:
        first.post("/api/users", json={"username": "a", "email": "a@example.com", "password": "p"})
        assert first.get("/api/users/1").status_code == 200
        assert second.get("/api/users/1").status_code == 404


def test_unexpected_errors_become_500(settings):
    app = create_app(settings=settings, storage=BrokenStorage())
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/users/1")
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "connection reset" not in response.text


def test_build_storage_follows_settings(tmp_path):
    assert isinstance(build_storage(Settings(STORAGE_BACKEND="memory")), MemStorage)
    storage = build_storage(
        Settings(STORAGE_BACKEND="database", DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
    )
    assert isinstance(storage, DatabaseStorage)


def test_database_backed_app(tmp_path):
    settings = Settings(
        STORAGE_BACKEND="database",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
        LOG_LEVEL="WARNING",
    )
    with TestClient(create_app(settings=settings)) as client:
        user = client.post(
            "/api/users", json={"username": "alice", "email": "a@x.com", "password": "p"}
        )
        assert user.status_code == 201
        created = client.post(
            "/api/requests",
            json={
                "requestId": "WD12345",
                "userId": user.json()["id"],
                "address": "1 Main St",
                "waterAmount": 2000,
                "urgency": "normal",
            },
        )
        assert created.status_code == 201
        assert created.json()["status"] == "pending"
        assert created.json()["createdAt"].endswith("Z")

        dup = client.post(
            "/api/users", json={"username": "alice", "email": "b@x.com", "password": "p"}
        )
        assert dup.status_code == 409

        patched = client.patch(
            f"/api/requests/{created.json()['id']}", json={"status": "accepted", "driverId": 2}
        )
        assert patched.status_code == 200
        assert patched.json()["acceptedAt"].endswith("Z")
        assert user.json()["createdAt"].endswith("Z")
        assert client.get("/api/requests/code/WD12345").json()["driverId"] == 2
