from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from aqualink.core.config import Settings
from aqualink.core.security import create_access_token
from aqualink.main import create_app
from aqualink.storage import MemStorage


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        STORAGE_BACKEND="memory",
        SECRET_KEY="test-secret",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def storage() -> MemStorage:
    return MemStorage()


@pytest.fixture
def app(settings, storage):
    return create_app(settings=settings, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(client):
    def _make_user(username: str, role: str = "resident", email: Optional[str] = None) -> Dict[str, Any]:
        response = client.post(
            "/api/users",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": "identity-provider",
                "role": role,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_user


@pytest.fixture
def make_request(client):
    def _make_request(user_id: int, request_id: str, **fields) -> Dict[str, Any]:
        payload = {
            "requestId": request_id,
            "userId": user_id,
            "address": "1 Main St",
            "waterAmount": 2000,
            "urgency": "normal",
        }
        payload.update(fields)
        response = client.post("/api/requests", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_request


@pytest.fixture
def auth_headers(settings):
    def _auth_headers(email: str) -> Dict[str, str]:
        token = create_access_token(subject=f"uid-{email}", email=email, settings=settings)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
