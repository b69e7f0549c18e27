"""
Python client for the AquaLink API.

Reads go through a small query cache keyed by request path, the same key
the browser dashboards use (``/api/requests/status/pending``). Every
mutation drops the cached entries it may have changed, so the next read
reflects the new state. The acting user is always taken from the session,
never passed in by the caller.
"""
import logging
import random
from typing import Any, Dict, Iterable, Optional

import httpx

from aqualink.core.security import PASSWORD_PLACEHOLDER

logger = logging.getLogger("aqualink.client")

ROLE_LANDING_PATHS = {
    "resident": "/resident",
    "driver": "/driver",
    "admin": "/admin",
}
SIGN_IN_PATH = "/auth"

ME = "/api/users/me"


def landing_path(role: Optional[str]) -> str:
    """Where a user lands after sign-in; anyone without a known role goes to sign-in."""
    return ROLE_LANDING_PATHS.get(role or "", SIGN_IN_PATH)


def generate_request_id() -> str:
    """Human-readable request id: ``WD`` followed by five digits."""
    return f"WD{random.randint(10000, 99999)}"


class ApiError(Exception):
    def __init__(self, status_code: int, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class AquaLinkClient:
    # Retries when a generated request id collides with an existing one.
    REQUEST_ID_ATTEMPTS = 3

    def __init__(self, http: httpx.Client, token: Optional[str] = None):
        self.http = http
        self.token = token
        self._cache: Dict[str, Any] = {}

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _send(self, method: str, path: str, json: Any = None) -> Any:
        response = self.http.request(method, path, json=json, headers=self._headers())
        if response.is_error:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text
            logger.debug(f"{method} {path} failed with {response.status_code}")
            raise ApiError(response.status_code, detail)
        return response.json()

    # Cache
    def query(self, key: str) -> Any:
        if key not in self._cache:
            self._cache[key] = self._send("GET", key)
        return self._cache[key]

    def is_cached(self, key: str) -> bool:
        return key in self._cache

    def invalidate(self, *prefixes: str) -> None:
        for key in list(self._cache):
            if key.startswith(prefixes):
                del self._cache[key]

    def _mutate(self, method: str, path: str, json: Any = None, invalidates: Iterable[str] = ()) -> Any:
        result = self._send(method, path, json=json)
        self.invalidate(*invalidates)
        return result

    # Session
    def sign_in(self, token: str, profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Start a session with an identity-provider token; returns the application user."""
        self.token = token
        self._cache.clear()
        session = self._send("POST", "/api/auth/session", json=profile)
        self._cache[ME] = session["user"]
        return session["user"]

    def register(
        self,
        username: str,
        email: str,
        role: str = "resident",
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an account ahead of the first sign-in, e.g. to pick a role other than resident."""
        payload = {
            "username": username,
            "email": email,
            "password": PASSWORD_PLACEHOLDER,
            "role": role,
            "firstName": first_name,
            "lastName": last_name,
        }
        return self._mutate("POST", "/api/users", json=payload, invalidates=["/api/users"])

    def sign_out(self) -> None:
        self.token = None
        self._cache.clear()

    @property
    def current_user(self) -> Dict[str, Any]:
        return self.query(ME)

    def home(self) -> str:
        if not self.token:
            return SIGN_IN_PATH
        try:
            return landing_path(self.current_user.get("role"))
        except ApiError:
            return SIGN_IN_PATH

    # Residents
    def my_requests(self) -> Any:
        return self.query("/api/requests/me")

    def create_request(
        self,
        address: str,
        water_amount: int,
        urgency: str = "normal",
        notes: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Dict[str, Any]:
        payload = {
            "userId": self.current_user["id"],
            "address": address,
            "waterAmount": water_amount,
            "urgency": urgency,
            "notes": notes,
            "latitude": latitude,
            "longitude": longitude,
        }
        for attempt in range(self.REQUEST_ID_ATTEMPTS):
            payload["requestId"] = generate_request_id()
            try:
                return self._mutate("POST", "/api/requests", json=payload, invalidates=["/api/requests"])
            except ApiError as e:
                if e.status_code != 409 or attempt == self.REQUEST_ID_ATTEMPTS - 1:
                    raise
                logger.info(f"Request id {payload['requestId']} taken, retrying")

    def rate_request(self, request_id: int, rating: int, feedback: Optional[str] = None) -> Dict[str, Any]:
        return self._mutate(
            "POST",
            f"/api/requests/{request_id}/rating",
            json={"rating": rating, "feedback": feedback},
            invalidates=["/api/requests", "/api/drivers"],
        )

    # Drivers
    def pending_requests(self) -> Any:
        return self.query("/api/requests/status/pending")

    def active_delivery(self) -> Optional[Dict[str, Any]]:
        try:
            return self.query(f"/api/requests/driver/{self.current_user['id']}/active")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    def driver_stats(self) -> Any:
        return self.query(f"/api/drivers/{self.current_user['id']}/stats")

    def accept_request(self, request_id: int) -> Dict[str, Any]:
        return self._mutate(
            "POST",
            f"/api/requests/{request_id}/accept",
            invalidates=["/api/requests", "/api/drivers"],
        )

    def advance_request(self, request_id: int) -> Dict[str, Any]:
        return self._mutate(
            "POST",
            f"/api/requests/{request_id}/advance",
            invalidates=["/api/requests", "/api/drivers"],
        )

    def report_location(self, latitude: float, longitude: float) -> Dict[str, Any]:
        return self._mutate(
            "POST",
            "/api/locations/me",
            json={"latitude": latitude, "longitude": longitude},
            invalidates=["/api/locations"],
        )

    # Admins
    def all_requests(self) -> Any:
        return self.query("/api/requests")

    def anomalies(self) -> Any:
        return self.query("/api/anomalies")

    def resolve_anomaly(self, anomaly_id: int) -> Dict[str, Any]:
        return self._mutate("PATCH", f"/api/anomalies/{anomaly_id}/resolve", invalidates=["/api/anomalies"])
