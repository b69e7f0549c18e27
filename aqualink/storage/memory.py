import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from aqualink.core.errors import DuplicateError
from aqualink.core.security import get_password_hash
from aqualink.models.water_request import RequestStatus
from aqualink.schemas import (
    Anomaly,
    AnomalyCreate,
    DriverLocation,
    DriverLocationCreate,
    User,
    UserCreate,
    UserInDB,
    WaterRequest,
    WaterRequestCreate,
    WaterRequestUpdate,
    normalize_email,
)
from aqualink.storage.base import Storage, update_fields


class MemStorage(Storage):
    """
    Process-local storage: one dict per entity keyed by a sequential id.
    Records are copied on the way in and out so callers never share state
    with the store.
    """

    backend = "memory"

    def __init__(self) -> None:
        self.users: Dict[int, UserInDB] = {}
        self.water_requests: Dict[int, WaterRequest] = {}
        self.driver_locations: Dict[int, DriverLocation] = {}
        self.anomalies: Dict[int, Anomaly] = {}
        self._user_ids = itertools.count(1)
        self._request_ids = itertools.count(1)
        self._location_ids = itertools.count(1)
        self._anomaly_ids = itertools.count(1)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _public(user: UserInDB) -> User:
        return User.model_validate(user.model_dump(exclude={"hashed_password"}))

    # Users
    async def get_user(self, id: int) -> Optional[User]:
        """Get a user by ID."""
        user = self.users.get(id)
        return self._public(user) if user else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email. The domain part is matched case-insensitively."""
        email = normalize_email(email)
        for user in self.users.values():
            if user.email == email:
                return self._public(user)
        return None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        for user in self.users.values():
            if user.username == username:
                return self._public(user)
        return None

    async def create_user(self, obj_in: UserCreate) -> User:
        """Create a new user with a hashed password."""
        if await self.get_user_by_email(obj_in.email):
            raise DuplicateError("User", "email", obj_in.email)
        if await self.get_user_by_username(obj_in.username):
            raise DuplicateError("User", "username", obj_in.username)

        data = obj_in.model_dump(exclude={"password"})
        user = UserInDB(
            **data,
            id=next(self._user_ids),
            hashed_password=get_password_hash(obj_in.password),
            created_at=self._now(),
        )
        self.users[user.id] = user
        return self._public(user)

    async def get_users_by_role(self, role: str) -> List[User]:
        """Get all users with the given role."""
        return [self._public(u) for u in self.users.values() if u.role == role]

    # Water requests
    async def get_water_request(self, id: int) -> Optional[WaterRequest]:
        """Get a water request by ID."""
        request = self.water_requests.get(id)
        return request.model_copy() if request else None

    async def get_water_request_by_request_id(self, request_id: str) -> Optional[WaterRequest]:
        """Get a water request by its human-readable id."""
        for request in self.water_requests.values():
            if request.request_id == request_id:
                return request.model_copy()
        return None

    async def create_water_request(self, obj_in: WaterRequestCreate) -> WaterRequest:
        """Create a new pending water request."""
        if await self.get_water_request_by_request_id(obj_in.request_id):
            raise DuplicateError("Water request", "requestId", obj_in.request_id)

        request = WaterRequest(
            **obj_in.model_dump(),
            id=next(self._request_ids),
            status=RequestStatus.PENDING,
            created_at=self._now(),
        )
        self.water_requests[request.id] = request
        return request.model_copy()

    async def update_water_request(
        self, id: int, obj_in: Union[WaterRequestUpdate, Dict[str, Any]]
    ) -> Optional[WaterRequest]:
        """Merge the given fields into a water request."""
        request = self.water_requests.get(id)
        if request is None:
            return None

        updated = request.model_copy(update=update_fields(obj_in))
        self.water_requests[id] = updated
        return updated.model_copy()

    async def get_user_water_requests(self, user_id: int) -> List[WaterRequest]:
        """Get all requests placed by a user."""
        return [r.model_copy() for r in self.water_requests.values() if r.user_id == user_id]

    async def get_driver_water_requests(self, driver_id: int) -> List[WaterRequest]:
        """Get all requests assigned to a driver."""
        return [r.model_copy() for r in self.water_requests.values() if r.driver_id == driver_id]

    async def get_water_requests_by_status(self, status: str) -> List[WaterRequest]:
        """Get all requests with the given status."""
        return [r.model_copy() for r in self.water_requests.values() if r.status == status]

    async def get_all_water_requests(self) -> List[WaterRequest]:
        """Get all water requests."""
        return [r.model_copy() for r in self.water_requests.values()]

    # Driver locations
    async def create_driver_location(self, obj_in: DriverLocationCreate) -> DriverLocation:
        """Record a driver location sample."""
        location = DriverLocation(
            **obj_in.model_dump(),
            id=next(self._location_ids),
            timestamp=self._now(),
        )
        self.driver_locations[location.id] = location
        return location.model_copy()

    async def get_latest_driver_location(self, driver_id: int) -> Optional[DriverLocation]:
        """Get the most recent location of a driver."""
        locations = [l for l in self.driver_locations.values() if l.driver_id == driver_id]
        if not locations:
            return None
        latest = max(locations, key=lambda l: (l.timestamp, l.id))
        return latest.model_copy()

    async def get_all_driver_locations(self) -> List[DriverLocation]:
        """Get all location samples."""
        return [l.model_copy() for l in self.driver_locations.values()]

    # Anomalies
    async def create_anomaly(self, obj_in: AnomalyCreate) -> Anomaly:
        """Create a new unresolved anomaly."""
        anomaly = Anomaly(
            **obj_in.model_dump(),
            id=next(self._anomaly_ids),
            resolved=False,
            created_at=self._now(),
        )
        self.anomalies[anomaly.id] = anomaly
        return anomaly.model_copy()

    async def get_anomalies_by_request_id(self, request_id: int) -> List[Anomaly]:
        """Get all anomalies raised for a request."""
        return [a.model_copy() for a in self.anomalies.values() if a.request_id == request_id]

    async def get_all_anomalies(self) -> List[Anomaly]:
        """Get all anomalies."""
        return [a.model_copy() for a in self.anomalies.values()]

    async def resolve_anomaly(self, id: int) -> Optional[Anomaly]:
        """Mark an anomaly as resolved."""
        anomaly = self.anomalies.get(id)
        if anomaly is None:
            return None

        resolved = anomaly.model_copy(update={"resolved": True})
        self.anomalies[id] = resolved
        return resolved.model_copy()
