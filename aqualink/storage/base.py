import abc
from typing import Any, Dict, List, Optional, Union

from aqualink.schemas import (
    Anomaly,
    AnomalyCreate,
    DriverLocation,
    DriverLocationCreate,
    User,
    UserCreate,
    WaterRequest,
    WaterRequestCreate,
    WaterRequestUpdate,
)


class Storage(abc.ABC):
    """
    Data access for users, water requests, driver locations and anomalies.

    Lookups return ``None`` (or an empty list) on a miss instead of raising.
    Creations raise ``DuplicateError`` when a unique field is taken.
    ``update_water_request`` merges fields blindly; lifecycle rules are
    checked by the caller (see ``aqualink.lifecycle``).
    """

    backend: str = "abstract"

    async def init(self) -> None:
        """Prepare the backend (create tables, open pools)."""

    async def close(self) -> None:
        """Release any resources held by the backend."""

    # Users
    @abc.abstractmethod
    async def get_user(self, id: int) -> Optional[User]: ...

    @abc.abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def create_user(self, obj_in: UserCreate) -> User: ...

    @abc.abstractmethod
    async def get_users_by_role(self, role: str) -> List[User]: ...

    # Water requests
    @abc.abstractmethod
    async def get_water_request(self, id: int) -> Optional[WaterRequest]: ...

    @abc.abstractmethod
    async def get_water_request_by_request_id(self, request_id: str) -> Optional[WaterRequest]: ...

    @abc.abstractmethod
    async def create_water_request(self, obj_in: WaterRequestCreate) -> WaterRequest: ...

    @abc.abstractmethod
    async def update_water_request(
        self, id: int, obj_in: Union[WaterRequestUpdate, Dict[str, Any]]
    ) -> Optional[WaterRequest]: ...

    @abc.abstractmethod
    async def get_user_water_requests(self, user_id: int) -> List[WaterRequest]: ...

    @abc.abstractmethod
    async def get_driver_water_requests(self, driver_id: int) -> List[WaterRequest]: ...

    @abc.abstractmethod
    async def get_water_requests_by_status(self, status: str) -> List[WaterRequest]: ...

    @abc.abstractmethod
    async def get_all_water_requests(self) -> List[WaterRequest]: ...

    # Driver locations
    @abc.abstractmethod
    async def create_driver_location(self, obj_in: DriverLocationCreate) -> DriverLocation: ...

    @abc.abstractmethod
    async def get_latest_driver_location(self, driver_id: int) -> Optional[DriverLocation]: ...

    @abc.abstractmethod
    async def get_all_driver_locations(self) -> List[DriverLocation]: ...

    # Anomalies
    @abc.abstractmethod
    async def create_anomaly(self, obj_in: AnomalyCreate) -> Anomaly: ...

    @abc.abstractmethod
    async def get_anomalies_by_request_id(self, request_id: int) -> List[Anomaly]: ...

    @abc.abstractmethod
    async def get_all_anomalies(self) -> List[Anomaly]: ...

    @abc.abstractmethod
    async def resolve_anomaly(self, id: int) -> Optional[Anomaly]: ...


def update_fields(obj_in: Union[Any, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(obj_in, dict):
        return obj_in
    return obj_in.model_dump(exclude_unset=True)
