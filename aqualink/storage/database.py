import logging
from typing import Any, Dict, List, Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from aqualink import models
from aqualink.core.errors import DuplicateError
from aqualink.core.security import get_password_hash
from aqualink.db.init_db import init_db
from aqualink.db.session import create_engine, create_session_factory
from aqualink.models.user import UserRole
from aqualink.models.water_request import RequestStatus
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
    normalize_email,
)
from aqualink.storage.base import Storage, update_fields

logger = logging.getLogger("aqualink.storage")


class DatabaseStorage(Storage):
    """
    Storage over SQLAlchemy's asyncio extension. Every operation runs in its
    own session and commits before returning.
    """

    backend = "database"

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "DatabaseStorage":
        return cls(create_engine(database_url, echo=echo))

    async def init(self) -> None:
        await init_db(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    async def _first(self, db: AsyncSession, model: Type[Any], *criteria) -> Optional[Any]:
        result = await db.execute(select(model).filter(*criteria))
        return result.scalars().first()

    async def _all(self, model: Type[Any], *criteria) -> List[Any]:
        async with self.session_factory() as db:
            result = await db.execute(select(model).filter(*criteria).order_by(model.id))
            return result.scalars().all()

    async def _save(self, db: AsyncSession, db_obj: Any, entity: str, field: str) -> None:
        db.add(db_obj)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race against a concurrent insert of the same unique value.
            await db.rollback()
            logger.warning(f"Integrity error while saving {entity}")
            raise DuplicateError(entity, field)
        await db.refresh(db_obj)

    # Users
    async def get_user(self, id: int) -> Optional[User]:
        """
        Get a user by ID.
        """
        async with self.session_factory() as db:
            user = await self._first(db, models.User, models.User.id == id)
            return User.model_validate(user) if user else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Get a user by email. The domain part is matched case-insensitively.
        """
        async with self.session_factory() as db:
            user = await self._first(db, models.User, models.User.email == normalize_email(email))
            return User.model_validate(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """
        Get a user by username.
        """
        async with self.session_factory() as db:
            user = await self._first(db, models.User, models.User.username == username)
            return User.model_validate(user) if user else None

    async def create_user(self, obj_in: UserCreate) -> User:
        """
        Create a new user with a hashed password.
        """
        async with self.session_factory() as db:
            if await self._first(db, models.User, models.User.email == obj_in.email):
                raise DuplicateError("User", "email", obj_in.email)
            if await self._first(db, models.User, models.User.username == obj_in.username):
                raise DuplicateError("User", "username", obj_in.username)

            db_obj = models.User(
                username=obj_in.username,
                email=obj_in.email,
                hashed_password=get_password_hash(obj_in.password),
                first_name=obj_in.first_name,
                last_name=obj_in.last_name,
                role=obj_in.role,
                profile_image_url=obj_in.profile_image_url,
            )
            await self._save(db, db_obj, "User", "email or username")
            return User.model_validate(db_obj)

    async def get_users_by_role(self, role: str) -> List[User]:
        """
        Get all users with the given role.
        """
        try:
            role = UserRole(role)
        except ValueError:
            return []
        users = await self._all(models.User, models.User.role == role)
        return [User.model_validate(u) for u in users]

    # Water requests
    async def get_water_request(self, id: int) -> Optional[WaterRequest]:
        """
        Get a water request by ID.
        """
        async with self.session_factory() as db:
            request = await self._first(db, models.WaterRequest, models.WaterRequest.id == id)
            return WaterRequest.model_validate(request) if request else None

    async def get_water_request_by_request_id(self, request_id: str) -> Optional[WaterRequest]:
        """
        Get a water request by its human-readable id.
        """
        async with self.session_factory() as db:
            request = await self._first(
                db, models.WaterRequest, models.WaterRequest.request_id == request_id
            )
            return WaterRequest.model_validate(request) if request else None

    async def create_water_request(self, obj_in: WaterRequestCreate) -> WaterRequest:
        """
        Create a new pending water request.
        """
        async with self.session_factory() as db:
            if await self._first(
                db, models.WaterRequest, models.WaterRequest.request_id == obj_in.request_id
            ):
                raise DuplicateError("Water request", "requestId", obj_in.request_id)

            db_obj = models.WaterRequest(
                **obj_in.model_dump(),
                status=RequestStatus.PENDING,
            )
            await self._save(db, db_obj, "Water request", "requestId")
            return WaterRequest.model_validate(db_obj)

    async def update_water_request(
        self, id: int, obj_in: Union[WaterRequestUpdate, Dict[str, Any]]
    ) -> Optional[WaterRequest]:
        """
        Merge the given fields into a water request.
        """
        async with self.session_factory() as db:
            db_obj = await self._first(db, models.WaterRequest, models.WaterRequest.id == id)
            if db_obj is None:
                return None

            update_data = update_fields(obj_in)
            for field in update_data:
                setattr(db_obj, field, update_data[field])

            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            return WaterRequest.model_validate(db_obj)

    async def get_user_water_requests(self, user_id: int) -> List[WaterRequest]:
        """
        Get all requests placed by a user.
        """
        requests = await self._all(models.WaterRequest, models.WaterRequest.user_id == user_id)
        return [WaterRequest.model_validate(r) for r in requests]

    async def get_driver_water_requests(self, driver_id: int) -> List[WaterRequest]:
        """
        Get all requests assigned to a driver.
        """
        requests = await self._all(models.WaterRequest, models.WaterRequest.driver_id == driver_id)
        return [WaterRequest.model_validate(r) for r in requests]

    async def get_water_requests_by_status(self, status: str) -> List[WaterRequest]:
        """
        Get all requests with the given status.
        """
        try:
            status = RequestStatus(status)
        except ValueError:
            return []
        requests = await self._all(models.WaterRequest, models.WaterRequest.status == status)
        return [WaterRequest.model_validate(r) for r in requests]

    async def get_all_water_requests(self) -> List[WaterRequest]:
        """
        Get all water requests.
        """
        requests = await self._all(models.WaterRequest)
        return [WaterRequest.model_validate(r) for r in requests]

    # Driver locations
    async def create_driver_location(self, obj_in: DriverLocationCreate) -> DriverLocation:
        """
        Record a driver location sample.
        """
        async with self.session_factory() as db:
            db_obj = models.DriverLocation(**obj_in.model_dump())
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            return DriverLocation.model_validate(db_obj)

    async def get_latest_driver_location(self, driver_id: int) -> Optional[DriverLocation]:
        """
        Get the most recent location of a driver.
        """
        async with self.session_factory() as db:
            result = await db.execute(
                select(models.DriverLocation)
                .filter(models.DriverLocation.driver_id == driver_id)
                .order_by(models.DriverLocation.timestamp.desc(), models.DriverLocation.id.desc())
                .limit(1)
            )
            location = result.scalars().first()
            return DriverLocation.model_validate(location) if location else None

    async def get_all_driver_locations(self) -> List[DriverLocation]:
        """
        Get all location samples.
        """
        locations = await self._all(models.DriverLocation)
        return [DriverLocation.model_validate(l) for l in locations]

    # Anomalies
    async def create_anomaly(self, obj_in: AnomalyCreate) -> Anomaly:
        """
        Create a new unresolved anomaly.
        """
        async with self.session_factory() as db:
            db_obj = models.Anomaly(**obj_in.model_dump(), resolved=False)
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            return Anomaly.model_validate(db_obj)

    async def get_anomalies_by_request_id(self, request_id: int) -> List[Anomaly]:
        """
        Get all anomalies raised for a request.
        """
        anomalies = await self._all(models.Anomaly, models.Anomaly.request_id == request_id)
        return [Anomaly.model_validate(a) for a in anomalies]

    async def get_all_anomalies(self) -> List[Anomaly]:
        """
        Get all anomalies.
        """
        anomalies = await self._all(models.Anomaly)
        return [Anomaly.model_validate(a) for a in anomalies]

    async def resolve_anomaly(self, id: int) -> Optional[Anomaly]:
        """
        Mark an anomaly as resolved.
        """
        async with self.session_factory() as db:
            db_obj = await self._first(db, models.Anomaly, models.Anomaly.id == id)
            if db_obj is None:
                return None

            db_obj.resolved = True
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            return Anomaly.model_validate(db_obj)
