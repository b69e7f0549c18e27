from aqualink.schemas.user import (
    AuthSession,
    SessionProfile,
    TokenPayload,
    User,
    UserCreate,
    UserInDB,
    normalize_email,
)
from aqualink.schemas.water_request import (
    DriverStats,
    RatingIn,
    WaterRequest,
    WaterRequestCreate,
    WaterRequestUpdate,
)
from aqualink.schemas.driver_location import DriverLocation, DriverLocationCreate, LocationIn
from aqualink.schemas.anomaly import Anomaly, AnomalyCreate
