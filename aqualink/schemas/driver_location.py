from typing import Optional

from pydantic import Field

from aqualink.schemas.base import CamelModel, UTCDateTime


class LocationIn(CamelModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class DriverLocationCreate(LocationIn):
    driver_id: int


class DriverLocation(DriverLocationCreate):
    id: int
    timestamp: Optional[UTCDateTime] = None
