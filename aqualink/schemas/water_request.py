from typing import Optional

from pydantic import Field

from aqualink.models.water_request import RequestStatus, Urgency
from aqualink.schemas.base import CamelModel, UTCDateTime


# Shared properties
class WaterRequestBase(CamelModel):
    request_id: str = Field(..., min_length=1, max_length=64)
    user_id: int
    address: str = Field(..., min_length=1)
    water_amount: int = Field(..., gt=0)
    urgency: Urgency
    notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


# Properties to receive on request creation
class WaterRequestCreate(WaterRequestBase):
    pass


# Properties to receive on request update
class WaterRequestUpdate(CamelModel):
    status: Optional[RequestStatus] = None
    driver_id: Optional[int] = None
    accepted_at: Optional[UTCDateTime] = None
    in_transit_at: Optional[UTCDateTime] = None
    delivered_at: Optional[UTCDateTime] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None


# Rating submitted by the resident once the delivery is completed
class RatingIn(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = None


# Properties to return to client
class WaterRequest(WaterRequestBase):
    id: int
    status: RequestStatus = RequestStatus.PENDING
    driver_id: Optional[int] = None
    created_at: Optional[UTCDateTime] = None
    accepted_at: Optional[UTCDateTime] = None
    in_transit_at: Optional[UTCDateTime] = None
    delivered_at: Optional[UTCDateTime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None


class DriverStats(CamelModel):
    driver_id: int
    accepted_tasks: int = 0
    completed_today: int = 0
    completed_total: int = 0
    liters_delivered: int = 0
    rating: Optional[float] = None
