from typing import Optional

from pydantic import Field

from aqualink.schemas.base import CamelModel, UTCDateTime


class AnomalyCreate(CamelModel):
    request_id: int
    type: str = Field(..., min_length=1, max_length=64)
    description: str = Field(..., min_length=1)


class Anomaly(AnomalyCreate):
    id: int
    resolved: bool = False
    created_at: Optional[UTCDateTime] = None
