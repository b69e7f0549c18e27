from typing import Any

from fastapi import APIRouter, Depends

from aqualink.api.deps import get_storage
from aqualink.schemas import DriverStats
from aqualink.services.driver_stats import summarize_driver
from aqualink.storage import Storage

router = APIRouter()


@router.get("/drivers/{driver_id}/stats", response_model=DriverStats)
async def read_driver_stats(
    driver_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Dashboard figures for a driver. Drivers with no deliveries get zeros.
    """
    requests = await storage.get_driver_water_requests(driver_id)
    return summarize_driver(driver_id, requests)
