import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status

from aqualink.api.deps import get_current_driver, get_storage
from aqualink.schemas import DriverLocation, DriverLocationCreate, LocationIn, User
from aqualink.storage import Storage

logger = logging.getLogger("aqualink.locations")

router = APIRouter()


@router.post("/locations", response_model=DriverLocation, status_code=status.HTTP_201_CREATED)
async def create_location(
    location_in: DriverLocationCreate,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Append a position sample for a driver.
    """
    location = await storage.create_driver_location(location_in)
    logger.debug(f"Location recorded: driver_id={location.driver_id}, id={location.id}")
    return location


@router.post("/locations/me", response_model=DriverLocation, status_code=status.HTTP_201_CREATED)
async def report_my_location(
    location_in: LocationIn,
    driver: User = Depends(get_current_driver),
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Append a position sample for the signed-in driver.
    """
    location_data = DriverLocationCreate(driver_id=driver.id, **location_in.model_dump())
    return await storage.create_driver_location(location_data)


@router.get("/locations", response_model=List[DriverLocation])
async def read_locations(
    storage: Storage = Depends(get_storage),
) -> Any:
    return await storage.get_all_driver_locations()


@router.get("/locations/driver/{driver_id}", response_model=DriverLocation)
async def read_latest_driver_location(
    driver_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Current location of a driver, i.e. their most recent sample.
    """
    location = await storage.get_latest_driver_location(driver_id)
    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return location
