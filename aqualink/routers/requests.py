import logging
import traceback
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from aqualink.api.deps import get_current_driver, get_current_resident, get_current_user, get_storage
from aqualink.core.errors import DuplicateError, InvalidTransitionError
from aqualink.lifecycle import ACTIVE_STATUSES, apply_update, next_status
from aqualink.models.user import UserRole
from aqualink.models.water_request import RequestStatus
from aqualink.schemas import RatingIn, User, WaterRequest, WaterRequestCreate, WaterRequestUpdate
from aqualink.storage import Storage

logger = logging.getLogger("aqualink.requests")

router = APIRouter()

# Literal segments (/me, /code, /user, /driver, /status) must stay above
# /requests/{request_id}.


async def _get_or_404(storage: Storage, request_id: int) -> WaterRequest:
    request = await storage.get_water_request(request_id)
    if not request:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Water request not found",
        )
    return request


async def _transition(storage: Storage, request: WaterRequest, changes: Dict[str, Any]) -> WaterRequest:
    try:
        update_data = apply_update(request, changes)
    except InvalidTransitionError as e:
        logger.warning(f"Rejected update: request_id={request.id}, status={request.status.value}, error={e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    updated = await storage.update_water_request(request.id, update_data)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Water request not found",
        )
    if updated.status != request.status:
        logger.info(
            f"Request {updated.request_id} moved {request.status.value} -> {updated.status.value}, "
            f"driver_id={updated.driver_id}"
        )
    return updated


@router.post("/requests", response_model=WaterRequest, status_code=status.HTTP_201_CREATED)
async def create_new_request(
    request_in: WaterRequestCreate,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Create a new water delivery request. It starts out pending, unassigned.
    """
    try:
        request = await storage.create_water_request(request_in)
        logger.info(
            f"Request created: request_id={request.request_id}, id={request.id}, "
            f"user_id={request.user_id}, urgency={request.urgency.value}"
        )
        return request
    except DuplicateError as e:
        logger.warning(f"Request creation failed - {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        error_details = traceback.format_exc()
        logger.error(f"Request creation error: request_id={request_in.request_id}, error={str(e)}\n{error_details}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating the request",
        )


@router.get("/requests", response_model=List[WaterRequest])
async def read_requests(
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Retrieve all water requests.
    """
    return await storage.get_all_water_requests()


@router.get("/requests/me", response_model=List[WaterRequest])
async def read_my_requests(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Requests relevant to the signed-in user: residents see their own,
    drivers see the ones assigned to them, admins see everything.
    """
    if current_user.role == UserRole.RESIDENT:
        return await storage.get_user_water_requests(current_user.id)
    if current_user.role == UserRole.DRIVER:
        return await storage.get_driver_water_requests(current_user.id)
    return await storage.get_all_water_requests()


@router.get("/requests/code/{code}", response_model=WaterRequest)
async def read_request_by_code(
    code: str,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Look a request up by its human-readable id (e.g. WD12345).
    """
    request = await storage.get_water_request_by_request_id(code)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Water request not found")
    return request


@router.get("/requests/user/{user_id}", response_model=List[WaterRequest])
async def read_user_requests(
    user_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    return await storage.get_user_water_requests(user_id)


@router.get("/requests/driver/{driver_id}/active", response_model=WaterRequest)
async def read_driver_active_request(
    driver_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    The delivery a driver is currently working on (accepted or in transit).
    When there are several, the most recently created one wins.
    """
    active = [
        r for r in await storage.get_driver_water_requests(driver_id)
        if r.status in ACTIVE_STATUSES
    ]
    if not active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active delivery")
    return max(active, key=lambda r: r.id)


@router.get("/requests/driver/{driver_id}", response_model=List[WaterRequest])
async def read_driver_requests(
    driver_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    return await storage.get_driver_water_requests(driver_id)


@router.get("/requests/status/{request_status}", response_model=List[WaterRequest])
async def read_requests_by_status(
    request_status: str,
    storage: Storage = Depends(get_storage),
) -> Any:
    return await storage.get_water_requests_by_status(request_status)


@router.get("/requests/{request_id}", response_model=WaterRequest)
async def read_request(
    request_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Get water request by numeric id.
    """
    return await _get_or_404(storage, request_id)


@router.patch("/requests/{request_id}", response_model=WaterRequest)
async def update_request(
    request_id: int,
    request_in: WaterRequestUpdate,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Partially update a request. Status may only move one step forward
    (or stay put), a driver must be assigned before it leaves pending, and
    rating/feedback are only accepted for completed deliveries.
    """
    request = await _get_or_404(storage, request_id)
    return await _transition(storage, request, request_in.model_dump(exclude_unset=True))


@router.post("/requests/{request_id}/accept", response_model=WaterRequest)
async def accept_request(
    request_id: int,
    driver: User = Depends(get_current_driver),
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Signed-in driver takes a pending request.
    """
    request = await _get_or_404(storage, request_id)
    if request.status != RequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Request is no longer pending",
        )
    return await _transition(
        storage, request, {"status": RequestStatus.ACCEPTED, "driver_id": driver.id}
    )


@router.post("/requests/{request_id}/advance", response_model=WaterRequest)
async def advance_request(
    request_id: int,
    driver: User = Depends(get_current_driver),
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Assigned driver moves the delivery to its next status
    (accepted -> in_transit -> completed).
    """
    request = await _get_or_404(storage, request_id)
    if request.driver_id != driver.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Request is not assigned to you",
        )
    target = next_status(request.status)
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Delivery is already completed",
        )
    return await _transition(storage, request, {"status": target})


@router.post("/requests/{request_id}/rating", response_model=WaterRequest)
async def rate_request(
    request_id: int,
    rating_in: RatingIn,
    resident: User = Depends(get_current_resident),
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Owning resident rates a completed delivery.
    """
    request = await _get_or_404(storage, request_id)
    if request.user_id != resident.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return await _transition(storage, request, rating_in.model_dump(exclude_unset=True))
