"""
Status lifecycle of a water request.

A request only ever moves forward, one step at a time::

    pending -> accepted -> in_transit -> completed

Re-asserting the current status is accepted, so a repeated update (or two
drivers racing to accept the same request) does not fail; the last write
wins. The driver is fixed once the delivery is in transit.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from aqualink.core.errors import InvalidTransitionError
from aqualink.models.water_request import RequestStatus
from aqualink.schemas.water_request import WaterRequest, WaterRequestUpdate

STATUS_ORDER = (
    RequestStatus.PENDING,
    RequestStatus.ACCEPTED,
    RequestStatus.IN_TRANSIT,
    RequestStatus.COMPLETED,
)

# Timestamp recorded when a request enters the given status.
TRANSITION_TIMESTAMPS = {
    RequestStatus.ACCEPTED: "accepted_at",
    RequestStatus.IN_TRANSIT: "in_transit_at",
    RequestStatus.COMPLETED: "delivered_at",
}

ACTIVE_STATUSES = (RequestStatus.ACCEPTED, RequestStatus.IN_TRANSIT)


def next_status(status: RequestStatus) -> Optional[RequestStatus]:
    index = STATUS_ORDER.index(RequestStatus(status))
    if index + 1 < len(STATUS_ORDER):
        return STATUS_ORDER[index + 1]
    return None


def check_transition(current: RequestStatus, target: RequestStatus) -> None:
    current = RequestStatus(current)
    target = RequestStatus(target)
    if target == current or target == next_status(current):
        return
    raise InvalidTransitionError(
        f"Cannot change status from '{current.value}' to '{target.value}'"
    )


def apply_update(
    request: WaterRequest,
    obj_in: Union[WaterRequestUpdate, Dict[str, Any]],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Validate a partial update against the current state of ``request`` and
    return the fields to merge, with the transition timestamp filled in
    when the caller did not send one.
    """
    if isinstance(obj_in, dict):
        update_data = dict(obj_in)
    else:
        update_data = obj_in.model_dump(exclude_unset=True)

    # status is NOT NULL; an explicit null means "leave it alone"
    if update_data.get("status") is None:
        update_data.pop("status", None)

    current = RequestStatus(request.status)
    target = RequestStatus(update_data.get("status", current))
    check_transition(current, target)

    if current in (RequestStatus.IN_TRANSIT, RequestStatus.COMPLETED):
        if "driver_id" in update_data and update_data["driver_id"] != request.driver_id:
            raise InvalidTransitionError(
                f"Driver cannot be changed once the request is '{current.value}'"
            )

    driver_id = update_data.get("driver_id", request.driver_id)
    if target != RequestStatus.PENDING and driver_id is None:
        raise InvalidTransitionError(
            f"A driver must be assigned before the request can be '{target.value}'"
        )

    if target != RequestStatus.COMPLETED:
        if update_data.get("rating") is not None or update_data.get("feedback") is not None:
            raise InvalidTransitionError("Only completed deliveries can be rated")

    if target != current:
        field = TRANSITION_TIMESTAMPS[target]
        if update_data.get(field) is None:
            update_data[field] = now or datetime.now(timezone.utc)

    return update_data
