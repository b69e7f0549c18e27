from datetime import datetime, timezone
from typing import Iterable, Optional

from aqualink.lifecycle import ACTIVE_STATUSES
from aqualink.models.water_request import RequestStatus
from aqualink.schemas import DriverStats, WaterRequest


def _same_day(a: datetime, b: datetime) -> bool:
    return a.astimezone(timezone.utc).date() == b.astimezone(timezone.utc).date()


def summarize_driver(
    driver_id: int,
    requests: Iterable[WaterRequest],
    now: Optional[datetime] = None,
) -> DriverStats:
    """Dashboard figures for one driver, computed from their assigned requests."""
    now = now or datetime.now(timezone.utc)
    stats = DriverStats(driver_id=driver_id)
    ratings = []

    for request in requests:
        if request.status in ACTIVE_STATUSES:
            stats.accepted_tasks += 1
        elif request.status == RequestStatus.COMPLETED:
            stats.completed_total += 1
            stats.liters_delivered += request.water_amount
            if request.delivered_at and _same_day(request.delivered_at, now):
                stats.completed_today += 1
            if request.rating is not None:
                ratings.append(request.rating)

    if ratings:
        stats.rating = round(sum(ratings) / len(ratings), 2)
    return stats
