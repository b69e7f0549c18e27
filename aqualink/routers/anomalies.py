import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status

from aqualink.api.deps import get_storage
from aqualink.schemas import Anomaly, AnomalyCreate
from aqualink.storage import Storage

logger = logging.getLogger("aqualink.anomalies")

router = APIRouter()


@router.post("/anomalies", response_model=Anomaly, status_code=status.HTTP_201_CREATED)
async def create_new_anomaly(
    anomaly_in: AnomalyCreate,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Flag an irregularity on a request. Called by the detection job.
    """
    anomaly = await storage.create_anomaly(anomaly_in)
    logger.info(f"Anomaly flagged: id={anomaly.id}, request_id={anomaly.request_id}, type={anomaly.type}")
    return anomaly


@router.get("/anomalies", response_model=List[Anomaly])
async def read_anomalies(
    storage: Storage = Depends(get_storage),
) -> Any:
    return await storage.get_all_anomalies()


@router.get("/anomalies/request/{request_id}", response_model=List[Anomaly])
async def read_request_anomalies(
    request_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    return await storage.get_anomalies_by_request_id(request_id)


@router.patch("/anomalies/{anomaly_id}/resolve", response_model=Anomaly)
async def resolve_anomaly(
    anomaly_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Mark an anomaly as resolved. Resolving twice is harmless.
    """
    anomaly = await storage.resolve_anomaly(anomaly_id)
    if not anomaly:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Anomaly not found")
    logger.info(f"Anomaly resolved: id={anomaly.id}")
    return anomaly
