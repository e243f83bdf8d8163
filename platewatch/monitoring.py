# platewatch/monitoring.py
# Watch-list management, detection history and dashboard endpoints

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from .dependencies import get_store
from .exceptions import NotFoundError
from .schemas import (
    AlertOut,
    CameraOut,
    DashboardStats,
    DetectionListItem,
    DetectionOut,
    MonitoredPlateIn,
    MonitoredPlateOut,
    RecentAlertItem,
)
from .store import PlateStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


def _flatten(row: dict, schema):
    data = {k: v for k, v in row.items() if k != "detection"}
    return schema(**DetectionOut.model_validate(row["detection"]).model_dump(), **data)


@router.get("/monitored-plates", response_model=List[MonitoredPlateOut])
async def list_monitored_plates(store: PlateStore = Depends(get_store)):
    return await run_in_threadpool(store.list_monitored_plates)


@router.post("/monitored-plates", response_model=MonitoredPlateOut, status_code=201)
async def add_monitored_plate(payload: MonitoredPlateIn, store: PlateStore = Depends(get_store)):
    fields = payload.model_dump(exclude={"replace_existing"})
    fields["status"] = payload.status.value
    return await run_in_threadpool(
        lambda: store.add_monitored_plate(deactivate_previous=payload.replace_existing, **fields)
    )


@router.delete("/monitored-plates/{plate_id}")
async def remove_monitored_plate(plate_id: int, store: PlateStore = Depends(get_store)):
    removed = await run_in_threadpool(store.deactivate_monitored_plate, plate_id)
    if not removed:
        raise NotFoundError(f"Monitored plate {plate_id} not found")
    logger.info(f"Monitored plate {plate_id} deactivated")
    return {"success": True}


@router.get("/detections", response_model=List[DetectionListItem])
async def list_detections(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    store: PlateStore = Depends(get_store),
):
    rows = await run_in_threadpool(store.list_detections, page, limit)
    return [_flatten(row, DetectionListItem) for row in rows]


@router.get("/detections/{detection_id}/alerts", response_model=List[AlertOut])
async def list_detection_alerts(detection_id: int, store: PlateStore = Depends(get_store)):
    detection = await run_in_threadpool(store.get_detection, detection_id)
    if detection is None:
        raise NotFoundError(f"Detection {detection_id} not found")
    return await run_in_threadpool(store.list_alerts_for_detection, detection_id)


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(store: PlateStore = Depends(get_store)):
    return await run_in_threadpool(store.dashboard_stats)


@router.get("/dashboard/recent-alerts", response_model=List[RecentAlertItem])
@router.get("/alerts/recent", response_model=List[RecentAlertItem])
async def recent_alerts(store: PlateStore = Depends(get_store)):
    rows = await run_in_threadpool(store.recent_alerts)
    return [_flatten(row, RecentAlertItem) for row in rows]


@router.get("/cameras", response_model=List[CameraOut])
async def list_cameras(store: PlateStore = Depends(get_store)):
    return await run_in_threadpool(store.list_cameras)
