# platewatch/predict.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from .broadcast import ConnectionManager
from .config import DEFAULT_CAMERA_ID
from .dependencies import get_broadcaster, get_pipeline
from .pipeline import PlatePipeline
from .schemas import AlertOut, DetectionOut, MonitoredPlateOut, RecognitionResponse
from .utils import validate_image

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/recognize", response_model=RecognitionResponse, summary="Recognize a plate and check the watch list")
async def recognize_plate(
    image: UploadFile = File(...),
    camera_id: int = Form(DEFAULT_CAMERA_ID),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    pipeline: PlatePipeline = Depends(get_pipeline),
):
    contents = await image.read()
    validate_image(contents, image.filename)

    coordinates = (latitude, longitude) if latitude is not None and longitude is not None else None
    result = await run_in_threadpool(
        pipeline.run_pipeline,
        contents,
        camera_id,
        coordinates,
        image.filename,
        image.content_type,
    )

    return RecognitionResponse(
        outcome=result.outcome,
        plate=result.plate,
        raw_text=result.raw_text,
        validated=result.validated,
        confidence=result.confidence,
        alert=result.alert,
        detection=DetectionOut.model_validate(result.detection),
        monitored_plate=MonitoredPlateOut.model_validate(result.monitored_plate) if result.monitored_plate else None,
        alerts=[AlertOut.model_validate(a) for a in result.alerts],
    )


@router.websocket("/ws")
async def events_socket(websocket: WebSocket, manager: ConnectionManager = Depends(get_broadcaster)):
    await manager.connect(websocket)
    try:
        while True:
            # Clients only listen; incoming messages are ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
