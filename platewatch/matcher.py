# platewatch/matcher.py

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .models import Detection, MonitoredPlate

logger = logging.getLogger(__name__)


@dataclass
class PlateReading:
    """Resolver output plus the engine's confidence for one image"""
    plate: Optional[str]
    confidence: float
    raw_text: str = ""
    validated: bool = False


@dataclass
class MatchResult:
    detection: Detection
    monitored_plate: Optional[MonitoredPlate] = None

    @property
    def is_monitored(self) -> bool:
        return self.monitored_plate is not None


class DetectionRecorder:
    """Records every recognition attempt and checks it against the watch list."""

    def __init__(self, store):
        self.store = store

    def process(
        self,
        reading: PlateReading,
        camera_id: Optional[int],
        image_ref: Optional[str],
        coordinates: Optional[Tuple[float, float]] = None,
    ) -> MatchResult:
        latitude, longitude = coordinates if coordinates else (None, None)

        # Always recorded, plate or not. PersistenceFailure propagates.
        detection = self.store.insert_detection(
            plate_number=reading.plate or None,
            camera_id=camera_id,
            image_path=image_ref,
            confidence_score=reading.confidence,
            latitude=latitude,
            longitude=longitude,
        )

        if not reading.plate:
            return MatchResult(detection=detection)

        try:
            monitored_plate = self.store.find_active_monitored_plate(reading.plate)
        except Exception as e:
            # Watch-list outage must not block detection reporting
            logger.error(f"Watch-list lookup failed for {reading.plate}, treating as not monitored: {e}")
            return MatchResult(detection=detection)

        if monitored_plate is None:
            return MatchResult(detection=detection)

        self.store.update_detection_monitored(detection.id, monitored_plate.id)
        detection.is_monitored = True
        detection.monitored_plate_id = monitored_plate.id
        logger.info(f"Monitored plate detected: {reading.plate} ({monitored_plate.status})")
        return MatchResult(detection=detection, monitored_plate=monitored_plate)
