"""
Recognition-to-alert pipeline.

raw image -> normalize -> OCR -> resolve plate text -> record & match
-> (on a match) broadcast + dispatch alerts.

Runs synchronously; the HTTP layer calls it from the thread pool.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from .broadcast import PLATE_ALERT, PLATE_DETECTED, NullBroadcaster
from .config import DEFAULT_CAMERA_ID
from .matcher import DetectionRecorder, PlateReading
from .models import Alert, Detection, MonitoredPlate
from .plate_text import resolve_plate_detailed
from .preprocess import normalize_for_ocr
from .schemas import DetectionOut, MonitoredPlateOut
from .utils import load_image

logger = logging.getLogger(__name__)

# Outcomes the HTTP layer reports; system errors are raised instead
NO_PLATE_DETECTED = "no_plate"
NOT_MONITORED = "not_monitored"
ALERT_RAISED = "alert"


@dataclass
class PipelineResult:
    plate: Optional[str]
    confidence: float
    alert: bool
    detection: Detection
    monitored_plate: Optional[MonitoredPlate] = None
    raw_text: str = ""
    validated: bool = False
    alerts: List[Alert] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        if not self.plate:
            return NO_PLATE_DETECTED
        return ALERT_RAISED if self.alert else NOT_MONITORED


class PlatePipeline:
    def __init__(self, engine, store, dispatcher, broadcaster=None, image_store=None):
        self.engine = engine
        self.recorder = DetectionRecorder(store)
        self.dispatcher = dispatcher
        self.broadcaster = broadcaster or NullBroadcaster()
        self.image_store = image_store

    def _publish(self, event: str, payload: dict):
        try:
            self.broadcaster.publish(event, payload)
        except Exception as e:
            logger.warning(f"Broadcast of {event} failed: {e}")

    def run_pipeline(
        self,
        image_bytes: bytes,
        camera_id: Optional[int] = DEFAULT_CAMERA_ID,
        coordinates: Optional[Tuple[float, float]] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> PipelineResult:
        """
        Raises InvalidImageError, EngineUnavailable or PersistenceFailure.
        "No plate" is a normal result, not an error.
        """
        start_time = time.time()

        image = load_image(image_bytes)
        image_ref = self.image_store.save(image_bytes, filename, content_type) if self.image_store else None

        normalized = normalize_for_ocr(image)
        extraction = self.engine.recognize(normalized)
        resolution = resolve_plate_detailed(extraction.text)

        reading = PlateReading(
            plate=resolution.plate,
            confidence=extraction.confidence,
            raw_text=extraction.text,
            validated=resolution.validated,
        )
        logger.info(
            f"Text detected: '{extraction.text}' -> plate: {reading.plate!r} "
            f"(confidence {extraction.confidence:.2f}%, validated={reading.validated})"
        )

        match = self.recorder.process(reading, camera_id, image_ref, coordinates)
        result = PipelineResult(
            plate=reading.plate,
            confidence=reading.confidence,
            alert=match.is_monitored,
            detection=match.detection,
            monitored_plate=match.monitored_plate,
            raw_text=reading.raw_text,
            validated=reading.validated,
        )

        if match.is_monitored:
            # Published before any e-mail delivery is attempted
            self._publish(PLATE_ALERT, {
                "detection": DetectionOut.model_validate(match.detection).model_dump(mode="json"),
                "monitoredPlate": MonitoredPlateOut.model_validate(match.monitored_plate).model_dump(mode="json"),
                "timestamp": datetime.utcnow().isoformat(),
            })
            result.alerts = self.dispatcher.dispatch(match.detection, match.monitored_plate)
        elif reading.plate:
            self._publish(PLATE_DETECTED, {
                "detection": DetectionOut.model_validate(match.detection).model_dump(mode="json"),
                "timestamp": datetime.utcnow().isoformat(),
            })

        logger.info(f"Pipeline finished in {time.time() - start_time:.3f}s: {result.outcome}")
        return result
