"""
SQLAlchemy-backed store for monitored plates, detections, alerts and cameras.

Every public method opens its own session and commits before returning, so
each write is an independent transaction. Database errors are re-raised as
`PersistenceFailure`.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .exceptions import PersistenceFailure
from .models import Alert, Camera, Detection, MonitoredPlate

logger = logging.getLogger(__name__)


class PlateStore:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str):
        db: Session = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Store operation '{operation}' failed: {e}")
            raise PersistenceFailure(f"Failed to {operation}") from e
        finally:
            db.close()

    # --- Pipeline interface ---

    def find_active_monitored_plate(self, plate_number: str) -> Optional[MonitoredPlate]:
        """Most recently created active entry wins when duplicates exist."""
        with self._session("look up monitored plate") as db:
            return (
                db.query(MonitoredPlate)
                .filter(MonitoredPlate.plate_number == plate_number, MonitoredPlate.is_active.is_(True))
                .order_by(MonitoredPlate.created_at.desc(), MonitoredPlate.id.desc())
                .first()
            )

    def insert_detection(self, **fields) -> Detection:
        with self._session("record detection") as db:
            detection = Detection(**fields)
            db.add(detection)
            db.commit()
            db.refresh(detection)
            return detection

    def update_detection_monitored(self, detection_id: int, monitored_plate_id: int) -> None:
        with self._session("mark detection as monitored") as db:
            db.query(Detection).filter(Detection.id == detection_id).update(
                {Detection.is_monitored: True, Detection.monitored_plate_id: monitored_plate_id}
            )
            db.commit()

    def update_detection_alerted(self, detection_id: int) -> None:
        with self._session("mark detection as alerted") as db:
            db.query(Detection).filter(Detection.id == detection_id).update({Detection.alert_sent: True})
            db.commit()

    def insert_alert(self, **fields) -> Alert:
        with self._session("record alert") as db:
            alert = Alert(**fields)
            db.add(alert)
            db.commit()
            db.refresh(alert)
            return alert

    # --- Watch list management ---

    def list_monitored_plates(self) -> list[MonitoredPlate]:
        with self._session("list monitored plates") as db:
            return (
                db.query(MonitoredPlate)
                .filter(MonitoredPlate.is_active.is_(True))
                .order_by(MonitoredPlate.created_at.desc(), MonitoredPlate.id.desc())
                .all()
            )

    def add_monitored_plate(self, deactivate_previous: bool = False, **fields) -> MonitoredPlate:
        """
        Insert a watch-list entry.

        When `deactivate_previous` is set, older active entries for the same
        plate number are switched off in the same transaction.
        """
        with self._session("add monitored plate") as db:
            if deactivate_previous:
                replaced = (
                    db.query(MonitoredPlate)
                    .filter(
                        MonitoredPlate.plate_number == fields["plate_number"],
                        MonitoredPlate.is_active.is_(True),
                    )
                    .update({MonitoredPlate.is_active: False, MonitoredPlate.updated_at: datetime.utcnow()})
                )
                if replaced:
                    logger.info(f"Deactivated {replaced} previous entries for {fields['plate_number']}")
            plate = MonitoredPlate(**fields)
            db.add(plate)
            db.commit()
            db.refresh(plate)
            logger.info(f"Monitored plate added: {plate.plate_number} ({plate.status})")
            return plate

    def deactivate_monitored_plate(self, plate_id: int) -> bool:
        with self._session("remove monitored plate") as db:
            updated = (
                db.query(MonitoredPlate)
                .filter(MonitoredPlate.id == plate_id, MonitoredPlate.is_active.is_(True))
                .update({MonitoredPlate.is_active: False, MonitoredPlate.updated_at: datetime.utcnow()})
            )
            db.commit()
            return updated > 0

    def count_monitored_plates(self) -> int:
        with self._session("count monitored plates") as db:
            return db.query(func.count(MonitoredPlate.id)).scalar()

    # --- Detections and alerts ---

    def get_detection(self, detection_id: int) -> Optional[Detection]:
        with self._session("load detection") as db:
            return db.get(Detection, detection_id)

    def list_detections(self, page: int = 1, limit: int = 50) -> list[dict]:
        """Newest first, joined with plate status/description and camera name."""
        offset = (max(page, 1) - 1) * limit
        with self._session("list detections") as db:
            rows = (
                db.query(Detection, MonitoredPlate.status, MonitoredPlate.description, Camera.name)
                .outerjoin(MonitoredPlate, Detection.monitored_plate_id == MonitoredPlate.id)
                .outerjoin(Camera, Detection.camera_id == Camera.id)
                .order_by(Detection.created_at.desc(), Detection.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
            return [
                {"detection": detection, "status": status, "description": description, "camera_name": camera_name}
                for detection, status, description, camera_name in rows
            ]

    def list_alerts_for_detection(self, detection_id: int) -> list[Alert]:
        with self._session("list alerts") as db:
            return db.query(Alert).filter(Alert.detection_id == detection_id).order_by(Alert.id).all()

    def dashboard_stats(self, now: Optional[datetime] = None) -> dict:
        since = (now or datetime.utcnow()) - timedelta(hours=24)
        with self._session("compute dashboard stats") as db:
            monitored = (
                db.query(func.count(MonitoredPlate.id)).filter(MonitoredPlate.is_active.is_(True)).scalar()
            )
            detections = db.query(func.count(Detection.id)).filter(Detection.created_at >= since).scalar()
            alerts = (
                db.query(func.count(Detection.id))
                .filter(Detection.is_monitored.is_(True), Detection.created_at >= since)
                .scalar()
            )
            return {
                "monitored_plates": monitored or 0,
                "detections_today": detections or 0,
                "alerts_today": alerts or 0,
            }

    def recent_alerts(self, limit: int = 10) -> list[dict]:
        with self._session("list recent alerts") as db:
            rows = (
                db.query(Detection, MonitoredPlate)
                .join(MonitoredPlate, Detection.monitored_plate_id == MonitoredPlate.id)
                .filter(Detection.is_monitored.is_(True))
                .order_by(Detection.created_at.desc(), Detection.id.desc())
                .limit(limit)
                .all()
            )
            return [
                {
                    "detection": detection,
                    "status": plate.status,
                    "description": plate.description,
                    "vehicle_model": plate.vehicle_model,
                }
                for detection, plate in rows
            ]

    # --- Cameras ---

    def list_cameras(self) -> list[Camera]:
        with self._session("list cameras") as db:
            return (
                db.query(Camera)
                .filter(Camera.is_active.is_(True))
                .order_by(Camera.created_at.desc(), Camera.id.desc())
                .all()
            )

    def get_camera(self, camera_id: int) -> Optional[Camera]:
        with self._session("load camera") as db:
            return db.get(Camera, camera_id)

    def add_camera(self, **fields) -> Camera:
        with self._session("add camera") as db:
            camera = Camera(**fields)
            db.add(camera)
            db.commit()
            db.refresh(camera)
            return camera
