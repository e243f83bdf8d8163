# platewatch/schemas.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import PlateStatus
from .plate_text import clean_plate_text


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MonitoredPlateOut(ORMModel):
    id: int
    plate_number: str
    status: str
    description: Optional[str] = None
    owner_name: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MonitoredPlateIn(BaseModel):
    plate_number: str = Field(..., min_length=1, max_length=20)
    status: PlateStatus
    description: Optional[str] = None
    owner_name: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    replace_existing: bool = False

    @field_validator("plate_number")
    @classmethod
    def normalize_plate_number(cls, value: str) -> str:
        cleaned = clean_plate_text(value)
        if not cleaned:
            raise ValueError("plate_number must contain letters or digits")
        return cleaned


class DetectionOut(ORMModel):
    id: int
    plate_number: Optional[str] = None
    camera_id: Optional[int] = None
    image_path: Optional[str] = None
    confidence_score: float = 0.0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_monitored: bool = False
    monitored_plate_id: Optional[int] = None
    alert_sent: bool = False
    created_at: Optional[datetime] = None


class DetectionListItem(DetectionOut):
    status: Optional[str] = None
    description: Optional[str] = None
    camera_name: Optional[str] = None


class RecentAlertItem(DetectionOut):
    status: Optional[str] = None
    description: Optional[str] = None
    vehicle_model: Optional[str] = None


class AlertOut(ORMModel):
    id: int
    detection_id: int
    monitored_plate_id: int
    channel: str
    recipient: Optional[str] = None
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class CameraOut(ORMModel):
    id: int
    name: str
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    monitored_plates: int
    detections_today: int
    alerts_today: int


class RecognitionResponse(BaseModel):
    success: bool = True
    outcome: str
    plate: Optional[str] = None
    raw_text: str = ""
    validated: bool = False
    confidence: float
    alert: bool
    detection: DetectionOut
    monitored_plate: Optional[MonitoredPlateOut] = None
    alerts: List[AlertOut] = []
