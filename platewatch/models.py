# platewatch/models.py

import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from .database import Base


class PlateStatus(str, enum.Enum):
    STOLEN = "stolen"
    SUSPICIOUS = "suspicious"
    VIP = "vip"
    BLOCKED = "blocked"


class AlertChannel(str, enum.Enum):
    DASHBOARD = "dashboard"
    EMAIL = "email"


class AlertStatus(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"


class Camera(Base):
    __tablename__ = "cameras"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    location = Column(Text)
    latitude = Column(Float)
    longitude = Column(Float)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class MonitoredPlate(Base):
    __tablename__ = "monitored_plates"
    id = Column(Integer, primary_key=True, index=True)
    plate_number = Column(String(20), index=True, nullable=False)
    # Stored as plain text; rows written before a status was retired stay readable
    status = Column(String(50), nullable=False)
    description = Column(Text)
    owner_name = Column(String(255))
    vehicle_model = Column(String(255))
    vehicle_color = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Detection(Base):
    __tablename__ = "detections"
    id = Column(Integer, primary_key=True, index=True)
    plate_number = Column(String(20), index=True, nullable=True)
    camera_id = Column(Integer, ForeignKey("cameras.id"), nullable=True)
    image_path = Column(Text)
    confidence_score = Column(Float, default=0.0)
    latitude = Column(Float)
    longitude = Column(Float)
    is_monitored = Column(Boolean, default=False, nullable=False)
    monitored_plate_id = Column(Integer, ForeignKey("monitored_plates.id"), nullable=True)
    alert_sent = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class Alert(Base):
    __tablename__ = "alerts"
    id = Column(Integer, primary_key=True, index=True)
    detection_id = Column(Integer, ForeignKey("detections.id"), nullable=False)
    monitored_plate_id = Column(Integer, ForeignKey("monitored_plates.id"), nullable=False)
    channel = Column(String(50), nullable=False)
    recipient = Column(Text)
    message = Column(Text)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
