"""
Alert dispatch for watch-list matches.

A match is delivered through the always-on dashboard channel and, when SMTP
is configured, by e-mail. Each attempted channel leaves one Alert row, sent or
failed, and the detection is flagged `alert_sent` once every channel has been
tried.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from .config import ALERT_RECIPIENTS, DEFAULT_ALERT_RECIPIENT
from .exceptions import NotificationFailure
from .models import Alert, AlertChannel, AlertStatus, Detection, MonitoredPlate, PlateStatus
from .notifications import DeliveryResult

logger = logging.getLogger(__name__)

DASHBOARD_RECIPIENT = "system"
UNKNOWN_LOCATION = "Not provided"

STATUS_COLORS = {
    PlateStatus.STOLEN.value: "#dc2626",
    PlateStatus.SUSPICIOUS.value: "#f59e0b",
    PlateStatus.VIP.value: "#059669",
    PlateStatus.BLOCKED.value: "#7c2d12",
}

STATUS_LABELS = {
    PlateStatus.STOLEN.value: "STOLEN VEHICLE",
    PlateStatus.SUSPICIOUS.value: "SUSPICIOUS",
    PlateStatus.VIP.value: "VIP",
    PlateStatus.BLOCKED.value: "BLOCKED",
}


def parse_recipient_mapping(raw: str) -> Dict[str, List[str]]:
    """Parses "status:a@x,b@x;status:c@x" into {status: [addresses]}."""
    mapping: Dict[str, List[str]] = {}
    for item in (raw or "").split(";"):
        if ":" not in item:
            continue
        status, addresses = item.split(":", 1)
        status = status.strip().lower()
        recipients = [a.strip() for a in addresses.split(",") if a.strip()]
        if status and recipients:
            mapping.setdefault(status, []).extend(recipients)
    return mapping


class RecipientDirectory:
    """Status -> recipient list, with a default operator for anything else."""

    def __init__(self, mapping: Dict[str, List[str]], default_recipient: str = DEFAULT_ALERT_RECIPIENT):
        self.mapping = {str(k).lower(): list(v) for k, v in mapping.items()}
        self.default_recipient = default_recipient

    @classmethod
    def from_config(cls) -> "RecipientDirectory":
        return cls(parse_recipient_mapping(ALERT_RECIPIENTS), DEFAULT_ALERT_RECIPIENT)

    def recipients_for(self, status: Optional[str]) -> List[str]:
        try:
            key = PlateStatus(status).value
        except ValueError:
            logger.warning(f"Unknown plate status '{status}', alerting default recipient")
            return [self.default_recipient]
        return self.mapping.get(key) or [self.default_recipient]


@dataclass
class AlertContent:
    plate_number: str
    status: str
    description: Optional[str]
    owner_name: Optional[str]
    vehicle_model: Optional[str]
    vehicle_color: Optional[str]
    camera_location: str
    detection_time: datetime
    image_path: Optional[str]

    @classmethod
    def build(cls, detection: Detection, monitored_plate: MonitoredPlate, camera_location: Optional[str] = None):
        return cls(
            plate_number=detection.plate_number or monitored_plate.plate_number,
            status=monitored_plate.status,
            description=monitored_plate.description,
            owner_name=monitored_plate.owner_name,
            vehicle_model=monitored_plate.vehicle_model,
            vehicle_color=monitored_plate.vehicle_color,
            camera_location=camera_location or UNKNOWN_LOCATION,
            detection_time=detection.created_at or datetime.utcnow(),
            image_path=detection.image_path,
        )


def format_alert_message(content: AlertContent) -> str:
    return (
        f"ALERT: Plate {content.plate_number} ({content.status}) detected at "
        f"{content.camera_location} on {content.detection_time:%Y-%m-%d %H:%M:%S}"
    )

def format_email_subject(content: AlertContent) -> str:
    return f"ALERT: {str(content.status).upper()} - Plate {content.plate_number}"

def render_email(content: AlertContent) -> str:
    e = html.escape
    color = STATUS_COLORS.get(content.status, "#374151")
    label = STATUS_LABELS.get(content.status, str(content.status).upper())

    rows = [
        ("Plate", content.plate_number),
        ("Date/Time", f"{content.detection_time:%Y-%m-%d %H:%M:%S}"),
        ("Location", content.camera_location),
    ]
    if content.owner_name:
        rows.append(("Owner", content.owner_name))
    if content.vehicle_model:
        rows.append(("Vehicle", f"{content.vehicle_model} - {content.vehicle_color or 'Color not provided'}"))
    if content.image_path:
        rows.append(("Image", content.image_path))

    table = "\n".join(
        f'<tr><td style="padding: 8px 0; font-weight: bold;">{e(k)}:</td>'
        f'<td style="padding: 8px 0;">{e(str(v))}</td></tr>'
        for k, v in rows
    )
    notes = ""
    if content.description:
        notes = (
            '<div style="background: #fff3cd; border: 1px solid #ffc107; padding: 15px; border-radius: 8px;">'
            f'<h3 style="margin-top: 0; color: #856404;">Notes:</h3>'
            f'<p style="margin-bottom: 0; color: #856404;">{e(content.description)}</p></div>'
        )

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Security Alert</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: {color}; color: white; padding: 20px; border-radius: 8px; margin-bottom: 20px;">
    <h1 style="margin: 0; font-size: 24px;">SECURITY ALERT</h1>
    <p style="margin: 10px 0 0 0; font-size: 18px;">{e(label)}</p>
  </div>
  <div style="background: #f8f9fa; padding: 20px; border-radius: 8px; margin-bottom: 20px;">
    <h2 style="margin-top: 0; color: #333;">Detection details</h2>
    <table style="width: 100%; border-collapse: collapse;">
{table}
    </table>
  </div>
  {notes}
  <div style="border-top: 1px solid #ddd; padding-top: 20px; text-align: center; color: #666; font-size: 12px;">
    <p>License Plate Recognition System</p>
    <p>Generated automatically at {datetime.utcnow():%Y-%m-%d %H:%M:%S} UTC</p>
  </div>
</body>
</html>"""


class AlertDispatcher:
    def __init__(self, store, recipients: RecipientDirectory, email_transport=None):
        self.store = store
        self.recipients = recipients
        self.email_transport = email_transport

    @property
    def email_enabled(self) -> bool:
        return self.email_transport is not None and getattr(self.email_transport, "configured", True)

    def _camera_location(self, detection: Detection) -> Optional[str]:
        if detection.camera_id is None:
            return None
        try:
            camera = self.store.get_camera(detection.camera_id)
        except Exception as e:
            logger.warning(f"Camera lookup failed for detection {detection.id}: {e}")
            return None
        if camera is None:
            return None
        return camera.location or camera.name

    def dispatch(self, detection: Detection, monitored_plate: MonitoredPlate) -> List[Alert]:
        """
        Sends and records one alert per enabled channel, then marks the detection.

        Must be called at most once per detection; no deduplication happens here.
        """
        content = AlertContent.build(detection, monitored_plate, self._camera_location(detection))
        logger.warning(
            f"ALERT: plate {content.plate_number} ({str(content.status).upper()}) "
            f"at {content.camera_location}"
        )

        alerts = [self._record_dashboard(detection, monitored_plate, content)]
        if self.email_enabled:
            alerts.append(self._send_email(detection, monitored_plate, content))

        self.store.update_detection_alerted(detection.id)
        detection.alert_sent = True
        return alerts

    def _record_dashboard(self, detection, monitored_plate, content) -> Alert:
        return self.store.insert_alert(
            detection_id=detection.id,
            monitored_plate_id=monitored_plate.id,
            channel=AlertChannel.DASHBOARD.value,
            recipient=DASHBOARD_RECIPIENT,
            message=format_alert_message(content),
            status=AlertStatus.SENT.value,
        )

    def _send_email(self, detection, monitored_plate, content) -> Alert:
        recipients = self.recipients.recipients_for(content.status)
        subject = format_email_subject(content)
        try:
            result = self.email_transport.send(
                AlertChannel.EMAIL.value, recipients, subject, render_email(content)
            )
        except Exception as e:
            result = DeliveryResult(ok=False, error=str(e))

        if result.ok:
            status, message = AlertStatus.SENT.value, subject
        else:
            failure = NotificationFailure(AlertChannel.EMAIL.value, result.error or "unknown error")
            logger.error(f"Alert delivery failed for detection {detection.id}: {failure}")
            status, message = AlertStatus.FAILED.value, f"FAILED: {subject} ({failure.reason})"

        return self.store.insert_alert(
            detection_id=detection.id,
            monitored_plate_id=monitored_plate.id,
            channel=AlertChannel.EMAIL.value,
            recipient=",".join(recipients),
            message=message,
            status=status,
        )
