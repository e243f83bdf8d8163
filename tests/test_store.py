from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from platewatch.exceptions import PersistenceFailure
from platewatch.store import PlateStore


def test_inactive_plates_are_not_matched(store):
    plate = store.add_monitored_plate(plate_number="ABC1234", status="stolen")
    assert store.find_active_monitored_plate("ABC1234").id == plate.id

    assert store.deactivate_monitored_plate(plate.id) is True
    assert store.find_active_monitored_plate("ABC1234") is None
    assert store.deactivate_monitored_plate(plate.id) is False


def test_most_recent_active_entry_wins(store):
    store.add_monitored_plate(plate_number="ABC1234", status="stolen")
    newer = store.add_monitored_plate(plate_number="ABC1234", status="vip")

    found = store.find_active_monitored_plate("ABC1234")
    assert found.id == newer.id
    assert found.status == "vip"


def test_replace_existing_deactivates_older_entries(store):
    old = store.add_monitored_plate(plate_number="XYZ9876", status="suspicious")
    new = store.add_monitored_plate(deactivate_previous=True, plate_number="XYZ9876", status="blocked")

    active = store.list_monitored_plates()
    assert [p.id for p in active] == [new.id]
    assert old.id not in {p.id for p in active}


def test_detection_lifecycle_flags(store):
    plate = store.add_monitored_plate(plate_number="ABC1234", status="stolen")
    detection = store.insert_detection(plate_number="ABC1234", confidence_score=91.5)
    assert detection.is_monitored is False
    assert detection.alert_sent is False

    store.update_detection_monitored(detection.id, plate.id)
    store.update_detection_alerted(detection.id)

    reloaded = store.get_detection(detection.id)
    assert reloaded.is_monitored is True
    assert reloaded.monitored_plate_id == plate.id
    assert reloaded.alert_sent is True


def test_list_detections_joins_status_and_camera(store):
    camera = store.add_camera(name="Gate", location="North gate")
    plate = store.add_monitored_plate(plate_number="ABC1234", status="stolen", description="Reported 2024")
    first = store.insert_detection(plate_number=None, camera_id=camera.id)
    second = store.insert_detection(plate_number="ABC1234", camera_id=camera.id)
    store.update_detection_monitored(second.id, plate.id)

    rows = store.list_detections(page=1, limit=10)
    assert [r["detection"].id for r in rows] == [second.id, first.id]
    assert rows[0]["status"] == "stolen"
    assert rows[0]["camera_name"] == "Gate"
    assert rows[1]["status"] is None

    assert [r["detection"].id for r in store.list_detections(page=2, limit=1)] == [first.id]


def test_dashboard_stats_and_recent_alerts(store):
    plate = store.add_monitored_plate(plate_number="ABC1234", status="stolen", vehicle_model="Sedan")
    store.add_monitored_plate(plate_number="OLD0001", status="vip", is_active=False)
    store.insert_detection(plate_number="QRS7777")
    hit = store.insert_detection(plate_number="ABC1234")
    store.update_detection_monitored(hit.id, plate.id)
    store.insert_detection(plate_number="ABC1234", created_at=datetime.utcnow() - timedelta(days=3))

    stats = store.dashboard_stats()
    assert stats == {"monitored_plates": 1, "detections_today": 2, "alerts_today": 1}

    recent = store.recent_alerts()
    assert len(recent) == 1
    assert recent[0]["detection"].id == hit.id
    assert recent[0]["vehicle_model"] == "Sedan"


def test_alerts_listed_per_detection(store):
    plate = store.add_monitored_plate(plate_number="ABC1234", status="stolen")
    detection = store.insert_detection(plate_number="ABC1234")
    store.insert_alert(
        detection_id=detection.id, monitored_plate_id=plate.id, channel="dashboard", recipient="system",
        message="m", status="sent",
    )
    store.insert_alert(
        detection_id=detection.id, monitored_plate_id=plate.id, channel="email", recipient="a@x",
        message="m", status="failed",
    )

    assert [a.channel for a in store.list_alerts_for_detection(detection.id)] == ["dashboard", "email"]


def test_database_errors_become_persistence_failures():
    class _BrokenSession:
        def query(self, *args):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        def rollback(self):
            pass

        def close(self):
            pass

    store = PlateStore(_BrokenSession)
    with pytest.raises(PersistenceFailure):
        store.find_active_monitored_plate("ABC1234")
