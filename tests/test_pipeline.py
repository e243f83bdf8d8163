import pytest

from platewatch.alerts import AlertDispatcher, RecipientDirectory
from platewatch.broadcast import PLATE_ALERT, PLATE_DETECTED
from platewatch.exceptions import EngineUnavailable, InvalidImageError
from platewatch.ocr import TextExtraction
from platewatch.pipeline import ALERT_RAISED, NO_PLATE_DETECTED, NOT_MONITORED, PlatePipeline
from platewatch.storage import ImageStore


class _FakeEngine:
    def __init__(self, text="", confidence=90.0, error=None):
        self.text = text
        self.confidence = confidence
        self.error = error
        self.images = []

    def recognize(self, image):
        self.images.append(image)
        if self.error is not None:
            raise self.error
        return TextExtraction(text=self.text, confidence=self.confidence)


class _RecordingBroadcaster:
    def __init__(self):
        self.events = []

    def publish(self, event, payload):
        self.events.append((event, payload))


def _make_pipeline(store, engine, broadcaster=None, image_store=None):
    dispatcher = AlertDispatcher(store, RecipientDirectory({}))
    return PlatePipeline(engine, store, dispatcher, broadcaster=broadcaster, image_store=image_store)


def test_monitored_plate_raises_alert(store, image_bytes):
    plate = store.add_monitored_plate(plate_number="ABC1234", status="stolen")
    broadcaster = _RecordingBroadcaster()
    pipeline = _make_pipeline(store, _FakeEngine("AB C-1234", 93.1), broadcaster)

    result = pipeline.run_pipeline(image_bytes, camera_id=None)

    assert result.outcome == ALERT_RAISED
    assert result.plate == "ABC1234"
    assert result.monitored_plate.id == plate.id
    assert [a.channel for a in result.alerts] == ["dashboard"]
    assert result.detection.alert_sent is True

    assert [event for event, _ in broadcaster.events] == [PLATE_ALERT]
    payload = broadcaster.events[0][1]
    assert payload["detection"]["plate_number"] == "ABC1234"
    assert payload["monitoredPlate"]["status"] == "stolen"


def test_corrected_plate_still_matches(store, image_bytes):
    store.add_monitored_plate(plate_number="OBC1234", status="vip")
    result = _make_pipeline(store, _FakeEngine("O8C1Z34")).run_pipeline(image_bytes, camera_id=None)

    assert result.plate == "OBC1234"
    assert result.validated
    assert result.alert


def test_unmonitored_plate_is_broadcast_without_alert(store, image_bytes):
    broadcaster = _RecordingBroadcaster()
    result = _make_pipeline(store, _FakeEngine("QRS7777"), broadcaster).run_pipeline(image_bytes, camera_id=None)

    assert result.outcome == NOT_MONITORED
    assert result.alerts == []
    assert [event for event, _ in broadcaster.events] == [PLATE_DETECTED]
    assert store.list_alerts_for_detection(result.detection.id) == []


def test_no_plate_is_recorded_silently(store, image_bytes):
    broadcaster = _RecordingBroadcaster()
    result = _make_pipeline(store, _FakeEngine("", 0.0), broadcaster).run_pipeline(image_bytes, camera_id=None)

    assert result.outcome == NO_PLATE_DETECTED
    assert result.plate is None
    assert result.detection.plate_number is None
    assert broadcaster.events == []


def test_engine_receives_normalized_image(store, image_bytes):
    engine = _FakeEngine("QRS7777")
    _make_pipeline(store, engine).run_pipeline(image_bytes, camera_id=None)
    assert engine.images[0].ndim == 2


def test_broadcast_failure_does_not_block_alerts(store, image_bytes):
    store.add_monitored_plate(plate_number="ABC1234", status="stolen")

    class _BrokenBroadcaster:
        def publish(self, event, payload):
            raise RuntimeError("socket gone")

    result = _make_pipeline(store, _FakeEngine("ABC1234"), _BrokenBroadcaster()).run_pipeline(image_bytes, camera_id=None)
    assert len(result.alerts) == 1


def test_engine_outage_propagates_and_records_nothing(store, image_bytes):
    pipeline = _make_pipeline(store, _FakeEngine(error=EngineUnavailable()))
    with pytest.raises(EngineUnavailable):
        pipeline.run_pipeline(image_bytes, camera_id=None)
    assert store.list_detections() == []


def test_undecodable_image_is_rejected(store):
    with pytest.raises(InvalidImageError):
        _make_pipeline(store, _FakeEngine("ABC1234")).run_pipeline(b"not an image", camera_id=None)


def test_image_reference_and_coordinates_are_stored(store, image_bytes, tmp_path):
    pipeline = _make_pipeline(store, _FakeEngine("QRS7777"), image_store=ImageStore(tmp_path))

    result = pipeline.run_pipeline(image_bytes, camera_id=None, coordinates=(1.5, 2.5), filename="car.png")

    assert result.detection.image_path.startswith("uploads/")
    assert result.detection.image_path.endswith(".png")
    assert (result.detection.latitude, result.detection.longitude) == (1.5, 2.5)
    assert len(list(tmp_path.iterdir())) == 1
