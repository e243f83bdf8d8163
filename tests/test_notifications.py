import smtplib

import pytest
from botocore.exceptions import ClientError

from platewatch import notifications
from platewatch.exceptions import APIException
from platewatch.notifications import SmtpEmailTransport
from platewatch.s3_utils import S3Manager


class _FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.messages = []
        self.logged_in = None
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self):
        pass

    def login(self, user, password):
        self.logged_in = user

    def send_message(self, msg):
        self.messages.append(msg)


def _make_transport(**overrides):
    fields = dict(host="smtp.example.com", port=587, user="alerts", password="secret", sender="alerts@example.com")
    fields.update(overrides)
    return SmtpEmailTransport(**fields)


def test_unconfigured_transport_reports_failure():
    transport = _make_transport(password=None)
    assert not transport.configured
    result = transport.send("email", ["a@x.com"], "subject", "<p>body</p>")
    assert not result.ok


def test_send_builds_html_message(monkeypatch):
    _FakeSMTP.instances = []
    monkeypatch.setattr(notifications.smtplib, "SMTP", _FakeSMTP)

    result = _make_transport().send("email", ["a@x.com", "b@x.com"], "ALERT: STOLEN - Plate ABC1234", "<p>x</p>")

    assert result.ok
    server = _FakeSMTP.instances[0]
    assert server.logged_in == "alerts"
    msg = server.messages[0]
    assert msg["To"] == "a@x.com, b@x.com"
    assert msg.get_body(preferencelist=("html",)).get_content().strip() == "<p>x</p>"


def test_smtp_errors_are_returned_not_raised(monkeypatch):
    class _RefusingSMTP(_FakeSMTP):
        def login(self, user, password):
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(notifications.smtplib, "SMTP", _RefusingSMTP)
    result = _make_transport().send("email", ["a@x.com"], "s", "b")
    assert not result.ok
    assert "bad credentials" in result.error


class _FakeS3Client:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def put_object(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


def test_s3_upload_returns_key_and_url():
    client = _FakeS3Client()
    manager = S3Manager(client=client, bucket_name="plates", base_url="https://plates.s3.example")

    key, url = manager.upload_image(b"data", "car.png")

    assert key.startswith("detections/") and key.endswith("/car.png")
    assert url == f"https://plates.s3.example/{key}"
    assert client.calls[0]["ContentType"] == "image/png"


def test_s3_client_error_becomes_api_exception():
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
    manager = S3Manager(client=_FakeS3Client(error), bucket_name="plates", base_url="https://x")
    with pytest.raises(APIException):
        manager.upload_image(b"data", "car.jpg")
