import io
import os
import tempfile

# Settings are read at import time; keep tests off the real database and upload dir
_TMP_DIR = tempfile.mkdtemp(prefix="platewatch-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'platewatch.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["AUTO_SEED"] = "false"
for _name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "AWS_ACCESS_KEY_ID"):
    os.environ.pop(_name, None)

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from platewatch.database import Base
from platewatch.store import PlateStore


def make_store() -> PlateStore:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    return PlateStore(SessionLocal)


def make_image_bytes(size=(320, 100), fmt="PNG") -> bytes:
    image = Image.new("RGB", size, "white")
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def image_bytes():
    return make_image_bytes()
