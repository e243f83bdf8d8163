# platewatch/dependencies.py
# Process-wide collaborators, built on first use and injectable via FastAPI overrides

from functools import lru_cache

from .alerts import AlertDispatcher, RecipientDirectory
from .broadcast import ConnectionManager
from .config import OCR_BACKEND, OCR_POOL_SIZE, S3_ENABLED, UPLOAD_DIR
from .database import SessionLocal
from .notifications import SmtpEmailTransport
from .ocr import create_engine_pool
from .pipeline import PlatePipeline
from .s3_utils import S3Manager
from .storage import ImageStore
from .store import PlateStore

connection_manager = ConnectionManager()


@lru_cache(maxsize=None)
def get_store() -> PlateStore:
    return PlateStore(SessionLocal)


@lru_cache(maxsize=None)
def get_engine_pool():
    return create_engine_pool(OCR_BACKEND, OCR_POOL_SIZE)


@lru_cache(maxsize=None)
def get_image_store() -> ImageStore:
    s3_manager = S3Manager() if S3_ENABLED else None
    return ImageStore(UPLOAD_DIR, s3_manager=s3_manager)


@lru_cache(maxsize=None)
def get_pipeline() -> PlatePipeline:
    store = get_store()
    dispatcher = AlertDispatcher(
        store,
        RecipientDirectory.from_config(),
        email_transport=SmtpEmailTransport(),
    )
    return PlatePipeline(
        engine=get_engine_pool(),
        store=store,
        dispatcher=dispatcher,
        broadcaster=connection_manager,
        image_store=get_image_store(),
    )


def get_broadcaster() -> ConnectionManager:
    return connection_manager
