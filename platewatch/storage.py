# platewatch/storage.py

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from .exceptions import APIException, PersistenceFailure

logger = logging.getLogger(__name__)


class ImageStore:
    """
    Saves uploaded images under the upload directory and, when an S3 manager
    is given, mirrors them to S3. The S3 URL becomes the image reference; if
    the upload fails the local path is used instead.
    """

    def __init__(self, upload_dir, s3_manager=None):
        self.upload_dir = Path(upload_dir)
        self.s3_manager = s3_manager

    def save(self, image_bytes: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> str:
        ext = os.path.splitext(filename or "")[1].lower() or ".jpg"
        stored_name = f"{uuid.uuid4()}{ext}"

        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            local_path = self.upload_dir / stored_name
            local_path.write_bytes(image_bytes)
        except OSError as e:
            logger.error(f"Failed to save image locally: {e}")
            raise PersistenceFailure("Failed to store uploaded image") from e

        image_ref = f"uploads/{stored_name}"
        if self.s3_manager is None:
            return image_ref

        try:
            _, s3_url = self.s3_manager.upload_image(image_bytes, stored_name, content_type)
            return s3_url
        except APIException as s3_error:
            logger.warning(f"S3 upload failed, using local storage: {s3_error}")
            return image_ref
