# platewatch/s3_utils.py
# Optional mirror of detection images to an S3 bucket

import logging
import os
from datetime import datetime
from io import BytesIO
from typing import Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import (
    AWS_ACCESS_KEY_ID,
    AWS_S3_BASE_URL,
    AWS_S3_BUCKET_NAME,
    AWS_S3_REGION,
    AWS_SECRET_ACCESS_KEY,
)
from .exceptions import APIException

logger = logging.getLogger(__name__)

KEY_PREFIX = "detections"
DEFAULT_CONTENT_TYPE = "image/jpeg"
CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".webp": "image/webp",
}


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(os.path.splitext(filename)[1].lower(), DEFAULT_CONTENT_TYPE)

def object_key(stored_name: str, when: Optional[datetime] = None) -> str:
    """detections/YYYY/MM/DD/<stored name>; the stored name is already unique."""
    when = when or datetime.utcnow()
    return f"{KEY_PREFIX}/{when:%Y/%m/%d}/{stored_name}"


class S3Manager:
    def __init__(self, client=None, bucket_name: Optional[str] = AWS_S3_BUCKET_NAME, base_url: str = AWS_S3_BASE_URL):
        self.bucket_name = bucket_name
        self.base_url = base_url.rstrip("/")
        self._client = client or boto3.client(
            "s3",
            aws_access_key_id=AWS_ACCESS_KEY_ID,
            aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
            region_name=AWS_S3_REGION,
        )

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def upload_image(self, image_bytes: bytes, stored_name: str, content_type: Optional[str] = None) -> Tuple[str, str]:
        """Uploads one image. Returns (key, public URL); raises APIException on any S3 error."""
        key = object_key(stored_name)
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=BytesIO(image_bytes),
                ContentType=content_type or content_type_for(stored_name),
                Metadata={"service": "platewatch", "uploaded_at": datetime.utcnow().isoformat()},
            )
        except (ClientError, BotoCoreError) as e:
            code = e.response["Error"]["Code"] if isinstance(e, ClientError) else type(e).__name__
            logger.error(f"S3 upload of {key} failed ({code}): {e}")
            raise APIException(f"Failed to upload image to S3: {code}", 500) from e

        logger.info(f"Uploaded detection image to s3://{self.bucket_name}/{key}")
        return key, self.public_url(key)
