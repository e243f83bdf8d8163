import io
import logging
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, ImageOps

from .config import ALLOWED_EXTENSIONS, MAX_FILE_SIZE
from .exceptions import FileSizeError, InvalidImageError

logger = logging.getLogger(__name__)

def validate_image(file_content: bytes, filename: Optional[str]) -> None:
    """
    Checks size, extension and integrity of an uploaded image.
    Raises FileSizeError or InvalidImageError.
    """
    if not file_content:
        raise InvalidImageError("Empty image upload")

    if len(file_content) > MAX_FILE_SIZE:
        raise FileSizeError(f"File size exceeds {MAX_FILE_SIZE // (1024*1024)}MB limit")

    if filename:
        file_ext = Path(filename).suffix.lower()
        if file_ext not in ALLOWED_EXTENSIONS:
            raise InvalidImageError(f"Unsupported file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    try:
        image = Image.open(io.BytesIO(file_content))
        image.verify()
    except Exception:
        raise InvalidImageError("Invalid or corrupted image file")

def load_image(source) -> np.ndarray:
    """
    Decodes raw bytes or a file path into an RGB NumPy array,
    applying the EXIF orientation some cameras store instead of rotating pixels.
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(source)
        image = ImageOps.exif_transpose(image)
        image = image.convert("RGB")
        return np.array(image)
    except Exception as e:
        raise InvalidImageError(f"Failed to process image: {str(e)}")
