# platewatch/preprocess.py

import logging

import cv2
import numpy as np
from skimage import exposure

from .config import BINARIZE_THRESHOLD, NORMALIZE_MAX_HEIGHT, NORMALIZE_MAX_WIDTH

logger = logging.getLogger(__name__)

SHARPEN_KERNEL = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]], dtype=np.float32)

def fit_inside(img, max_width=NORMALIZE_MAX_WIDTH, max_height=NORMALIZE_MAX_HEIGHT):
    """Downscale to fit within max_width x max_height, keeping aspect ratio. Never enlarges."""
    h, w = img.shape[:2]
    scale = min(max_width / w, max_height / h)
    if scale >= 1.0:
        return img
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_AREA)

def to_grayscale(img):
    if img.ndim == 2:
        return img
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)

def stretch_contrast(gray_img):
    """Stretch the intensity histogram to the full 0-255 range."""
    stretched = exposure.rescale_intensity(gray_img, in_range='image', out_range=(0, 255))
    return stretched.astype(np.uint8)

def sharpen(img):
    return cv2.filter2D(img, -1, SHARPEN_KERNEL)

def binarize(img, threshold=BINARIZE_THRESHOLD):
    _, binary = cv2.threshold(img, threshold, 255, cv2.THRESH_BINARY)
    return binary

def normalize_for_ocr(image):
    """
    Full pipeline:
    - fit inside 800x600 (downscale only)
    - grayscale
    - contrast stretch
    - sharpen
    - global threshold

    Returns the original image untouched if any step fails.
    """
    try:
        img = fit_inside(image)
        gray = to_grayscale(img)
        stretched = stretch_contrast(gray)
        sharpened = sharpen(stretched)
        return binarize(sharpened)
    except Exception as e:
        logger.warning(f"Image normalization failed, using original image: {e}")
        return image
