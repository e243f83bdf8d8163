import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable

import cv2

from .config import LANG_LIST, OCR_ALLOWLIST, OCR_BACKEND, OCR_POOL_SIZE, OCR_USE_GPU
from .exceptions import EngineUnavailable

logger = logging.getLogger(__name__)


@dataclass
class TextExtraction:
    text: str
    confidence: float  # 0-100


def _left_edge(bbox) -> float:
    try:
        return min(point[0] for point in bbox)
    except (TypeError, IndexError, ValueError):
        return 0.0

def join_segments(segments) -> TextExtraction:
    """
    Reads (bbox, text, score) segments as a single line: left to right,
    concatenated, confidence averaged and scaled to 0-100.
    """
    segments = [s for s in segments if isinstance(s[1], str) and s[1].strip()]
    if not segments:
        return TextExtraction(text="", confidence=0.0)
    segments.sort(key=lambda s: _left_edge(s[0]))
    text = "".join(s[1].strip() for s in segments)
    confidence = sum(float(s[2]) for s in segments) / len(segments)
    return TextExtraction(text=text, confidence=round(confidence * 100, 2))


class EasyOCRBackend:
    """EasyOCR reader restricted to A-Z0-9"""
    name = "easyocr"

    def __init__(self, languages=None, gpu=OCR_USE_GPU):
        self.languages = languages or LANG_LIST
        self.gpu = gpu
        self.reader = None

    def load(self):
        import easyocr
        self.reader = easyocr.Reader(self.languages, gpu=self.gpu, verbose=False)

    def read(self, image) -> TextExtraction:
        results = self.reader.readtext(
            image,
            detail=1,
            allowlist=OCR_ALLOWLIST,
            paragraph=False,
            batch_size=1,
            workers=0,
        )
        return join_segments([r for r in results if len(r) >= 3])


class PaddleOCRBackend:
    """PaddleOCR reader; output filtered to A-Z0-9 by the plate resolver"""
    name = "paddleocr"

    def __init__(self, lang="en"):
        self.lang = lang
        self.ocr = None

    def load(self):
        from paddleocr import PaddleOCR
        self.ocr = PaddleOCR(use_angle_cls=False, lang=self.lang)

    def read(self, image) -> TextExtraction:
        # PaddleOCR pipelines expect a 3-channel BGR array
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        result = self.ocr.ocr(image)
        return join_segments(parse_paddle_result(result))


def parse_paddle_result(result):
    """Flattens the result shapes PaddleOCR releases have returned into (bbox, text, score) tuples."""
    segments = []
    if not result:
        return segments

    for line_result in result:
        if line_result is None:
            continue
        # PaddleX OCRResult object or dict
        if hasattr(line_result, 'rec_texts') or isinstance(line_result, dict):
            if isinstance(line_result, dict):
                fields = line_result
            else:
                fields = {k: getattr(line_result, k, None) for k in ('rec_texts', 'rec_scores', 'rec_boxes')}
            texts = list(fields.get('rec_texts') if fields.get('rec_texts') is not None else [])
            scores = list(fields.get('rec_scores') if fields.get('rec_scores') is not None else [])
            boxes = fields.get('rec_boxes')
            if boxes is None:
                boxes = [None] * len(texts)
            for box, text, score in zip(boxes, texts, scores):
                bbox = [[box[0], box[1]]] if box is not None and len(box) >= 2 else None
                segments.append((bbox, text, score))
        # Legacy format: [[bbox, (text, score)], ...]
        elif isinstance(line_result, list):
            for detection in line_result:
                if isinstance(detection, (list, tuple)) and len(detection) >= 2:
                    text_info = detection[1]
                    if isinstance(text_info, (tuple, list)) and len(text_info) >= 2:
                        segments.append((detection[0], text_info[0], text_info[1]))
    return segments


BACKENDS = {
    EasyOCRBackend.name: EasyOCRBackend,
    PaddleOCRBackend.name: PaddleOCRBackend,
}


class RecognitionEngine:
    """
    One OCR backend, initialized on first use and guarded by a lock.

    Readers are not thread-safe; `recognize` holds the lock for the whole call.
    """

    def __init__(self, backend):
        self.backend = backend
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _ensure_initialized(self):
        if self._initialized:
            return
        try:
            start_time = time.time()
            logger.info(f"Initializing {self.backend.name} engine...")
            self.backend.load()
            self._initialized = True
            logger.info(f"{self.backend.name} engine initialized in {time.time() - start_time:.2f}s")
        except Exception as e:
            logger.error(f"Failed to initialize {self.backend.name} engine: {e}")
            raise EngineUnavailable(f"Recognition temporarily unavailable: {e}") from e

    def initialize(self):
        with self._lock:
            self._ensure_initialized()

    def recognize(self, image) -> TextExtraction:
        with self._lock:
            self._ensure_initialized()
            try:
                return self.backend.read(image)
            except Exception as e:
                # Force a fresh load on the next call
                self._initialized = False
                logger.error(f"{self.backend.name} engine crashed: {e}")
                raise EngineUnavailable(f"Recognition temporarily unavailable: {e}") from e


class EnginePool:
    """
    Fixed set of recognition engines; each call checks one out exclusively.

    Size it to the number of requests expected to run recognition at once.
    """

    def __init__(self, backend_factory: Callable, size: int = 1):
        if size < 1:
            raise ValueError("Engine pool size must be at least 1")
        self.size = size
        self._engines = queue.Queue()
        for _ in range(size):
            self._engines.put(RecognitionEngine(backend_factory()))

    def recognize(self, image) -> TextExtraction:
        engine = self._engines.get()
        try:
            return engine.recognize(image)
        finally:
            self._engines.put(engine)

    def warm_up(self) -> int:
        """Initialize every idle engine now. Returns how many are ready."""
        engines = [self._engines.get() for _ in range(self.size)]
        ready = 0
        try:
            for engine in engines:
                try:
                    engine.initialize()
                    ready += 1
                except EngineUnavailable as e:
                    logger.warning(f"Engine warm-up failed: {e}")
        finally:
            for engine in engines:
                self._engines.put(engine)
        return ready


def create_engine_pool(backend: str = OCR_BACKEND, size: int = OCR_POOL_SIZE) -> EnginePool:
    try:
        backend_cls = BACKENDS[backend]
    except KeyError:
        raise ValueError(f"Unknown OCR backend '{backend}'. Choose from: {', '.join(BACKENDS)}")
    return EnginePool(backend_cls, size=size)
