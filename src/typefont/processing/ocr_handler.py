# src/typefont/processing/ocr_handler.py

"""
A wrapper module for the 'easyocr' library.

This module defines the recognition result types consumed by the glyph
extractor, an easyocr-backed recognizer that reports one symbol per
character, and the coroutine that runs any recognizer under a timeout.
"""

import asyncio
import logging
import string
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Mapping, NamedTuple, Optional, Protocol

import easyocr
import numpy as np

from typefont.errors import RecognitionTimeoutError

# --- Module-level Globals ---

# Lazy initialization of the reader. This can be slow, so we do it once.
_OCR_READER: Optional[easyocr.Reader] = None

# Executor for recognition calls, kept apart from the event loop's default one.
_OCR_EXECUTOR: Optional[ThreadPoolExecutor] = None

# Characters the recognizer is allowed to report.
CHARACTER_ALLOWLIST = string.ascii_letters + string.digits

logger = logging.getLogger(__name__)


# --- Type Definitions ---

class BoundingBox(NamedTuple):
    """Pixel rectangle of a symbol, x1 and y1 exclusive."""
    x0: int
    y0: int
    x1: int
    y1: int


@dataclass(frozen=True)
class DetectedSymbol:
    """A single recognized character with its confidence (0-100) and location."""
    text: str
    confidence: float
    bbox: BoundingBox

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectedSymbol":
        """Builds a symbol from the {text, confidence, bbox: {x0, y0, x1, y1}} shape."""
        box = data["bbox"]
        return cls(
            text=data["text"],
            confidence=float(data["confidence"]),
            bbox=BoundingBox(int(box["x0"]), int(box["y0"]), int(box["x1"]), int(box["y1"])),
        )


@dataclass
class RecognitionResult:
    """Ordered symbols detected in an image."""
    symbols: List[DetectedSymbol] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(symbol.text for symbol in self.symbols)


class TextRecognizer(Protocol):
    """Anything able to turn an image into a RecognitionResult."""

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        ...


# --- Functions ---

def _get_ocr_reader() -> easyocr.Reader:
    """
    Lazily initializes and returns the singleton easyocr.Reader instance.
    """
    global _OCR_READER
    if _OCR_READER is None:
        logger.info("Initializing easyocr.Reader for the first time...")
        try:
            _OCR_READER = easyocr.Reader(['en'], gpu=False)
            logger.info("easyocr.Reader initialized successfully.")
        except Exception as e:
            logger.error(f"Fatal error during easyocr.Reader initialization: {e}")
            raise
    return _OCR_READER


def _get_ocr_executor() -> ThreadPoolExecutor:
    global _OCR_EXECUTOR
    if _OCR_EXECUTOR is None:
        _OCR_EXECUTOR = ThreadPoolExecutor(thread_name_prefix="typefont-ocr")
    return _OCR_EXECUTOR


def shutdown_recognition():
    """
    Releases the recognition executor without waiting for running calls.

    A recognition that timed out keeps its thread busy until the recognizer
    returns; this drops the executor anyway and cancels queued calls. The
    next recognize_text call starts a fresh executor.
    """
    global _OCR_EXECUTOR
    if _OCR_EXECUTOR is not None:
        _OCR_EXECUTOR.shutdown(wait=False, cancel_futures=True)
        _OCR_EXECUTOR = None


def split_word(bbox, text: str, confidence: float) -> List[DetectedSymbol]:
    """
    Breaks a word-level easyocr detection into per-character symbols.

    easyocr reports boxes for words or lines, not characters, so each
    character gets an equal share of the word box width.

    Args:
        bbox: Four points [top-left, top-right, bottom-right, bottom-left].
        text: The recognized word.
        confidence: easyocr confidence in [0, 1].

    Returns:
        The alphanumeric characters of the word as DetectedSymbol objects,
        with confidence scaled to [0, 100].
    """
    top_left = bbox[0]
    bottom_right = bbox[2]
    x0, y0 = int(top_left[0]), int(top_left[1])
    x1, y1 = int(bottom_right[0]), int(bottom_right[1])

    if not text or x1 <= x0 or y1 <= y0:
        return []

    char_width = (x1 - x0) / len(text)
    symbols = []
    for i, char in enumerate(text):
        if not char.isalnum():
            continue
        char_x0 = int(x0 + i * char_width)
        char_x1 = int(x0 + (i + 1) * char_width)
        if char_x1 <= char_x0:
            continue
        symbols.append(DetectedSymbol(char, float(confidence) * 100, BoundingBox(char_x0, y0, char_x1, y1)))
    return symbols


class EasyOcrRecognizer:
    """TextRecognizer backed by the shared easyocr reader."""

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        reader = _get_ocr_reader()
        # The result is a list of (bbox, text, confidence)
        results = reader.readtext(image, detail=1, paragraph=False, allowlist=CHARACTER_ALLOWLIST)

        symbols: List[DetectedSymbol] = []
        for (bbox, text, confidence) in results:
            symbols.extend(split_word(bbox, text.strip(), confidence))

        logger.info(f"OCR complete. Found {len(symbols)} characters in {len(results)} text blocks.")
        return RecognitionResult(symbols)


async def recognize_text(
    recognizer: TextRecognizer,
    image: np.ndarray,
    timeout: float,
    source: str = "image",
) -> RecognitionResult:
    """
    Runs a recognizer on the recognition executor, bounded by a timeout.

    A blocking recognizer cannot be interrupted: on timeout the coroutine
    fails at once but the worker thread runs until the recognizer returns.
    Callers that exit right after a failure should call shutdown_recognition()
    rather than wait for it.

    Raises:
        RecognitionTimeoutError: If recognition takes longer than timeout seconds.
    """
    loop = asyncio.get_running_loop()
    try:
        call = loop.run_in_executor(_get_ocr_executor(), recognizer.recognize, image)
        return await asyncio.wait_for(call, timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"Text recognition of {source} exceeded {timeout:g}s")
        raise RecognitionTimeoutError(source, timeout) from e
