"""
Pytest configuration and shared fixtures.

Provides synthetic glyph images drawn with OpenCV, a corpus writer that lays
out index and font documents on disk, and a recognizer stub standing in for
the OCR engine.
"""

import json
from pathlib import Path
from typing import Callable, Dict, List

import cv2
import numpy as np
import pytest

from typefont.processing.image_processor import DATA_URL_PREFIX, encode_data_url
from typefont.processing.ocr_handler import BoundingBox, DetectedSymbol, RecognitionResult

GLYPH_SIZE = 64


def draw_glyph(char: str, size: int = GLYPH_SIZE) -> np.ndarray:
    """Black character on a white square, pure 0/255 values."""
    image = np.full((size, size), 255, dtype=np.uint8)
    cv2.putText(image, char, (size // 6, size * 3 // 4), cv2.FONT_HERSHEY_SIMPLEX, size / 40, 0, 3)
    # Newer OpenCV releases antialias text whatever line type is requested.
    return np.where(image < 128, 0, 255).astype(np.uint8)


def encode_alpha(glyphs: Dict[str, np.ndarray]) -> Dict[str, str]:
    """Base64 PNG payloads, as stored in the "alpha" mapping of a font document."""
    return {symbol: encode_data_url(image)[len(DATA_URL_PREFIX):] for symbol, image in glyphs.items()}


class StubRecognizer:
    """Returns a fixed recognition result and records the images it was given."""

    def __init__(self, symbols: List[DetectedSymbol]):
        self.symbols = symbols
        self.images = []

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        self.images.append(image)
        return RecognitionResult(list(self.symbols))


@pytest.fixture
def glyph() -> Callable[..., np.ndarray]:
    return draw_glyph


@pytest.fixture
def write_corpus(tmp_path: Path):
    """
    Writes a corpus under tmp_path and returns (index path, fonts directory).

    Usage: write_corpus({"font-name": ({"author": ...}, {"a": array, ...})})
    """
    def _write(fonts: Dict[str, tuple]):
        fonts_dir = tmp_path / "fonts"
        for name, (meta, glyphs) in fonts.items():
            font_dir = fonts_dir / name
            font_dir.mkdir(parents=True)
            document = {"meta": meta, "alpha": encode_alpha(glyphs)}
            (font_dir / "data.json").write_text(json.dumps(document), encoding="utf-8")
        index_path = tmp_path / "index.json"
        index_path.write_text(json.dumps({"index": list(fonts)}), encoding="utf-8")
        return str(index_path), f"{fonts_dir}/"

    return _write


@pytest.fixture
def text_line():
    """
    Lays glyphs side by side on one line.

    Returns (image, symbols) where symbols carry each glyph's bounding box.
    """
    def _compose(chars: str, confidence: float = 90.0):
        glyphs = [draw_glyph(char) for char in chars]
        image = np.hstack(glyphs)
        symbols = [
            DetectedSymbol(char, confidence, BoundingBox(i * GLYPH_SIZE, 0, (i + 1) * GLYPH_SIZE, GLYPH_SIZE))
            for i, char in enumerate(chars)
        ]
        return image, symbols

    return _compose


@pytest.fixture
def stub_recognizer():
    return StubRecognizer
