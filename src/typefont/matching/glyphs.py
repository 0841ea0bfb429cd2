# src/typefont/matching/glyphs.py

"""
Glyph sets: per-character images keyed by their label.

A glyph set comes either from a recognized image (one crop per detected
symbol) or from a font document (one reference image per character of the
font's alphabet). Before two sets are compared they are reduced to the
labels they have in common.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from typefont.processing.image_processor import ImageSource, crop
from typefont.processing.ocr_handler import BoundingBox, RecognitionResult

# Symbols recognized with a lower confidence (0-100) are not compared.
DEFAULT_MIN_SYMBOL_CONFIDENCE = 15

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GlyphImage:
    """The image of one symbol, with where it came from and how sure the OCR was."""
    symbol: str
    source: ImageSource
    bbox: Optional[BoundingBox] = None
    confidence: float = 100.0


class GlyphSet(dict):
    """Mapping from a character label to its GlyphImage."""

    def copy(self) -> "GlyphSet":
        return GlyphSet(self)


def extract_glyphs(
    result: RecognitionResult,
    image: np.ndarray,
    min_confidence: float = DEFAULT_MIN_SYMBOL_CONFIDENCE,
) -> GlyphSet:
    """
    Crops every confidently recognized symbol out of the recognized image.

    A label seen more than once keeps the crop of its last occurrence.
    Symbols whose box falls outside the image, or has no area once clipped
    to it, are skipped.

    Args:
        result: The recognition result for the image.
        image: The image the recognizer was run on.
        min_confidence: Symbols below this confidence are skipped.

    Returns:
        GlyphSet: One glyph per distinct label.
    """
    glyphs = GlyphSet()
    for symbol in result.symbols:
        if symbol.confidence < min_confidence:
            logger.debug(f"Skipping '{symbol.text}' with low confidence ({symbol.confidence:.1f})")
            continue
        box = symbol.bbox
        source = crop(image, box.x0, box.y0, box.x1, box.y1)
        if source.size == 0:
            logger.debug(f"Skipping '{symbol.text}' with an empty bounding box {tuple(box)}")
            continue
        glyphs[symbol.text] = GlyphImage(
            symbol=symbol.text,
            source=source,
            bbox=box,
            confidence=symbol.confidence,
        )

    logger.info(f"Extracted {len(glyphs)} glyphs from {len(result.symbols)} recognized symbols.")
    return glyphs


def reduce_domain(first: GlyphSet, second: GlyphSet) -> int:
    """
    Removes from each set the labels the other one does not have, in place.

    Returns:
        int: The number of labels left in both sets. Zero means the two sets
        have no symbol in common and nothing can be compared.
    """
    for key in [key for key in first if key not in second]:
        del first[key]
    for key in [key for key in second if key not in first]:
        del second[key]
    return len(first)
