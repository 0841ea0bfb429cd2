# src/typefont/matching/analytic.py

"""
Pixel based glyph comparison.

Every pixel pair is scored with a perceptual color distance measured in the
YIQ color space, and the share of pixels whose distance stays under a
threshold is the similarity.
"""

import asyncio
import logging

import numpy as np

from typefont.processing.image_processor import ImageSource, load_image, resize, to_bgr

DEFAULT_ANALYTIC_COMPARISON_THRESHOLD = 0.5
DEFAULT_ANALYTIC_COMPARISON_SIZE = 128

# Largest possible YIQ delta, between black and white.
MAX_YIQ_DELTA = 35215.0

logger = logging.getLogger(__name__)


def _yiq(bgr: np.ndarray):
    b, g, r = (bgr[..., i].astype(np.float64) for i in range(3))
    y = r * 0.29889531 + g * 0.58662247 + b * 0.11448223
    i = r * 0.59597799 - g * 0.27417610 - b * 0.32180189
    q = r * 0.21147017 - g * 0.52261711 + b * 0.31114694
    return y, i, q


def color_delta(first: np.ndarray, second: np.ndarray) -> np.ndarray:
    """
    Per-pixel color distance of two equally sized images, normalized to [0, 1].

    Alpha is blended onto white before measuring.
    """
    y1, i1, q1 = _yiq(to_bgr(first))
    y2, i2, q2 = _yiq(to_bgr(second))
    delta = 0.5053 * (y1 - y2) ** 2 + 0.299 * (i1 - i2) ** 2 + 0.1957 * (q1 - q2) ** 2
    return np.sqrt(delta / MAX_YIQ_DELTA)


def diff_percent(first: np.ndarray, second: np.ndarray, threshold: float) -> float:
    """Share (0-1) of pixels whose color distance exceeds the threshold."""
    delta = color_delta(first, second)
    return float(np.count_nonzero(delta > threshold)) / delta.size


def _match_sizes(first: np.ndarray, second: np.ndarray):
    # The larger image is scaled down to the other one's dimensions.
    h1, w1 = first.shape[:2]
    h2, w2 = second.shape[:2]
    if (h1, w1) == (h2, w2):
        return first, second
    logger.debug(f"Scaling images of size {w1}x{h1} and {w2}x{h2} to the same size")
    if w1 * h1 > w2 * h2:
        return resize(first, w2, h2), second
    return first, resize(second, w1, h1)


async def compare_analytic(
    first: ImageSource,
    second: ImageSource,
    threshold: float = DEFAULT_ANALYTIC_COMPARISON_THRESHOLD,
    scale_to_same_size: bool = False,
    size: int = DEFAULT_ANALYTIC_COMPARISON_SIZE,
) -> float:
    """
    Compares two images pixel by pixel.

    Args:
        first: The first image source (array, path, bytes or data URL).
        second: The second image source.
        threshold: Normalized color distance above which a pixel differs.
        scale_to_same_size: Resize both images to size x size first.
        size: Side used when scale_to_same_size is set.

    Returns:
        float: The similarity percentage, 100 for identical images.

    Raises:
        LoadError: If either image cannot be decoded.
    """
    img, img1 = await asyncio.gather(load_image(first), load_image(second))

    if scale_to_same_size:
        img = resize(img, size, size)
        img1 = resize(img1, size, size)
    else:
        img, img1 = _match_sizes(img, img1)

    return 100 - diff_percent(img, img1, threshold) * 100
