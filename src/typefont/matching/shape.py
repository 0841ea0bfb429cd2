# src/typefont/matching/shape.py

"""
Perceptual glyph comparison.

Both images are scaled to the same small square, binarized, and compared
cell by cell. The share of cells that agree is the similarity, so the metric
looks at the overall silhouette of a glyph rather than at exact pixel values.
"""

import asyncio

import numpy as np

from typefont.processing.image_processor import ImageSource, load_image, resize, to_pixel_matrix

DEFAULT_PERCEPTUAL_COMPARISON_SIZE = 64


def binarized_matrix(image: np.ndarray, size: int) -> np.ndarray:
    """Scales an image to size x size and returns its Pixel matrix."""
    return to_pixel_matrix(resize(image, size, size))


def hamming_distance(first: np.ndarray, second: np.ndarray) -> int:
    """Counts the positions where two equally shaped matrices disagree."""
    if first.shape != second.shape:
        raise ValueError(f"Cannot compare matrices of shape {first.shape} and {second.shape}")
    return int(np.count_nonzero(first != second))


def bitmap_similarity(first: np.ndarray, second: np.ndarray) -> float:
    """Similarity percentage (0-100) of two binarized matrices."""
    distance = hamming_distance(first, second)
    return 100 - (distance / first.size * 100)


async def compare_shape(
    first: ImageSource,
    second: ImageSource,
    size: int = DEFAULT_PERCEPTUAL_COMPARISON_SIZE,
) -> float:
    """
    Compares two glyph images using the Hamming distance of their bitmaps.

    Args:
        first: The first image source.
        second: The second image source.
        size: Side of the square both images are scaled to.

    Returns:
        float: The similarity percentage, 100 for identical bitmaps.

    Raises:
        LoadError: If either image cannot be loaded.
    """
    images = await asyncio.gather(load_image(first), load_image(second))
    return bitmap_similarity(binarized_matrix(images[0], size), binarized_matrix(images[1], size))
