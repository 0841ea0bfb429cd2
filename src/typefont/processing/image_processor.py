# src/typefont/processing/image_processor.py

"""
Image surface primitives used by the recognition and comparison pipeline.

Images are handled as NumPy arrays in OpenCV's BGR(A) channel order. An image
source can be an array already in memory, a file path, raw encoded bytes, or
a portable "data:image/...;base64," string as stored in font documents. All
loaders raise LoadError naming the source when decoding fails.
"""

import asyncio
import base64
import binascii
import logging
from enum import IntEnum
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from typefont.errors import LoadError

# --- Constants for Processing ---
# Luma value separating the two binarization levels. Pixels darker than this
# are foreground (ink), the rest is background.
LUMA_THRESHOLD = 128
# Prefix of the portable string form produced by encode_data_url.
DATA_URL_PREFIX = "data:image/png;base64,"

ImageSource = Union[np.ndarray, bytes, str, Path]

logger = logging.getLogger(__name__)


class Pixel(IntEnum):
    """The two levels a binarized pixel can take."""
    BACKGROUND = 0
    FOREGROUND = 1


def describe_source(source: ImageSource) -> str:
    """Returns a short, log-friendly identifier for an image source."""
    if isinstance(source, np.ndarray):
        return f"<image {source.shape[1] if source.ndim > 1 else 0}x{source.shape[0]}>"
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} encoded bytes>"
    text = str(source)
    if text.startswith("data:"):
        return f"{text[:32]}..."
    return text


def _decode_buffer(buffer: bytes, source: ImageSource) -> np.ndarray:
    data = np.frombuffer(buffer, dtype=np.uint8)
    image = cv2.imdecode(data, cv2.IMREAD_UNCHANGED) if data.size else None
    if image is None:
        raise LoadError(describe_source(source), "not a decodable image")
    return image


def _data_url_payload(source: str) -> bytes:
    header, _, payload = source.partition(",")
    if not header.endswith(";base64"):
        raise LoadError(describe_source(source), "only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise LoadError(describe_source(source), f"invalid base64 payload ({e})") from e


def decode_image(source: ImageSource) -> np.ndarray:
    """
    Decodes an in-memory image source into a pixel array.

    Arrays are returned as they are; bytes and data URLs are decoded. Paths
    are read synchronously, use load_image from coroutines.

    Raises:
        LoadError: If the source cannot be read or decoded.
    """
    if isinstance(source, np.ndarray):
        if source.size == 0 or source.ndim not in (2, 3):
            raise LoadError(describe_source(source), "empty or malformed pixel array")
        return source
    if isinstance(source, (bytes, bytearray)):
        return _decode_buffer(bytes(source), source)
    if isinstance(source, str) and source.startswith("data:"):
        return _decode_buffer(_data_url_payload(source), source)
    try:
        buffer = Path(source).read_bytes()
    except OSError as e:
        raise LoadError(describe_source(source), e.strerror or str(e)) from e
    return _decode_buffer(buffer, source)


async def load_image(source: ImageSource) -> np.ndarray:
    """
    Loads an image source, suspending while a file is read from disk.

    Raises:
        LoadError: If the source cannot be read or decoded.
    """
    if isinstance(source, (str, Path)) and not str(source).startswith("data:"):
        try:
            buffer = await asyncio.to_thread(Path(source).read_bytes)
        except OSError as e:
            logger.error(f"Unable to read image file {source}: {e}")
            raise LoadError(describe_source(source), e.strerror or str(e)) from e
        return _decode_buffer(buffer, source)
    return decode_image(source)


def to_bgr(image: np.ndarray) -> np.ndarray:
    """
    Converts a grayscale or BGRA image to 3-channel BGR.

    Transparent pixels are blended onto a white background.
    """
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        alpha = image[..., 3:4].astype(np.float32) / 255
        blended = 255 + (image[..., :3].astype(np.float32) - 255) * alpha
        return np.rint(blended).astype(np.uint8)
    return image


def grayscale(image: np.ndarray) -> np.ndarray:
    """Returns a single-channel luma image."""
    if image.ndim == 2:
        return image
    return cv2.cvtColor(to_bgr(image), cv2.COLOR_BGR2GRAY)


def binarize(image: np.ndarray, threshold: int = LUMA_THRESHOLD) -> np.ndarray:
    """
    Turns an image into black and white.

    Foreground (luma below the threshold) becomes 0, background becomes 255.
    """
    gray = grayscale(image)
    # THRESH_BINARY maps values strictly above the threshold to maxval.
    _, binary = cv2.threshold(gray, threshold - 1, 255, cv2.THRESH_BINARY)
    return binary


def invert(image: np.ndarray) -> np.ndarray:
    """Reverses the colors of an image, leaving any alpha channel untouched."""
    if image.ndim == 3 and image.shape[2] == 4:
        inverted = image.copy()
        inverted[..., :3] = 255 - inverted[..., :3]
        return inverted
    return 255 - image


def needs_inversion(binary: np.ndarray) -> bool:
    """True when a binarized image holds more black pixels than white ones."""
    black = int(np.count_nonzero(binary == 0))
    return black > binary.size - black


def to_pixel_matrix(image: np.ndarray, threshold: int = LUMA_THRESHOLD) -> np.ndarray:
    """
    Binarizes an image into a matrix of Pixel values, in row-major order.

    Returns:
        A 2D uint8 array holding Pixel.FOREGROUND or Pixel.BACKGROUND.
    """
    gray = grayscale(image)
    return np.where(gray < threshold, Pixel.FOREGROUND, Pixel.BACKGROUND).astype(np.uint8)


def resize(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resizes an image, using area interpolation when shrinking."""
    h, w = image.shape[:2]
    if (w, h) == (width, height):
        return image
    interpolation = cv2.INTER_AREA if width * height < w * h else cv2.INTER_LINEAR
    return cv2.resize(image, (width, height), interpolation=interpolation)


def crop(image: np.ndarray, x0: int, y0: int, x1: int, y1: int) -> np.ndarray:
    """
    Extracts the rectangle [x0, x1) x [y0, y1) as an owned copy.

    The rectangle is clipped to the image bounds.
    """
    h, w = image.shape[:2]
    x0, x1 = max(0, int(x0)), min(w, int(x1))
    y0, y1 = max(0, int(y0)), min(h, int(y1))
    return image[y0:y1, x0:x1].copy()


def encode_data_url(image: np.ndarray) -> str:
    """Encodes an image as a "data:image/png;base64," string."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("Unable to encode image as PNG")
    return DATA_URL_PREFIX + base64.b64encode(buffer.tobytes()).decode("ascii")


def prepare_for_recognition(image: np.ndarray, binarization: bool = True) -> np.ndarray:
    """
    Prepares an image for OCR.

    When binarization is enabled the image is turned into black and white
    and inverted if black dominates, so the text ends up dark on a light
    background whatever the original polarity.

    Args:
        image: The decoded source image.
        binarization: Binarize the image before recognition.

    Returns:
        The image to hand to the recognizer and to crop glyphs from.
    """
    if image is None or image.size == 0:
        raise ValueError("Input image is empty.")

    if not binarization:
        return to_bgr(image)

    binary = binarize(image)
    if needs_inversion(binary):
        logger.debug("Binarized image is mostly dark, inverting it.")
        binary = invert(binary)
    return binary
