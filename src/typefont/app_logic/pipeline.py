# src/typefont/app_logic/pipeline.py

"""
Orchestrates a full font identification.

The image is loaded, prepared and run through text recognition while the
corpus index is fetched; the recognized glyphs are then matched against
every font of the index.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from typefont.matching.font_matcher import FontMatcher, FontScore
from typefont.matching.glyphs import GlyphSet, extract_glyphs
from typefont.processing.image_processor import ImageSource, describe_source, load_image, prepare_for_recognition
from typefont.processing.ocr_handler import EasyOcrRecognizer, RecognitionResult, TextRecognizer, recognize_text
from typefont.storage.font_storage import FontRepository, FontStorage
from typefont.utils.config import RecognitionOptions

logger = logging.getLogger(__name__)


@dataclass
class ImageRecognition:
    """What was recognized in the image: the prepared image, the OCR output and the glyphs."""
    image: np.ndarray
    result: RecognitionResult
    glyphs: GlyphSet


async def recognize_image(
    source: ImageSource,
    recognizer: TextRecognizer,
    options: RecognitionOptions,
) -> ImageRecognition:
    """
    Loads an image, recognizes its text and extracts one glyph per symbol.

    Raises:
        LoadError: If the image cannot be loaded.
        RecognitionTimeoutError: If recognition exceeds text_recognition_timeout.
    """
    name = describe_source(source)
    image = prepare_for_recognition(await load_image(source), options.text_recognition_binarization)
    logger.info(f"Recognizing text in {name}...")
    result = await recognize_text(recognizer, image, options.text_recognition_timeout, name)
    glyphs = extract_glyphs(result, image, options.min_symbol_confidence)
    if not glyphs:
        logger.warning(f"No symbol of {name} reached the minimum confidence.")
    return ImageRecognition(image=image, result=result, glyphs=glyphs)


async def identify_font(
    source: ImageSource,
    options: Optional[RecognitionOptions] = None,
    recognizer: Optional[TextRecognizer] = None,
    repository: Optional[FontRepository] = None,
) -> List[FontScore]:
    """
    Recognizes the font of the text in an image.

    Args:
        source: The image (path, encoded bytes, data URL or pixel array).
        options: Recognition and comparison options; defaults when omitted.
        recognizer: The OCR engine. Defaults to EasyOcrRecognizer.
        repository: The font corpus. Defaults to a FontStorage built from
            fonts_index, fonts_directory and fonts_data.

    Returns:
        Every font of the corpus with its similarity, best match first.

    Raises:
        TypefontError: The first failure of any stage.
    """
    options = options or RecognitionOptions()
    recognizer = recognizer or EasyOcrRecognizer()
    repository = repository or FontStorage(
        options.fonts_index,
        options.fonts_directory,
        options.fonts_data,
        request_timeout=options.font_request_timeout,
    )

    recognition, index = await asyncio.gather(
        recognize_image(source, recognizer, options),
        repository.fetch_index(),
    )

    matcher = FontMatcher(repository, options)
    return await matcher.match_corpus(recognition.glyphs, index, options.progress)
