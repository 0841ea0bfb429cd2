"""Tests for image preparation, OCR result handling and the full identification."""

import time

import cv2
import numpy as np
import pytest

from typefont.app_logic.pipeline import identify_font, recognize_image
from typefont.errors import LoadError, RecognitionTimeoutError
from typefont.processing.image_processor import encode_data_url, invert, needs_inversion, prepare_for_recognition
from typefont.processing.ocr_handler import (
    BoundingBox,
    DetectedSymbol,
    RecognitionResult,
    recognize_text,
    shutdown_recognition,
    split_word,
)
from typefont.utils.config import RecognitionOptions


class TestOcrResults:

    def test_split_word_into_characters(self):
        bbox = [[10, 5], [70, 5], [70, 25], [10, 25]]

        symbols = split_word(bbox, "ab-c", 0.8)

        assert [symbol.text for symbol in symbols] == ["a", "b", "c"]
        assert symbols[0].bbox == BoundingBox(10, 5, 25, 25)
        assert symbols[2].bbox == BoundingBox(55, 5, 70, 25)
        assert symbols[0].confidence == pytest.approx(80)

    def test_split_word_with_degenerate_box(self):
        assert split_word([[10, 5], [10, 5], [10, 5], [10, 5]], "a", 0.9) == []

    def test_symbol_from_contract_dict(self):
        symbol = DetectedSymbol.from_dict({"text": "Q", "confidence": 91, "bbox": {"x0": 1, "y0": 2, "x1": 3, "y1": 4}})

        assert symbol == DetectedSymbol("Q", 91.0, BoundingBox(1, 2, 3, 4))

    def test_result_text(self):
        result = RecognitionResult([DetectedSymbol(c, 90, BoundingBox(0, 0, 1, 1)) for c in "Hi"])

        assert result.text == "Hi"


class TestPrepareForRecognition:

    def test_dark_background_is_inverted(self, glyph):
        prepared = prepare_for_recognition(invert(glyph("a")))

        assert not needs_inversion(prepared)
        np.testing.assert_array_equal(prepared, glyph("a"))

    def test_without_binarization(self):
        image = np.full((4, 4), 30, dtype=np.uint8)

        prepared = prepare_for_recognition(image, binarization=False)

        assert prepared.shape == (4, 4, 3)
        assert (prepared == 30).all()


class SlowRecognizer:

    def recognize(self, image):
        time.sleep(0.5)
        return RecognitionResult()


class TestRecognizeText:

    @pytest.mark.asyncio
    async def test_timeout(self):
        with pytest.raises(RecognitionTimeoutError) as excinfo:
            await recognize_text(SlowRecognizer(), np.zeros((2, 2), dtype=np.uint8), 0.05, "slow.png")

        assert excinfo.value.operation == "slow.png"
        assert isinstance(excinfo.value, TimeoutError)

    @pytest.mark.asyncio
    async def test_shutdown_after_timeout_does_not_wait(self, stub_recognizer):
        with pytest.raises(RecognitionTimeoutError):
            await recognize_text(SlowRecognizer(), np.zeros((2, 2), dtype=np.uint8), 0.05)

        started = time.monotonic()
        shutdown_recognition()
        assert time.monotonic() - started < 0.3

        result = await recognize_text(stub_recognizer([]), np.zeros((2, 2), dtype=np.uint8), 1)
        assert result.symbols == []

    @pytest.mark.asyncio
    async def test_recognize_image_extracts_glyphs(self, text_line, tmp_path, stub_recognizer):
        image, symbols = text_line("abc")
        symbols[1] = DetectedSymbol("b", 5, symbols[1].bbox)
        path = tmp_path / "line.png"
        cv2.imwrite(str(path), image)
        recognizer = stub_recognizer(symbols)

        recognition = await recognize_image(str(path), recognizer, RecognitionOptions())

        assert set(recognition.glyphs) == {"a", "c"}
        np.testing.assert_array_equal(recognizer.images[0], image)

    @pytest.mark.asyncio
    async def test_missing_image(self, tmp_path, stub_recognizer):
        with pytest.raises(LoadError):
            await recognize_image(str(tmp_path / "missing.png"), stub_recognizer([]), RecognitionOptions())


class TestIdentifyFont:

    @pytest.mark.asyncio
    async def test_ranks_the_corpus(self, glyph, text_line, write_corpus, stub_recognizer):
        image, symbols = text_line("abc")
        alphabet = {char: glyph(char) for char in "abcxyz"}
        index_path, fonts_dir = write_corpus({
            "Other": ({"author": "B"}, {char: invert(img) for char, img in alphabet.items()}),
            "Same": ({"author": "A"}, alphabet),
        })
        progress = []
        options = RecognitionOptions(
            fonts_index=index_path,
            fonts_directory=fonts_dir,
            progress=lambda name, scores, fraction: progress.append((name, fraction)),
        )

        ranking = await identify_font(encode_data_url(image), options, recognizer=stub_recognizer(symbols))

        assert [font.to_dict() for font in ranking] == [
            {"author": "A", "name": "Same", "similarity": 100},
            {"author": "B", "name": "Other", "similarity": 0},
        ]
        assert all(font.symbol_count == 3 for font in ranking)
        assert sorted(fraction for _, fraction in progress) == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_missing_index_aborts(self, text_line, tmp_path, stub_recognizer):
        image, symbols = text_line("a")
        options = RecognitionOptions(fonts_index=str(tmp_path / "index.json"), fonts_directory=f"{tmp_path}/")

        with pytest.raises(LoadError):
            await identify_font(image, options, recognizer=stub_recognizer(symbols))
