# src/typefont/utils/config.py

"""
Manages recognition and matching settings.

This module defines RecognitionOptions, an immutable set of every option the
pipeline understands together with its default value, and helpers to build it
from a mapping or load it from a JSON file. Keys may be written in the
camelCase form used by font corpora and config files (e.g.
"perceptualComparisonSize") or in snake_case.
"""

import json
import logging
import re
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

# Constants
APP_NAME = "typefont"
CONFIG_FILE_NAME = "config.json"

# Signature of the progress callback: (font name, per-symbol scores, fraction complete).
ProgressCallback = Callable[[str, Dict[str, Any], float], None]

# Set up a logger for this module
logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """
    Determines the appropriate application configuration directory based on the OS.

    Returns:
        Path: The absolute path to the configuration directory.
    """
    if sys.platform == "win32":
        # Windows: %APPDATA%/typefont
        return Path.home() / "AppData" / "Roaming" / APP_NAME
    elif sys.platform == "darwin":
        # macOS: ~/Library/Application Support/typefont
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        # Linux/other: ~/.config/typefont
        return Path.home() / ".config" / APP_NAME


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


_NUMBER = (int, float)
_TYPE_NAMES = {int: "int", _NUMBER: "number", bool: "bool", str: "str"}

# Expected type of every option read from a config file.
_OPTION_TYPES = {
    "perceptual_comparison_size": int,
    "min_symbol_confidence": _NUMBER,
    "analytic_comparison_threshold": _NUMBER,
    "analytic_comparison_scale_to_same_size": bool,
    "analytic_comparison_size": int,
    "text_recognition_timeout": _NUMBER,
    "text_recognition_binarization": bool,
    "fonts_index": str,
    "fonts_directory": str,
    "fonts_data": str,
    "font_request_timeout": _NUMBER,
}


@dataclass(frozen=True)
class RecognitionOptions:
    """
    Every option recognized by the pipeline, with its default.

    Attributes:
        perceptual_comparison_size: Side of the square bitmap used by the
            shape comparison.
        min_symbol_confidence: Minimum OCR confidence (0-100) for a symbol to
            enter the comparison queue.
        analytic_comparison_threshold: Per-pixel color distance (0-1) above
            which two pixels are considered different.
        analytic_comparison_scale_to_same_size: Resize both images to
            analytic_comparison_size before the pixel comparison.
        analytic_comparison_size: Side used when scaling for the pixel comparison.
        text_recognition_timeout: Seconds allowed for the OCR step.
        text_recognition_binarization: Binarize the image before OCR.
        fonts_index: Path or URL of the corpus index document.
        fonts_directory: Path or URL prefix of the per-font directories.
        fonts_data: File name of the font document inside each font directory.
        font_request_timeout: Seconds allowed for one HTTP request to the corpus.
        progress: Callback invoked each time a font has been compared.
    """
    perceptual_comparison_size: int = 64
    min_symbol_confidence: float = 15
    analytic_comparison_threshold: float = 0.5
    analytic_comparison_scale_to_same_size: bool = False
    analytic_comparison_size: int = 128
    text_recognition_timeout: float = 60
    text_recognition_binarization: bool = True
    fonts_index: str = "storage/index.json"
    fonts_directory: str = "storage/fonts/"
    fonts_data: str = "data.json"
    font_request_timeout: float = 2.0
    progress: Optional[ProgressCallback] = None

    def __post_init__(self):
        for name, expected in _OPTION_TYPES.items():
            value = getattr(self, name)
            # bool is an int subclass but never a valid number here.
            if isinstance(value, bool) != (expected is bool) or not isinstance(value, expected):
                raise ValueError(f"{name} must be of type {_TYPE_NAMES[expected]}, got {value!r}")
        if self.perceptual_comparison_size < 1:
            raise ValueError("perceptual_comparison_size must be a positive integer")
        if self.analytic_comparison_size < 1:
            raise ValueError("analytic_comparison_size must be a positive integer")
        if not 0 <= self.min_symbol_confidence <= 100:
            raise ValueError("min_symbol_confidence must lie in [0, 100]")
        if not 0 <= self.analytic_comparison_threshold <= 1:
            raise ValueError("analytic_comparison_threshold must lie in [0, 1]")
        if self.text_recognition_timeout <= 0:
            raise ValueError("text_recognition_timeout must be positive")
        if self.font_request_timeout <= 0:
            raise ValueError("font_request_timeout must be positive")
        if self.progress is not None and not callable(self.progress):
            raise ValueError("progress must be callable")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RecognitionOptions":
        """
        Builds options from a mapping, accepting camelCase or snake_case keys.

        Raises:
            ValueError: If a key is unknown or a value is out of range.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            name = key if key in known else _snake_case(key)
            if name not in known:
                raise ValueError(f"Unknown option '{key}'")
            kwargs[name] = value
        return cls(**kwargs)


def load_options(path: Optional[Union[str, Path]] = None, **overrides) -> RecognitionOptions:
    """
    Loads options from a JSON file, falling back to defaults.

    A missing file yields the defaults. A file that cannot be decoded is
    logged and the defaults are used instead. Keyword overrides (e.g. a
    progress callback) take precedence over the file.

    Args:
        path: The JSON file to read. Defaults to config.json in get_config_dir().

    Returns:
        RecognitionOptions: The validated options.
    """
    config_path = Path(path) if path is not None else get_config_dir() / CONFIG_FILE_NAME
    values: Dict[str, Any] = {}

    if not config_path.exists():
        logger.info(f"Config file not found at {config_path}. Using default options.")
    else:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                user_config = json.load(f)
            if not isinstance(user_config, dict):
                logger.error(f"Config file {config_path} does not hold a JSON object. Using default options.")
            else:
                values.update(user_config)
                logger.info(f"Successfully loaded configuration from {config_path}")
        except json.JSONDecodeError:
            logger.error(f"Could not decode JSON from {config_path}. Using default options.")

    values.update(overrides)
    return RecognitionOptions.from_mapping(values)
