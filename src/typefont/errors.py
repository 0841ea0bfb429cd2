# src/typefont/errors.py

"""
Exception hierarchy for Typefont.

Every failure raised by the recognition and matching pipeline derives from
TypefontError, so a caller can catch one type and still get a message that
names the offending resource (an image source, a font document, a symbol).
"""

from typing import Optional


class TypefontError(Exception):
    """Base class for all errors raised by Typefont."""


class LoadError(TypefontError):
    """An image or a resource could not be loaded."""

    def __init__(self, source: str, reason: Optional[str] = None):
        self.source = source
        self.reason = reason
        message = f"Unable to load {source}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ParseError(TypefontError):
    """A document was fetched but its content is not valid JSON."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"Unable to parse {source} content")


class SchemaError(TypefontError):
    """A document parsed correctly but does not have the expected structure."""

    def __init__(self, source: str, expected_shape: str):
        self.source = source
        self.expected_shape = expected_shape
        super().__init__(
            f"The JSON structure of {source} does not meet the established format for {expected_shape}"
        )


class RecognitionTimeoutError(TypefontError, TimeoutError):
    """An operation exceeded its time budget (text recognition)."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"Unable to recognize {operation} within {timeout:g}s")


class ComparisonError(TypefontError):
    """A comparator failed for a specific glyph pair."""

    def __init__(self, symbol: str, reason: Optional[str] = None):
        self.symbol = symbol
        message = f"Comparison failed for symbol '{symbol}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
