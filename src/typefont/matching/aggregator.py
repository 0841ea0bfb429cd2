# src/typefont/matching/aggregator.py

"""
Symbol-by-symbol comparison of two glyph sets.

Both comparators run concurrently on every pair of glyphs sharing a label.
The first failure aborts the whole comparison.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Mapping

from typefont.errors import ComparisonError
from typefont.matching.analytic import compare_analytic
from typefont.matching.glyphs import GlyphImage, GlyphSet
from typefont.matching.shape import compare_shape
from typefont.utils.config import RecognitionOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolScore:
    """Similarity percentages of one glyph pair, as given by each comparator."""
    analytic: float
    shape: float

    @property
    def combined(self) -> float:
        return (self.analytic + self.shape) / 2


async def compare_symbol(
    symbol: str,
    first: GlyphImage,
    second: GlyphImage,
    options: RecognitionOptions,
) -> SymbolScore:
    """
    Scores one glyph pair with both comparators.

    Raises:
        ComparisonError: If either comparator fails; the original error is chained.
    """
    try:
        analytic, shape = await asyncio.gather(
            compare_analytic(
                first.source,
                second.source,
                threshold=options.analytic_comparison_threshold,
                scale_to_same_size=options.analytic_comparison_scale_to_same_size,
                size=options.analytic_comparison_size,
            ),
            compare_shape(first.source, second.source, size=options.perceptual_comparison_size),
        )
    except Exception as e:
        logger.error(f"Comparison of symbol '{symbol}' failed: {e}")
        raise ComparisonError(symbol, str(e)) from e

    logger.debug(f"Symbol '{symbol}': analytic={analytic:.2f} shape={shape:.2f}")
    return SymbolScore(analytic=analytic, shape=shape)


async def compare_glyph_sets(
    first: GlyphSet,
    second: GlyphSet,
    options: RecognitionOptions,
) -> Dict[str, SymbolScore]:
    """
    Compares two glyph sets already reduced to the same labels.

    Args:
        first: The recognized glyphs.
        second: The reference glyphs of a font.
        options: Comparison options.

    Returns:
        A mapping from each label to its SymbolScore. Empty, without waiting
        on anything, when the sets have no label.

    Raises:
        ComparisonError: As soon as any single symbol comparison fails.
    """
    symbols = list(first)
    if not symbols:
        return {}

    scores = await asyncio.gather(
        *(compare_symbol(symbol, first[symbol], second[symbol], options) for symbol in symbols)
    )
    return dict(zip(symbols, scores))


def average_similarity(scores: Mapping[str, SymbolScore]) -> float:
    """
    Mean of the combined score of every symbol.

    Raises:
        ValueError: If there is no score to average.
    """
    if not scores:
        raise ValueError("Cannot average an empty comparison result")
    return sum(score.combined for score in scores.values()) / len(scores)
