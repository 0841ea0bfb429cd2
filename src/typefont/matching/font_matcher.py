# src/typefont/matching/font_matcher.py

"""
Ranks the fonts of a corpus against the glyphs recognized in an image.

This module defines the FontMatcher class, responsible for the final stage of
the font identification workflow. Every font of the corpus is fetched and
compared concurrently: the recognized glyphs and the font's reference glyphs
are reduced to the symbols they share, each shared symbol is scored by both
comparators, and the mean score becomes the font's similarity. Fonts are then
sorted by similarity, best first.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from typefont.matching.aggregator import SymbolScore, average_similarity, compare_glyph_sets
from typefont.matching.glyphs import GlyphSet, reduce_domain
from typefont.storage.font_storage import FontRepository
from typefont.utils.config import ProgressCallback, RecognitionOptions

# Set up a logger for this module
logger = logging.getLogger(__name__)


@dataclass
class FontScore:
    """
    The outcome of comparing one font.

    symbol_count is the number of symbols the font and the image have in
    common; zero means nothing could be compared and similarity is 0.
    """
    name: str
    similarity: float
    symbol_count: int
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """The font metadata augmented with its name and similarity."""
        result = dict(self.meta)
        result["similarity"] = self.similarity
        result["name"] = self.name
        return result


class FontMatcher:
    """
    Compares recognized glyphs against every font of a corpus.
    """

    def __init__(self, repository: FontRepository, options: Optional[RecognitionOptions] = None):
        """
        Args:
            repository: Where the fonts are fetched from.
            options: Comparison options shared by every font.
        """
        self.repository = repository
        self.options = options or RecognitionOptions()

    async def score_font(self, name: str, recognized: GlyphSet):
        """
        Fetches one font and compares it with the recognized glyphs.

        The recognized set is not modified; the domain is reduced on a copy.

        Returns:
            A tuple (FontScore, per-symbol scores).
        """
        font = await self.repository.fetch_font(name)
        symbols = recognized.copy()
        alphabet = font.glyphs.copy()

        count = reduce_domain(symbols, alphabet)
        if count == 0:
            logger.warning(f"Font '{name}' has no symbol in common with the recognized text.")
            scores: Dict[str, SymbolScore] = {}
            similarity = 0.0
        else:
            scores = await compare_glyph_sets(symbols, alphabet, self.options)
            similarity = average_similarity(scores)

        meta = font.meta
        score = FontScore(
            name=meta.get("name") or name,
            similarity=similarity,
            symbol_count=count,
            meta=meta,
        )
        logger.debug(f"Font '{name}' scored {similarity:.2f} over {count} symbols")
        return score, scores

    async def match_corpus(
        self,
        recognized: GlyphSet,
        index: Sequence[str],
        progress: Optional[ProgressCallback] = None,
    ) -> List[FontScore]:
        """
        Scores every font of the index and ranks them.

        Args:
            recognized: The glyphs recognized in the image. Treated as read-only.
            index: The names of the fonts to compare.
            progress: Called as progress(name, scores, fraction) after each font
                completes, fraction being the share of fonts done so far. It
                is no longer called once any font has failed.

        Returns:
            Every font's FontScore, sorted by similarity in descending order.

        Raises:
            TypefontError: As soon as any font fails to load or compare; no
                partial ranking is returned.
        """
        total = len(index)
        if total == 0:
            logger.warning("The fonts index is empty. Nothing to match.")
            return []

        logger.info(f"Matching {len(recognized)} recognized symbols against {total} fonts...")
        done = 0
        aborted = False

        async def run(name: str) -> FontScore:
            nonlocal done, aborted
            try:
                score, scores = await self.score_font(name, recognized)
            except Exception:
                aborted = True
                raise
            done += 1
            # Fonts still in flight after a failure belong to a rejected pass.
            if progress is not None and not aborted:
                progress(name, scores, done / total)
            return score

        results = await asyncio.gather(*(run(name) for name in index))

        # Sort the fonts by similarity score in descending order.
        ranking = sorted(results, key=lambda item: item.similarity, reverse=True)
        logger.info(f"Best match: '{ranking[0].name}' ({ranking[0].similarity:.2f})")
        return ranking
