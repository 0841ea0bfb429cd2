# src/typefont/storage/font_storage.py

"""
Access to the font corpus.

A corpus is an index document listing font names plus one document per font
holding its metadata and the reference image of every character of its
alphabet:

    index.json                  {"index": ["font-name", "font-name-1", ...]}
    fonts/<font-name>/data.json {"meta": {"name": ..., "author": ..., "uri": ...},
                                 "alpha": {"a": "<base64 png>", "b": ..., ...}}

Every key and value of "meta" is passed through to the final result.
Documents are read from the local filesystem, or over HTTP when their
location is an http(s) URL.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import httpx

from typefont.errors import LoadError, ParseError, SchemaError
from typefont.matching.glyphs import GlyphImage, GlyphSet
from typefont.processing.image_processor import DATA_URL_PREFIX

DEFAULT_REQUEST_TIMEOUT = 2.0

logger = logging.getLogger(__name__)


@dataclass
class FontCandidate:
    """A font of the corpus: its name, pass-through metadata and reference glyphs."""
    name: str
    meta: Dict[str, Any] = field(default_factory=dict)
    glyphs: GlyphSet = field(default_factory=GlyphSet)


class FontRepository(Protocol):
    """Where the corpus index and the fonts come from."""

    async def fetch_index(self) -> List[str]:
        ...

    async def fetch_font(self, name: str) -> FontCandidate:
        ...


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


class FontStorage:
    """
    Reads a corpus laid out as an index document and one directory per font.

    The document of a font lives at fonts_directory + name + "/" + fonts_data,
    so fonts_directory is expected to end with a separator.
    """

    def __init__(
        self,
        fonts_index: str,
        fonts_directory: str,
        fonts_data: str = "data.json",
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            fonts_index: Path or URL of the index document.
            fonts_directory: Path or URL prefix of the font directories.
            fonts_data: File name of the document inside each font directory.
            request_timeout: Seconds allowed for one HTTP request.
            client: An httpx client to reuse for HTTP documents. When omitted a
                client is opened for each request.
        """
        self.fonts_index = str(fonts_index)
        self.fonts_directory = str(fonts_directory)
        self.fonts_data = fonts_data
        self.request_timeout = request_timeout
        self._client = client

    def font_location(self, name: str) -> str:
        return f"{self.fonts_directory}{name}/{self.fonts_data}"

    async def _read(self, location: str) -> str:
        if is_url(location):
            return await self._read_url(location)
        try:
            return await asyncio.to_thread(Path(location).read_text, encoding="utf-8")
        except OSError as e:
            logger.error(f"Unable to open {location}: {e}")
            raise LoadError(location, e.strerror or str(e)) from e

    async def _read_url(self, location: str) -> str:
        try:
            if self._client is not None:
                response = await self._client.get(location, timeout=self.request_timeout)
            else:
                async with httpx.AsyncClient(timeout=self.request_timeout) as client:
                    response = await client.get(location)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Unable to open {location}: {e}")
            raise LoadError(location, str(e)) from e
        return response.text

    async def fetch_document(self, location: str) -> Any:
        """
        Retrieves and deserializes a JSON document.

        Raises:
            LoadError: If the document cannot be read.
            ParseError: If its content is not valid JSON.
        """
        content = await self._read(location)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Unable to parse {location}: {e}")
            raise ParseError(location) from e

    async def fetch_index(self) -> List[str]:
        """
        Retrieves the ordered list of font names of the corpus.

        Raises:
            SchemaError: If the document has no list-valued "index" of strings.
        """
        document = await self.fetch_document(self.fonts_index)
        index = document.get("index") if isinstance(document, dict) else None
        if not isinstance(index, list) or not all(isinstance(name, str) for name in index):
            logger.error(f"{self.fonts_index} is not a valid fonts index")
            raise SchemaError(self.fonts_index, "the fonts index")
        logger.info(f"Loaded fonts index with {len(index)} fonts from {self.fonts_index}")
        return index

    async def fetch_font(self, name: str) -> FontCandidate:
        """
        Retrieves one font of the corpus.

        The reference images are kept encoded, as data URLs, until compared.

        Raises:
            SchemaError: If the document has no "alpha" mapping of base64 strings
                or its "meta" is not a mapping.
        """
        location = self.font_location(name)
        document = await self.fetch_document(location)
        if not isinstance(document, dict):
            raise SchemaError(location, "a font data file")

        alpha = document.get("alpha")
        meta = document.get("meta") or {}
        if not isinstance(alpha, dict) or not isinstance(meta, dict) or \
                not all(isinstance(data, str) for data in alpha.values()):
            logger.error(f"{location} is not a valid font data file")
            raise SchemaError(location, "a font data file")

        glyphs = GlyphSet(
            (symbol, GlyphImage(symbol=symbol, source=f"{DATA_URL_PREFIX}{data}"))
            for symbol, data in alpha.items()
        )
        logger.debug(f"Loaded font '{name}' with {len(glyphs)} glyphs")
        return FontCandidate(name=name, meta=dict(meta), glyphs=glyphs)
