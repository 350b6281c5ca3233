"""
Streaming title and link extraction for LinkScout.

The body is decoded and tokenized chunk by chunk, so a page is never held in
memory as a whole. Text runs are attributed to the ``<title>`` or to the
anchor currently open; everything else is ignored.
"""
from __future__ import annotations

import asyncio
import codecs
from html.parser import HTMLParser
from typing import AsyncIterable, List, Optional, Tuple

from aiohttp import ClientError
from bs4.dammit import EncodingDetector

from link_scout.crawler.classifier import LinkClassifier
from link_scout.crawler.models import Link, Page
from link_scout.logger import get_logger

__all__ = ("LinkExtractor",)

logger = get_logger(__name__)

_FALLBACK_ENCODING = "utf-8"


def _decoder_for(encoding: Optional[str]) -> codecs.IncrementalDecoder:
    try:
        factory = codecs.getincrementaldecoder(encoding or _FALLBACK_ENCODING)
    except LookupError:
        logger.debug("Unknown encoding %r, falling back to %s", encoding, _FALLBACK_ENCODING)
        factory = codecs.getincrementaldecoder(_FALLBACK_ENCODING)
    return factory(errors="replace")


class _TokenStream(HTMLParser):
    """Incremental tokenizer that fills one :class:`Page` in place."""

    def __init__(
        self,
        page: Page,
        classifier: LinkClassifier,
        encoding: Optional[str],
        base: Optional[str],
    ) -> None:
        super().__init__(convert_charrefs=True)
        self.page = page
        self.base = base
        self.failed = False
        self._classifier = classifier
        self._encoding = encoding
        self._decoder: Optional[codecs.IncrementalDecoder] = None
        self._in_title = False
        self._link: Optional[Link] = None
        self._text: List[str] = []

    # feeding -----------------------------------------------------------------

    def consume(self, chunk: bytes) -> bool:
        """Tokenize one chunk; False once the tokenizer gave up."""
        if self._decoder is None:
            encoding = self._encoding or EncodingDetector.find_declared_encoding(chunk, is_html=True)
            self._decoder = _decoder_for(encoding)
        return self._feed(self._decoder.decode(chunk))

    def finish(self) -> None:
        if not self.failed:
            if self._decoder is not None:
                self._feed(self._decoder.decode(b"", final=True))
            try:
                self.close()
            except (AssertionError, ValueError) as exc:
                self._stop(exc)
        self._flush()

    def _feed(self, text: str) -> bool:
        if self.failed:
            return False
        try:
            self.feed(text)
        # html.parser reports broken internal state with AssertionError
        except (AssertionError, ValueError) as exc:
            self._stop(exc)
        return not self.failed

    def _stop(self, exc: Exception) -> None:
        logger.debug("Tokenizer stopped on %s: %s", self.page.address, exc)
        self.failed = True

    # token handlers ------------------------------------------------------------

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self._flush()
        if tag == "title":
            self._in_title = True
        elif tag == "a":
            self._link = self._anchor(attrs)

    def handle_endtag(self, tag: str) -> None:
        self._flush()
        if tag == "title":
            self._in_title = False
        elif tag == "a":
            self._link = None

    def handle_data(self, data: str) -> None:
        self._text.append(data)

    # helpers -------------------------------------------------------------------

    def _anchor(self, attrs: List[Tuple[str, Optional[str]]]) -> Optional[Link]:
        for key, value in attrs:
            if key.lower() != "href":
                continue
            link = self._classifier.classify(value or "", self.page.address, self.base)
            self.page.links.append(link)
            return link
        return None

    def _flush(self) -> None:
        """Attribute the text run collected since the last tag."""
        if not self._text:
            return
        text = "".join(self._text).strip()
        self._text.clear()
        if not text:
            return
        if self._in_title:
            self.page.title += text
        elif self._link is not None:
            self._link.text += text


class LinkExtractor:
    """Builds a :class:`Page` from a stream of body chunks."""

    def __init__(self, classifier: LinkClassifier) -> None:
        self.classifier = classifier

    async def extract(
        self,
        address: str,
        chunks: AsyncIterable[bytes],
        encoding: Optional[str] = None,
        status: Optional[int] = None,
        base: Optional[str] = None,
    ) -> Page:
        """
        Tokenize *chunks* in a single pass and return the page found there.

        A transport error or timeout while reading, or markup the tokenizer
        cannot get past, ends extraction early; whatever was collected up to
        that point is returned. Relative links resolve against *base*, or
        against *address* when no base is given.
        """
        page = Page(address=address, status=status)
        stream = _TokenStream(page, self.classifier, encoding, base)
        try:
            async for chunk in chunks:
                if not stream.consume(chunk):
                    break
        except (asyncio.TimeoutError, ClientError) as exc:
            logger.debug("Body of %s truncated: %r", address, exc)
        stream.finish()
        return page
