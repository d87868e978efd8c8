# src/pagefacts/services/streaming_service.py
import gc
import html as html_lib
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

from tqdm.auto import tqdm

from pagefacts.dom.document import DocumentModel, ParseOptions
from pagefacts.exceptions import ChunkParseError, ParseError
from pagefacts.model import HEADING_LEVELS, OptimizerSettings, PartialFactRecord, Strategy
from pagefacts.services.merge_service import ResultMerger
from pagefacts.services.partial_fields import (
    CATEGORY_MATCHERS, element_data, renumber_headings, resolve_targets, summarise,
)
from pagefacts.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

CHUNK_SHELL_START = '<!DOCTYPE html><html><head><meta charset="UTF-8"></head><body>'
CHUNK_SHELL_END = '</body></html>'

_TITLE_RE = re.compile(r'<title[^>]*>(.*?)</title>', re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r'<[^>]+>')
_DESCRIPTION_RES = (
    re.compile(r'<meta\s+name=["\']description["\']\s+content=["\']([^"\']*)["\'][^>]*>', re.IGNORECASE),
    re.compile(r'<meta\s+content=["\']([^"\']*)["\']\s+name=["\']description["\'][^>]*>', re.IGNORECASE),
)
_CANONICAL_RES = (
    re.compile(r'<link\s+rel=["\']canonical["\']\s+href=["\']([^"\']*)["\'][^>]*>', re.IGNORECASE),
    re.compile(r'<link\s+href=["\']([^"\']*)["\']\s+rel=["\']canonical["\'][^>]*>', re.IGNORECASE),
)
_HEADING_RES = {
    level: re.compile(rf'<{level}[^>]*>.*?</{level}>', re.IGNORECASE | re.DOTALL) for level in HEADING_LEVELS
}
_IMG_RE = re.compile(r'<img[^>]*>', re.IGNORECASE)
_LINK_RE = re.compile(r'<a\s(?:[^>]*\s)?href\s*=[^>]*>', re.IGNORECASE)
_HEADING_TAG_RE = re.compile(rb'<(/?)h([1-6])\b[^>]*>', re.IGNORECASE)


def _first_group(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _is_continuation(byte: int) -> bool:
    return (byte & 0xC0) == 0x80


def _utf8_boundary(data: bytes, cut: int, floor: int) -> int:
    """
    Nearest offset at or before `cut` (but after `floor`) that starts a UTF-8
    character. Moves forward instead when no such offset exists.
    """
    back = cut
    while floor < back < len(data) and _is_continuation(data[back]):
        back -= 1
    if back > floor:
        return back
    while cut < len(data) and _is_continuation(data[cut]):
        cut += 1
    return cut


class StreamingExtractionService:
    """
    Streaming strategy for very large documents.

    1. A parser-free regex pass pre-extracts title, description, canonical and
       tag counts from the raw markup.
    2. The markup is split into byte-bounded chunks that end on a tag boundary.
    3. Every chunk is wrapped in a minimal document shell, parsed and reduced
       to the partial category set. Chunks that fail to parse are skipped.
    4. Chunk results are merged in chunk order; pre-extracted fields take
       precedence over chunk fields with the same key.
    """

    def __init__(
            self,
            settings: Optional[OptimizerSettings] = None,
            reclaim: Callable[[], Any] = gc.collect,
            merger: Optional[ResultMerger] = None,
            parse_options: Optional[ParseOptions] = None,
    ):
        self.settings = settings or OptimizerSettings.from_config()
        self.reclaim = reclaim
        self.merger = merger or ResultMerger()
        self.parse_options = parse_options

    # -------- Pre-extraction --------

    @staticmethod
    def pre_extract(html: str) -> Dict[str, Any]:
        """Pulls the foundational fields straight out of the raw markup, no parsing."""
        results: Dict[str, Any] = {}

        title = _first_group((_TITLE_RE,), html)
        if title is not None:
            results["title"] = html_lib.unescape(_TAG_RE.sub("", title)).strip()

        description = _first_group(_DESCRIPTION_RES, html)
        if description is not None:
            results["description"] = html_lib.unescape(description).strip()

        canonical = _first_group(_CANONICAL_RES, html)
        if canonical is not None:
            results["canonical"] = canonical.strip()

        results["heading_counts"] = {
            level: sum(1 for _ in pattern.finditer(html)) for level, pattern in _HEADING_RES.items()
        }
        results["image_count"] = sum(1 for _ in _IMG_RE.finditer(html))
        results["link_count"] = sum(1 for _ in _LINK_RE.finditer(html))
        return results

    # -------- Chunking --------

    def chunk_html(self, html: str, chunk_size: Optional[int] = None) -> List[str]:
        """
        Splits markup into pieces of at most `chunk_size` UTF-8 bytes.

        A piece ends right after the last closing tag inside its window, or
        after the last '>' when the window has no closing tag, so no tag is cut
        in half. A window without any '>' is stretched up to the next one,
        which may exceed `chunk_size`. A cut never falls between a heading's
        opening and closing tags. Concatenating the pieces gives back the
        input exactly.
        """
        size = max(1, chunk_size or self.settings.chunk_size)
        data = html.encode("utf-8")
        total = len(data)
        chunks: List[str] = []
        pos = 0

        while pos < total:
            end = min(pos + size, total)
            cut = end - pos
            if end < total:
                cut = self._tag_boundary(data[pos:end])
                if cut <= 0:
                    # The window sits inside one long tag or text run: stretch to its end.
                    gt = data.find(b">", end)
                    cut = (gt + 1 if gt != -1 else _utf8_boundary(data, end, pos)) - pos
                cut = self._keep_headings_whole(data, pos, cut)
            chunks.append(data[pos:pos + cut].decode("utf-8"))
            pos += cut

        return chunks

    @staticmethod
    def _tag_boundary(window: bytes) -> int:
        """Length of the window up to and including the '>' of its last complete closing tag."""
        search_end = len(window)
        while True:
            close = window.rfind(b"</", 0, search_end)
            if close == -1:
                break
            gt = window.find(b">", close)
            if gt != -1:
                return gt + 1
            search_end = close
        return window.rfind(b">") + 1

    @staticmethod
    def _unclosed_heading(piece: bytes) -> Optional[re.Match]:
        """Opening tag of the first heading in `piece` whose closing tag is not in `piece`."""
        opened: List[re.Match] = []
        for match in _HEADING_TAG_RE.finditer(piece):
            if not match.group(1):
                opened.append(match)
            elif opened and opened[-1].group(2) == match.group(2):
                opened.pop()
        return opened[0] if opened else None

    def _keep_headings_whole(self, data: bytes, pos: int, cut: int) -> int:
        """
        Moves a cut that would fall inside a heading: back to just before the
        heading's opening tag, or forward past its closing tag when the heading
        starts the chunk.
        """
        heading = self._unclosed_heading(data[pos:pos + cut])
        if heading is None:
            return cut
        if heading.start() > 0:
            return heading.start()
        closing = re.compile(rb'</h' + heading.group(2) + rb'\s*>', re.IGNORECASE).search(data, pos + cut)
        return closing.end() - pos if closing else cut

    # -------- Per-chunk extraction --------

    def _parse_chunk(self, chunk: str, url: str, categories: List[str], index: int) -> Dict[str, Any]:
        try:
            doc = DocumentModel.parse(CHUNK_SHELL_START + chunk + CHUNK_SHELL_END, self.parse_options)
        except ParseError as e:
            raise ChunkParseError(f"Chunk {index} could not be parsed: {e}", chunk_index=index) from e

        base_host = UrlUtils.get_host(url)
        return {
            category: summarise(
                category,
                [element_data(el, url, base_host) for el in doc.iter_all(CATEGORY_MATCHERS[category])],
            )
            for category in categories
        }

    def extract(
            self,
            html: str,
            url: str,
            targets: Optional[Iterable[str]] = None,
            show_progress: bool = False,
    ) -> PartialFactRecord:
        categories = resolve_targets(targets)
        pre_extracted = self.pre_extract(html)
        chunks = self.chunk_html(html)
        gc_every = max(1, self.settings.gc_every_chunks)

        logger.debug("Streaming %s in %d chunks", url, len(chunks))

        iterator = enumerate(chunks)
        if show_progress:
            iterator = tqdm(iterator, total=len(chunks), desc="Parsing chunks", unit="chunk", leave=False)

        merged: Dict[str, Any] = {}
        failed = 0
        for index, chunk in iterator:
            try:
                part = self._parse_chunk(chunk, url, categories, index)
            except ChunkParseError as e:
                failed += 1
                logger.warning("Failed to parse HTML chunk %d of %s: %s", e.chunk_index, url, e)
                continue

            merged = self.merger.merge(merged, part)
            if index % gc_every == 0:
                self.reclaim()

        if chunks and failed == len(chunks):
            logger.warning("All %d chunks of %s failed to parse; returning pre-extracted fields only.", failed, url)

        merged = renumber_headings(merged)
        # Pre-extracted fields are foundational: chunk results never overwrite them.
        merged.update(pre_extracted)
        return PartialFactRecord(strategy=Strategy.STREAMING.value, data=merged)
