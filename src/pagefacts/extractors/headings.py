# src/pagefacts/extractors/headings.py
from typing import Dict, List

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import HEADING_LEVELS, HeadingEntry, HeadingMap


def extract_headings(doc: DocumentModel, base_url: str) -> HeadingMap:
    """
    Maps heading levels (h1-h6) to their entries in document order.
    Headings with empty trimmed text are skipped and get no position.
    """
    levels: Dict[str, List[HeadingEntry]] = {}
    for level in HEADING_LEVELS:
        entries: List[HeadingEntry] = []
        for node in doc.iter_all(level):
            text = node.text_content().strip()
            if not text:
                continue
            entries.append(HeadingEntry(text=text, length=len(text), position=len(entries) + 1))
        levels[level] = entries
    return HeadingMap(**levels)


DEFINITION = ExtractorDefinition(category="headings", model=HeadingMap, extractor=extract_headings)
