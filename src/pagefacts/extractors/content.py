# src/pagefacts/extractors/content.py
import math
import re

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import ContentSection

WORDS_PER_MINUTE = 200

_WHITESPACE_RE = re.compile(r'\s+')
_SENTENCE_END_RE = re.compile(r'[.!?]+')
# Letter runs, optionally joined by hyphens or apostrophes ("don't", "e-mail").
_WORD_RE = re.compile(r"[a-zA-ZÀ-ÖØ-öø-ÿ]+(?:['\-][a-zA-ZÀ-ÖØ-öø-ÿ]+)*")


def clean_text(text: str) -> str:
    """Collapses whitespace runs to single spaces and trims."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def count_words(text: str) -> int:
    return len(_WORD_RE.findall(text))


def count_sentences(text: str) -> int:
    """Counts runs of sentence terminators. A heuristic, not sentence segmentation."""
    return len(_SENTENCE_END_RE.findall(text))


def extract_content(doc: DocumentModel, base_url: str) -> ContentSection:
    """
    Text metrics of the <body>, falling back to the raw markup when the
    document has no body element.
    """
    body = doc.body
    text = clean_text(body.text_content() if body else doc.source)

    word_count = count_words(text)
    character_count = len(text)
    html_size = len(doc.source.encode("utf-8"))
    sentences = count_sentences(text)

    return ContentSection(
        word_count=word_count,
        character_count=character_count,
        character_count_no_spaces=len(text.replace(" ", "")),
        html_size=html_size,
        text_to_html_ratio=round(character_count / html_size * 100, 2) if html_size else 0.0,
        reading_time_minutes=math.ceil(word_count / WORDS_PER_MINUTE),
        sentences=sentences,
        paragraphs=doc.count("p"),
        average_words_per_sentence=round(word_count / sentences, 2) if sentences else 0.0,
    )


DEFINITION = ExtractorDefinition(category="content", model=ContentSection, extractor=extract_content)
