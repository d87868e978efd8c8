# src/pagefacts/services/extraction_service.py
import logging
from typing import Optional, Union

from pagefacts.dom.document import DocumentModel, ParseOptions
from pagefacts.dom.registry import ExtractorRegistry
from pagefacts.exceptions import ExtractionError, PageFactsError
from pagefacts.model import HEADING_LEVELS, FullFactRecord

logger = logging.getLogger(__name__)


class ExtractionService:
    """
    The standard strategy: parses the whole document once and runs every
    registered field extractor against it.

    An extractor failure is not caught per field; it surfaces as
    ExtractionError rather than yielding a partially populated record.
    """

    def __init__(self, parse_options: Optional[ParseOptions] = None):
        self.parse_options = parse_options
        ExtractorRegistry.discover()

    def extract(self, html: Union[str, bytes], url: str) -> FullFactRecord:
        logger.debug("Starting HTML parsing for %s (%d chars)", url, len(html))
        doc = DocumentModel.parse(html, self.parse_options)
        return self.extract_document(doc, url)

    def extract_document(self, doc: DocumentModel, url: str) -> FullFactRecord:
        """Runs all extractors against an already parsed document."""
        sections = {}
        for definition in ExtractorRegistry.get_all():
            try:
                sections[definition.category] = definition(doc, url)
            except PageFactsError:
                raise
            except Exception as e:
                raise ExtractionError(
                    f"Failed to extract '{definition.category}' from {url}: {e}",
                    category=definition.category,
                ) from e

        record = FullFactRecord(**sections)
        logger.debug(
            "HTML parsing completed for %s: %d headings, %d images, %d links",
            url,
            sum(len(record.headings.level(lvl)) for lvl in HEADING_LEVELS),
            record.images.total_count,
            record.links.total_count,
        )
        return record
