# src/pagefacts/extractors/links.py
from typing import List

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import LinkRecord, LinksSection
from pagefacts.utils.url_utils import UrlUtils


def extract_links(doc: DocumentModel, base_url: str) -> LinksSection:
    """
    Extracts every anchor carrying an href attribute.

    Anchors without href are not considered links at all. A link is external
    when its resolved host differs from the base URL's host, compared as
    written (no case folding, no 'www.' stripping).
    """
    base_host = UrlUtils.get_host(base_url)
    links: List[LinkRecord] = []

    for anchor in doc.iter_all("a", attrs={"href": True}):
        anchor_text = anchor.text_content().strip()
        rel = anchor.attr("rel")
        title = anchor.attr("title")
        resolved = UrlUtils.resolve(anchor.attr("href"), base_url)

        links.append(LinkRecord(
            href=resolved,
            anchor_text=anchor_text,
            anchor_text_length=len(anchor_text),
            title=title,
            rel=rel,
            is_external=UrlUtils.is_external(resolved, base_host),
            is_nofollow="nofollow" in rel.lower(),
            has_title=bool(title),
            is_empty_anchor=not anchor_text,
        ))

    return LinksSection(links=links)


DEFINITION = ExtractorDefinition(category="links", model=LinksSection, extractor=extract_links)
