# src/pagefacts/extractors/meta.py
import re
from typing import Dict

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import MetaData
from pagefacts.utils.url_utils import UrlUtils

_CHARSET_RE = re.compile(r'charset=([^;]+)', re.IGNORECASE)


def _title(doc: DocumentModel) -> str:
    node = doc.find_first("title")
    return node.text_content().strip() if node else ""


def _charset(doc: DocumentModel) -> str:
    """<meta charset> first, then the charset= part of an http-equiv Content-Type."""
    node = doc.find_first("meta", attrs={"charset": True})
    if node:
        return node.attr("charset").strip()

    content_type = doc.meta_content("http-equiv", "content-type")
    match = _CHARSET_RE.search(content_type)
    return match.group(1).strip() if match else ""


def _alternate_languages(doc: DocumentModel, base_url: str) -> Dict[str, str]:
    alternates: Dict[str, str] = {}
    for link in doc.links_with_rel("alternate"):
        if link.has_attribute("hreflang"):
            alternates[link.attr("hreflang")] = UrlUtils.resolve(link.attr("href"), base_url)
    return alternates


def extract_meta(doc: DocumentModel, base_url: str) -> MetaData:
    """
    Extracts title, the common meta tags, canonical and hreflang alternates.
    Every lookup is first-match-wins in document order; absent tags read as ''.
    """
    return MetaData(
        title=_title(doc),
        description=doc.meta_content("name", "description"),
        keywords=doc.meta_content("name", "keywords"),
        author=doc.meta_content("name", "author"),
        robots=doc.meta_content("name", "robots"),
        viewport=doc.meta_content("name", "viewport"),
        charset=_charset(doc),
        canonical=UrlUtils.resolve(doc.link_href("canonical"), base_url),
        alternate_languages=_alternate_languages(doc, base_url),
        refresh=doc.meta_content("http-equiv", "refresh"),
    )


DEFINITION = ExtractorDefinition(category="meta", model=MetaData, extractor=extract_meta)
