# src/pagefacts/extractors/seo_tags.py
from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import SeoTags
from pagefacts.utils.url_utils import UrlUtils

MOBILE_MEDIA_QUERY = "only screen and (max-width: 640px)"


def _mobile_alternate(doc: DocumentModel) -> str:
    for link in doc.links_with_rel("alternate"):
        if link.attr("media").strip() == MOBILE_MEDIA_QUERY and link.has_attribute("href"):
            return link.attr("href").strip()
    return ""


def extract_seo_tags(doc: DocumentModel, base_url: str) -> SeoTags:
    """Pagination, AMP and separate-mobile-URL links."""
    return SeoTags(
        next_page=UrlUtils.resolve(doc.link_href("next"), base_url),
        prev_page=UrlUtils.resolve(doc.link_href("prev"), base_url),
        amp_html=UrlUtils.resolve(doc.link_href("amphtml"), base_url),
        mobile_alternate=UrlUtils.resolve(_mobile_alternate(doc), base_url),
    )


DEFINITION = ExtractorDefinition(category="seo_tags", model=SeoTags, extractor=extract_seo_tags)
