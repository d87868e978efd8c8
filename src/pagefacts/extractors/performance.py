# src/pagefacts/extractors/performance.py
from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import PerformanceHints


def extract_performance(doc: DocumentModel, base_url: str) -> PerformanceHints:
    """Counts resource hints and externally loaded CSS/JS."""
    return PerformanceHints(
        dns_prefetch_count=len(doc.links_with_rel("dns-prefetch")),
        preconnect_count=len(doc.links_with_rel("preconnect")),
        prefetch_count=len(doc.links_with_rel("prefetch")),
        preload_count=len(doc.links_with_rel("preload")),
        external_css_count=sum(1 for el in doc.links_with_rel("stylesheet") if el.has_attribute("href")),
        external_js_count=doc.count("script", attrs={"src": True}),
    )


DEFINITION = ExtractorDefinition(category="performance", model=PerformanceHints, extractor=extract_performance)
