# src/pagefacts/extractors/technical.py
import re
from typing import List

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import ExternalResources, TechnicalSection
from pagefacts.utils.url_utils import UrlUtils

_DOCTYPE_RE = re.compile(r'<!DOCTYPE[^>]*>', re.IGNORECASE)
_FONT_EXTENSIONS = (".woff", ".woff2", ".ttf", ".otf", ".eot")


def _doctype(source: str) -> str:
    match = _DOCTYPE_RE.search(source)
    return match.group(0).strip() if match else ""


def _is_font_url(url: str) -> bool:
    path = url.split("?", 1)[0].split("#", 1)[0].lower()
    return path.endswith(_FONT_EXTENSIONS)


def _external(urls: List[str], base_url: str, base_host: str) -> List[str]:
    out: List[str] = []
    for url in urls:
        resolved = UrlUtils.resolve(url, base_url)
        if UrlUtils.is_external(resolved, base_host):
            out.append(resolved)
    return out


def external_resources(doc: DocumentModel, base_url: str) -> ExternalResources:
    """Stylesheets, scripts, images and fonts served from another host."""
    base_host = UrlUtils.get_host(base_url)

    stylesheets = [el.attr("href") for el in doc.links_with_rel("stylesheet") if el.has_attribute("href")]
    fonts = [
        el.attr("href") for el in doc.links_with_rel("preload")
        if el.attr("as").lower() == "font" and el.has_attribute("href")
    ]
    fonts += [href for href in stylesheets if _is_font_url(href)]

    return ExternalResources(
        css=_external([h for h in stylesheets if not _is_font_url(h)], base_url, base_host),
        js=_external([el.attr("src") for el in doc.iter_all("script", attrs={"src": True})], base_url, base_host),
        images=_external([el.attr("src") for el in doc.iter_all("img") if el.attr("src")], base_url, base_host),
        fonts=_external(fonts, base_url, base_host),
    )


def _requires_ssl(doc: DocumentModel, base_url: str) -> bool:
    csp = doc.meta_content("http-equiv", "content-security-policy")
    return "upgrade-insecure-requests" in csp.lower() or "https://" in base_url


def extract_technical(doc: DocumentModel, base_url: str) -> TechnicalSection:
    html = doc.find_first("html")
    return TechnicalSection(
        doctype=_doctype(doc.source),
        lang_attribute=html.attr("lang") if html else "",
        schema_markup_present=bool(
            doc.find_first("script", attrs={"type": "application/ld+json"})
            or doc.find_first(attrs={"itemscope": True})
            or doc.find_first(attrs={"typeof": True})
        ),
        open_graph_present=doc.find_first(lambda el: el.tag_name == "meta" and el.attr("property").startswith("og:")) is not None,
        twitter_cards_present=doc.find_first(lambda el: el.tag_name == "meta" and el.attr("name").startswith("twitter:")) is not None,
        amp_present=bool(html and (html.has_attribute("amp") or html.has_attribute("⚡"))),
        ssl_required=_requires_ssl(doc, base_url),
        external_resources=external_resources(doc, base_url),
        inline_styles_count=doc.count("style"),
        inline_scripts_count=doc.count(lambda el: el.tag_name == "script" and not el.has_attribute("src")),
    )


DEFINITION = ExtractorDefinition(category="technical", model=TechnicalSection, extractor=extract_technical)
