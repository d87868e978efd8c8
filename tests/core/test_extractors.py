# tests/core/test_extractors.py
import pytest

from pagefacts.dom.document import DocumentModel
from pagefacts.dom.registry import ExtractorRegistry
from pagefacts.extractors.content import clean_text, count_sentences, count_words, extract_content
from pagefacts.extractors.headings import extract_headings
from pagefacts.extractors.images import extract_images
from pagefacts.extractors.links import extract_links
from pagefacts.extractors.meta import extract_meta
from pagefacts.extractors.performance import extract_performance
from pagefacts.extractors.seo_tags import extract_seo_tags
from pagefacts.extractors.social_media import extract_social_media
from pagefacts.extractors.structured_data import extract_structured_data
from pagefacts.extractors.technical import extract_technical
from pagefacts.model import FACT_CATEGORIES

URL = "https://example.com/page"


@pytest.fixture
def doc(sample_page):
    return DocumentModel.parse(sample_page)


def test_registry_has_one_extractor_per_section():
    categories = [d.category for d in ExtractorRegistry.get_all()]
    assert categories == list(FACT_CATEGORIES)
    assert ExtractorRegistry.get("meta").extractor is extract_meta


def test_meta(doc):
    meta = extract_meta(doc, URL)
    assert meta.title == "Sample Page"
    assert meta.title_length == 11
    assert meta.description == "A page used in tests."
    assert meta.keywords_count == 3
    assert meta.robots == "index,follow"
    assert meta.charset == "utf-8"
    assert meta.canonical == "https://example.com/sample"
    assert meta.alternate_languages == {"nl": "https://example.com/nl/sample"}
    assert meta.author == ""


def test_meta_charset_from_http_equiv():
    doc = DocumentModel.parse('<meta http-equiv="Content-Type" content="text/html; charset=ISO-8859-1">')
    assert extract_meta(doc, URL).charset == "ISO-8859-1"


def test_meta_missing_tags_read_as_empty():
    meta = extract_meta(DocumentModel.parse("<p>no head at all</p>"), URL)
    assert meta.title == ""
    assert meta.title_length == 0
    assert meta.keywords_count == 0
    assert meta.canonical == ""


def test_headings_skip_empty_text_and_number_per_level():
    doc = DocumentModel.parse("<h2>One</h2><h2>   </h2><h3>Sub</h3><h2> Two </h2>")
    headings = extract_headings(doc, URL)
    assert [(h.text, h.position) for h in headings.h2] == [("One", 1), ("Two", 2)]
    assert headings.h3[0].length == 3
    assert headings.h1 == []


def test_images(doc):
    images = extract_images(doc, URL)
    assert images.total_count == 2
    assert images.without_src_count == 1
    assert images.without_alt_count == 1
    assert images.without_title_count == 1

    logo = images.images[0]
    assert logo.src == "https://example.com/logo.png"
    assert logo.has_alt and logo.alt_length == 4
    assert logo.width == "100" and logo.height == "50"
    assert images.images[1].width is None


def test_decorative_image_needs_presentation_role():
    doc = DocumentModel.parse('<img src="a.png" alt="" role="presentation"><img src="b.png" alt="">')
    first, second = extract_images(doc, URL).images
    assert first.is_decorative
    assert not second.is_decorative


def test_links(doc):
    links = extract_links(doc, URL)
    assert links.total_count == 2
    assert links.internal_count == 1
    assert links.external_count == 1
    assert links.nofollow_count == 1
    assert links.links[0].href == "https://example.com/about"
    assert links.links[0].anchor_text == "About us"


def test_anchors_without_href_are_not_links():
    doc = DocumentModel.parse('<a name="top">Top</a><a href="">Empty</a><a href="/x"><img src="i.png"></a>')
    links = extract_links(doc, URL)
    assert links.total_count == 2
    assert links.empty_anchor_count == 1


def test_content_helpers():
    assert clean_text("  a \n\t b  ") == "a b"
    assert count_words("Don't stop, e-mail me 42 times!") == 5
    assert count_sentences("One. Two?! Three") == 2


def test_content(doc, sample_page):
    content = extract_content(doc, URL)
    assert content.html_size == len(sample_page.encode("utf-8"))
    assert content.paragraphs == 2
    assert content.word_count > 0
    assert content.reading_time_minutes == 1
    assert 0 < content.text_to_html_ratio < 100


def test_content_falls_back_to_raw_source_without_body():
    content = extract_content(DocumentModel.parse("one two three"), URL)
    assert content.word_count == 3
    assert content.sentences == 0
    assert content.average_words_per_sentence == 0.0


def test_technical(doc):
    technical = extract_technical(doc, URL)
    assert technical.doctype == "<!DOCTYPE html>"
    assert technical.lang_attribute == "en"
    assert technical.schema_markup_present
    assert technical.open_graph_present
    assert technical.twitter_cards_present
    assert not technical.amp_present
    assert technical.ssl_required
    assert technical.inline_styles_count == 1
    assert technical.inline_scripts_count == 2

    resources = technical.external_resources
    assert resources.css == ["https://cdn.other.com/site.css"]
    assert resources.js == ["https://cdn.other.com/app.js"]
    assert resources.images == ["https://cdn.other.com/banner.jpg"]
    assert resources.fonts == []


def test_technical_fonts_and_csp():
    doc = DocumentModel.parse(
        '<meta http-equiv="Content-Security-Policy" content="upgrade-insecure-requests">'
        '<link rel="preload" as="font" href="https://fonts.example.net/a.woff2">'
        '<link rel="stylesheet" href="https://fonts.example.net/b.ttf?v=2">'
    )
    technical = extract_technical(doc, "http://example.com/")
    assert technical.ssl_required
    assert technical.external_resources.fonts == [
        "https://fonts.example.net/a.woff2", "https://fonts.example.net/b.ttf?v=2",
    ]
    assert technical.external_resources.css == []


def test_structured_data(doc):
    data = extract_structured_data(doc, URL)
    assert data.json_ld == {"Article": {"@type": "Article", "headline": "Sample"}}
    assert data.microdata == {"Product": [{"itemtype": "https://schema.org/Product"}]}
    assert data.schemas_found == ["Article", "Product"]


def test_json_ld_last_block_of_a_type_wins_and_bad_json_is_skipped():
    doc = DocumentModel.parse(
        '<script type="application/ld+json">{"@type": "Organization", "name": "A"}</script>'
        '<script type="application/ld+json">{not json</script>'
        '<script type="application/ld+json">{"@type": ["Organization", "Thing"], "name": "B"}</script>'
        '<div typeof="schema:Person">x</div>'
    )
    data = extract_structured_data(doc, URL)
    assert data.json_ld["Organization"]["name"] == "B"
    assert data.rdfa == {"schema:Person": [{"typeof": "schema:Person"}]}
    assert data.schemas_found == ["Organization", "schema:Person"]


def test_social_media(doc):
    social = extract_social_media(doc, URL)
    assert social.open_graph == {"title": "OG Sample"}
    assert social.twitter_cards == {"card": "summary"}
    assert social.facebook.app_id == ""


def test_seo_tags(doc):
    tags = extract_seo_tags(doc, URL)
    assert tags.next_page == "https://example.com/sample?page=2"
    assert tags.prev_page == ""
    assert tags.amp_html == ""


def test_mobile_alternate():
    doc = DocumentModel.parse(
        '<link rel="alternate" media="only screen and (max-width: 640px)" href="https://m.example.com/page">'
    )
    assert extract_seo_tags(doc, URL).mobile_alternate == "https://m.example.com/page"


def test_performance(doc):
    hints = extract_performance(doc, URL)
    assert hints.dns_prefetch_count == 1
    assert hints.preconnect_count == 1
    assert hints.preload_count == 0
    assert hints.external_css_count == 2
    assert hints.external_js_count == 1
