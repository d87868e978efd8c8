# src/pagefacts/extractors/social_media.py
from typing import Dict

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import FacebookTags, LinkedInTags, SocialMedia


def _prefixed_meta(doc: DocumentModel, attribute: str, prefix: str) -> Dict[str, str]:
    """Meta tags whose `attribute` starts with prefix, keyed without the prefix."""
    tags: Dict[str, str] = {}
    for node in doc.iter_all(lambda el: el.tag_name == "meta" and el.attr(attribute).startswith(prefix)):
        tags[node.attr(attribute).removeprefix(prefix)] = node.attr("content")
    return tags


def extract_social_media(doc: DocumentModel, base_url: str) -> SocialMedia:
    """Open Graph, Twitter Card, Facebook and LinkedIn tags for social sharing analysis."""
    return SocialMedia(
        open_graph=_prefixed_meta(doc, "property", "og:"),
        twitter_cards=_prefixed_meta(doc, "name", "twitter:"),
        facebook=FacebookTags(
            app_id=doc.meta_content("property", "fb:app_id"),
            admins=doc.meta_content("property", "fb:admins"),
        ),
        linkedin=LinkedInTags(partner_id=doc.meta_content("property", "linkedin:partner-id")),
    )


DEFINITION = ExtractorDefinition(category="social_media", model=SocialMedia, extractor=extract_social_media)
