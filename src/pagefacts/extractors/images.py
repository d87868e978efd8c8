# src/pagefacts/extractors/images.py
from typing import List

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import ImageRecord, ImagesSection
from pagefacts.utils.url_utils import UrlUtils


def extract_images(doc: DocumentModel, base_url: str) -> ImagesSection:
    """
    Extracts image metadata (resolved src, alt, title, dimensions).
    An <img> without a src is only counted, never listed.
    """
    images: List[ImageRecord] = []
    without_alt = without_title = without_src = 0

    for img in doc.iter_all("img"):
        src = img.attr("src")
        if not src:
            without_src += 1
            continue

        alt = img.attr("alt")
        title = img.attr("title")
        if not alt:
            without_alt += 1
        if not title:
            without_title += 1

        images.append(ImageRecord(
            src=UrlUtils.resolve(src, base_url),
            alt=alt,
            title=title,
            width=img.attr("width") or None,
            height=img.attr("height") or None,
            has_alt=bool(alt),
            has_title=bool(title),
            alt_length=len(alt),
            # Decorative only when explicitly marked so; an empty alt alone is not enough.
            is_decorative=not alt and img.attr("role") == "presentation",
        ))

    return ImagesSection(
        without_alt_count=without_alt,
        without_title_count=without_title,
        without_src_count=without_src,
        images=images,
    )


DEFINITION = ExtractorDefinition(category="images", model=ImagesSection, extractor=extract_images)
