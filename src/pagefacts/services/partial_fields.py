# src/pagefacts/services/partial_fields.py
"""
The reduced field set shared by the chunked and streaming strategies.

Both strategies select elements per category, turn each element into a small
record (`element_data`) and fold the records of a category into a section
dict (`summarise`). Section dicts keep count fields next to their lists so
that ResultMerger's sum/concat rules keep counts and lists consistent.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pagefacts.dom.document import Element
from pagefacts.model import HEADING_LEVELS, PARTIAL_CATEGORIES
from pagefacts.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

CATEGORY_MATCHERS: Dict[str, Callable[[Element], bool]] = {
    "meta": lambda el: el.tag_name in ("title", "meta"),
    "headings": lambda el: el.tag_name in HEADING_LEVELS,
    "images": lambda el: el.tag_name == "img" and bool(el.attr("src")),
    "links": lambda el: el.tag_name == "a" and el.has_attribute("href"),
    "scripts": lambda el: el.tag_name == "script",
    "styles": lambda el: el.tag_name == "style" or (el.tag_name == "link" and "stylesheet" in el.rel_tokens()),
}


def resolve_targets(targets: Optional[Iterable[str]]) -> List[str]:
    """
    Normalizes caller-supplied extraction targets.
    Empty or None means every partial category; unknown names are dropped with a warning.
    """
    if not targets:
        return list(PARTIAL_CATEGORIES)

    wanted = {t.strip().lower() for t in targets if t and t.strip()}
    unknown = wanted.difference(PARTIAL_CATEGORIES)
    if unknown:
        logger.warning("Ignoring unknown extraction targets: %s", ", ".join(sorted(unknown)))
    return [c for c in PARTIAL_CATEGORIES if c in wanted]


def element_data(el: Element, base_url: str, base_host: str) -> Record:
    """Basic data of one element, keyed by what matters for its tag."""
    tag = el.tag_name
    data: Record = {"tag_name": tag}

    if tag == "img":
        alt = el.attr("alt")
        data.update(src=UrlUtils.resolve(el.attr("src"), base_url), alt=alt, title=el.attr("title"), has_alt=bool(alt))
    elif tag == "a":
        href = UrlUtils.resolve(el.attr("href"), base_url)
        rel = el.attr("rel")
        data.update(
            href=href,
            text=el.text_content().strip(),
            rel=rel,
            is_external=UrlUtils.is_external(href, base_host),
            is_nofollow="nofollow" in rel.lower(),
        )
    elif tag == "meta":
        data.update(name=el.attr("name"), property=el.attr("property"), content=el.attr("content"))
    elif tag == "script":
        src = el.attr("src")
        data.update(
            src=src,
            type=el.attr("type"),
            is_async=el.has_attribute("async"),
            is_defer=el.has_attribute("defer"),
            inline=not src,
        )
    elif tag == "link":
        data.update(href=UrlUtils.resolve(el.attr("href"), base_url), inline=False)
    elif tag == "style":
        data.update(href="", inline=True)
    else:
        data["text"] = el.text_content().strip()

    return data


def _summarise_meta(records: List[Record]) -> Dict[str, Any]:
    meta: Dict[str, Any] = {}
    for r in records:
        if r["tag_name"] == "title":
            # Only a real title is reported, so empty chunk shells never blank it out.
            if r["text"] and "title" not in meta:
                meta["title"] = r["text"]
            continue
        key = r.get("name") or r.get("property")
        if key and r.get("content"):
            meta[key] = r["content"]
    return meta


def _summarise_headings(records: List[Record]) -> Dict[str, Any]:
    headings: Dict[str, List[Record]] = {level: [] for level in HEADING_LEVELS}
    for r in records:
        if not r["text"]:
            continue
        entries = headings[r["tag_name"]]
        entries.append({"text": r["text"], "length": len(r["text"]), "position": len(entries) + 1})
    return headings


def summarise(category: str, records: List[Record]) -> Dict[str, Any]:
    """Folds element records of one category into its partial section dict."""
    if category == "meta":
        return _summarise_meta(records)
    if category == "headings":
        return _summarise_headings(records)
    if category == "images":
        return {
            "total_count": len(records),
            "without_alt_count": sum(1 for r in records if not r["has_alt"]),
            "images": records,
        }
    if category == "links":
        external = sum(1 for r in records if r["is_external"])
        return {
            "total_count": len(records),
            "internal_count": len(records) - external,
            "external_count": external,
            "nofollow_count": sum(1 for r in records if r["is_nofollow"]),
            "links": records,
        }
    if category == "scripts":
        return {
            "total_count": len(records),
            "external_count": sum(1 for r in records if not r["inline"]),
            "async_count": sum(1 for r in records if r["is_async"]),
            "scripts": records,
        }
    if category == "styles":
        inline = sum(1 for r in records if r["inline"])
        return {
            "total_count": len(records),
            "inline_count": inline,
            "external_count": len(records) - inline,
            "styles": records,
        }
    raise ValueError(f"Unknown partial category: {category}")


def renumber_headings(data: Dict[str, Any]) -> Dict[str, Any]:
    """Returns data with contiguous 1-based heading positions after lists were concatenated."""
    headings = data.get("headings")
    if not isinstance(headings, dict):
        return data
    renumbered = {
        level: [{**entry, "position": i} for i, entry in enumerate(entries, start=1)]
        if isinstance(entries, list) else entries
        for level, entries in headings.items()
    }
    return {**data, "headings": renumbered}
