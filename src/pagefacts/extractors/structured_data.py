# src/pagefacts/extractors/structured_data.py
import json
import logging
from typing import Any, Dict, List

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.dom.document import DocumentModel
from pagefacts.model import StructuredData

logger = logging.getLogger(__name__)


def _json_ld(doc: DocumentModel) -> Dict[str, Any]:
    """
    Parses each JSON-LD block on its own. Blocks that are not valid JSON or
    carry no @type are skipped; a later block of the same @type replaces an
    earlier one.
    """
    found: Dict[str, Any] = {}
    for script in doc.iter_all("script", attrs={"type": "application/ld+json"}):
        raw = script.text_content().strip()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.debug("Skipping malformed JSON-LD block: %s", e)
            continue

        if not isinstance(data, dict) or "@type" not in data:
            continue
        schema_type = data["@type"]
        if isinstance(schema_type, list):
            if not schema_type:
                continue
            schema_type = schema_type[0]
        found[str(schema_type)] = data
    return found


def _microdata(doc: DocumentModel) -> Dict[str, List[Dict[str, str]]]:
    """Outer itemtype of every itemscope, keyed by the type's basename."""
    found: Dict[str, List[Dict[str, str]]] = {}
    for item in doc.iter_all(attrs={"itemscope": True}):
        item_type = item.attr("itemtype").strip()
        if not item_type:
            continue
        name = item_type.rstrip("/").rsplit("/", 1)[-1]
        found.setdefault(name, []).append({"itemtype": item_type})
    return found


def _rdfa(doc: DocumentModel) -> Dict[str, List[Dict[str, str]]]:
    found: Dict[str, List[Dict[str, str]]] = {}
    for node in doc.iter_all(attrs={"typeof": True}):
        type_of = node.attr("typeof").strip()
        if type_of:
            found.setdefault(type_of, []).append({"typeof": type_of})
    return found


def extract_structured_data(doc: DocumentModel, base_url: str) -> StructuredData:
    return StructuredData(json_ld=_json_ld(doc), microdata=_microdata(doc), rdfa=_rdfa(doc))


DEFINITION = ExtractorDefinition(
    category="structured_data", model=StructuredData, extractor=extract_structured_data
)
