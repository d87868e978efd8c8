# src/pagefacts/dom/document.py
import logging
import re
import warnings
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Union

from bs4 import BeautifulSoup, Doctype, FeatureNotFound, ParserRejectedMarkup, Tag

from pagefacts.exceptions import ParseError
from pagefacts.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

Matcher = Union[str, List[str], Callable[["Element"], bool], None]

_DOCTYPE_RE = re.compile(r'<!doctype', re.IGNORECASE)
_HTML_ROOT_RE = re.compile(r'<html[\s>]', re.IGNORECASE)


@dataclass(frozen=True)
class ParseOptions:
    """
    Options for turning raw markup into a DocumentModel.

    tolerant: when True (default) structural problems are recorded as
              diagnostics; when False any diagnostic raises ParseError.
    features: the BeautifulSoup tree builder to use.
    """
    tolerant: bool = True
    features: str = "html.parser"

    @classmethod
    def from_config(cls) -> "ParseOptions":
        cfg = config_manager.get_nested("parser", {}) or {}
        return cls(
            tolerant=bool(cfg.get("tolerant", True)),
            features=cfg.get("features") or "html.parser",
        )


class Element:
    """Read-only view on a single tag of a parsed document."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag):
        self._tag = tag

    @property
    def tag_name(self) -> str:
        return (self._tag.name or "").lower()

    def attribute(self, name: str) -> Optional[str]:
        """Returns the attribute value, or None when the attribute is absent."""
        value = self._tag.attrs.get(name)
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return " ".join(value)
        return str(value)

    def has_attribute(self, name: str) -> bool:
        return name in self._tag.attrs

    def attr(self, name: str) -> str:
        """Like attribute(), but an absent attribute reads as ''."""
        return self.attribute(name) or ""

    def text_content(self) -> str:
        """Concatenated text of all descendants (script/style bodies excluded)."""
        return self._tag.get_text()

    def rel_tokens(self) -> List[str]:
        return self.attr("rel").lower().split()

    def __repr__(self) -> str:
        return f"<Element {self.tag_name} attrs={dict(self._tag.attrs)!r}>"


class DocumentModel:
    """
    A tolerant, parsed HTML document plus the structural query primitives the
    field extractors need.

    Input is treated as UTF-8. Byte input is decoded here so the tree builder
    never has to guess an encoding and multi-byte characters stay intact.
    """

    def __init__(self, soup: BeautifulSoup, source: str, diagnostics: List[str]):
        self._soup = soup
        self.source = source
        self.diagnostics = diagnostics

    # -------- Construction --------

    @staticmethod
    def _normalize(source: Union[str, bytes], diagnostics: List[str]) -> str:
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
            if data.startswith(b"\xef\xbb\xbf"):
                data = data[3:]
                diagnostics.append("byte order mark stripped")
            if b"\x00" in data:
                raise ParseError("Input looks like binary data (NUL bytes found).")
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(f"Input is not valid UTF-8 markup: {e}") from e
        elif isinstance(source, str):
            text = source
            if text.startswith("\ufeff"):
                text = text[1:]
                diagnostics.append("byte order mark stripped")
            if "\x00" in text:
                raise ParseError("Input looks like binary data (NUL characters found).")
        else:
            raise ParseError(f"Unsupported input type: {type(source).__name__}")

        if not text.strip():
            raise ParseError("HTML content cannot be empty.")
        return text

    @classmethod
    def normalize_source(cls, source: Union[str, bytes]) -> str:
        """
        Decodes and validates raw input without building a tree.

        Raises:
            ParseError: for empty, binary or non-UTF-8 input.
        """
        return cls._normalize(source, [])

    @classmethod
    def parse(cls, source: Union[str, bytes], options: Optional[ParseOptions] = None) -> "DocumentModel":
        """
        Parses possibly malformed markup into a DocumentModel.

        Raises:
            ParseError: when no tree can be built at all (empty or binary input,
                        unavailable tree builder), or when options.tolerant is
                        False and the document produced diagnostics.
        """
        options = options or ParseOptions.from_config()
        diagnostics: List[str] = []
        text = cls._normalize(source, diagnostics)

        try:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                soup = BeautifulSoup(text, options.features, multi_valued_attributes=None)
        except FeatureNotFound as e:
            raise ParseError(f"Tree builder '{options.features}' is not available.") from e
        except ParserRejectedMarkup as e:
            raise ParseError(f"Parser rejected the markup: {e}") from e

        diagnostics.extend(f"parser warning: {w.message}" for w in caught)

        if not soup.contents:
            raise ParseError("Markup produced an empty document tree.")

        head = text[:2000]
        if not (_DOCTYPE_RE.search(head) or any(isinstance(item, Doctype) for item in soup.contents)):
            diagnostics.append("missing doctype")
        if not (soup.find("html") or _HTML_ROOT_RE.search(head)):
            diagnostics.append("missing <html> root")
        if soup.body is None:
            diagnostics.append("missing <body>")

        if diagnostics and not options.tolerant:
            raise ParseError("Strict parsing failed: " + "; ".join(diagnostics))

        for message in diagnostics:
            logger.debug("Parse diagnostic: %s", message)

        return cls(soup, text, diagnostics)

    # -------- Queries --------

    @staticmethod
    def _to_bs4_matcher(match: Matcher):
        if callable(match):
            return lambda tag: match(Element(tag))
        return match

    def iter_all(self, match: Matcher = None, attrs: Optional[Dict[str, object]] = None) -> Iterator[Element]:
        """Yields matching elements in document order. One pass per call."""
        for tag in self._soup.find_all(self._to_bs4_matcher(match), attrs=attrs or {}):
            yield Element(tag)

    def find_all(self, match: Matcher = None, attrs: Optional[Dict[str, object]] = None) -> List[Element]:
        """
        Returns all matching elements in document order.

        match may be a tag name, a list of tag names, or a predicate taking an Element.
        attrs follows BeautifulSoup semantics (True = attribute present).
        """
        return list(self.iter_all(match, attrs))

    def find_first(self, match: Matcher = None, attrs: Optional[Dict[str, object]] = None) -> Optional[Element]:
        tag = self._soup.find(self._to_bs4_matcher(match), attrs=attrs or {})
        return Element(tag) if tag is not None else None

    def count(self, match: Matcher = None, attrs: Optional[Dict[str, object]] = None) -> int:
        return sum(1 for _ in self.iter_all(match, attrs))

    @property
    def body(self) -> Optional[Element]:
        return Element(self._soup.body) if self._soup.body is not None else None

    # -------- SEO helpers --------

    def meta_content(self, attribute: str, value: str) -> str:
        """
        Content of the first <meta> whose `attribute` equals `value`
        (case-insensitive), stripped. '' when absent.
        """
        wanted = value.lower()
        node = self.find_first(
            lambda el: el.tag_name == "meta" and el.attr(attribute).strip().lower() == wanted
        )
        return node.attr("content").strip() if node else ""

    def links_with_rel(self, rel: str) -> List[Element]:
        """All <link> elements whose rel attribute contains the given token."""
        wanted = rel.lower()
        return self.find_all(lambda el: el.tag_name == "link" and wanted in el.rel_tokens())

    def link_href(self, rel: str) -> str:
        """href of the first <link> carrying the rel token, '' when absent."""
        for link in self.links_with_rel(rel):
            if link.has_attribute("href"):
                return link.attr("href").strip()
        return ""
