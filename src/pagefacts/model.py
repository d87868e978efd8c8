# ============================================
# file: src/pagefacts/model.py
# ============================================
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from pagefacts.exceptions import StrategyError
from pagefacts.managers.config_manager import config_manager

HEADING_LEVELS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Canonical order of the sections of a FullFactRecord.
FACT_CATEGORIES = (
    "meta", "headings", "images", "links", "content", "technical",
    "structured_data", "social_media", "seo_tags", "performance",
)

# Reduced category set extracted by the chunked and streaming strategies.
PARTIAL_CATEGORIES = ("meta", "headings", "images", "links", "scripts", "styles")


class FrozenModel(BaseModel):
    """Base for all fact records: immutable once constructed."""
    model_config = ConfigDict(frozen=True)


# -------- Meta --------

class MetaData(FrozenModel):
    title: str = ""
    description: str = ""
    keywords: str = ""
    author: str = ""
    robots: str = ""
    viewport: str = ""
    charset: str = ""
    canonical: str = ""
    alternate_languages: Dict[str, str] = Field(default_factory=dict)
    refresh: str = ""

    @computed_field
    @property
    def title_length(self) -> int:
        return len(self.title)

    @computed_field
    @property
    def description_length(self) -> int:
        return len(self.description)

    @computed_field
    @property
    def keywords_count(self) -> int:
        return len(self.keywords.split(",")) if self.keywords else 0


# -------- Headings --------

class HeadingEntry(FrozenModel):
    text: str
    length: int
    position: int


class HeadingMap(FrozenModel):
    """Heading level -> ordered entries. Positions are 1-based and contiguous per level."""
    h1: List[HeadingEntry] = Field(default_factory=list)
    h2: List[HeadingEntry] = Field(default_factory=list)
    h3: List[HeadingEntry] = Field(default_factory=list)
    h4: List[HeadingEntry] = Field(default_factory=list)
    h5: List[HeadingEntry] = Field(default_factory=list)
    h6: List[HeadingEntry] = Field(default_factory=list)

    def level(self, name: str) -> List[HeadingEntry]:
        return getattr(self, name)


# -------- Images --------

class ImageRecord(FrozenModel):
    src: str
    alt: str = ""
    title: str = ""
    width: Optional[str] = None
    height: Optional[str] = None
    has_alt: bool = False
    has_title: bool = False
    alt_length: int = 0
    is_decorative: bool = False


class ImagesSection(FrozenModel):
    """Images without a src are only counted in `without_src_count`, never listed."""
    without_alt_count: int = 0
    without_title_count: int = 0
    without_src_count: int = 0
    images: List[ImageRecord] = Field(default_factory=list)

    @computed_field
    @property
    def total_count(self) -> int:
        return len(self.images)


# -------- Links --------

class LinkRecord(FrozenModel):
    href: str
    anchor_text: str = ""
    anchor_text_length: int = 0
    title: str = ""
    rel: str = ""
    is_external: bool = False
    is_nofollow: bool = False
    has_title: bool = False
    is_empty_anchor: bool = False


class LinksSection(FrozenModel):
    links: List[LinkRecord] = Field(default_factory=list)

    @computed_field
    @property
    def total_count(self) -> int:
        return len(self.links)

    @computed_field
    @property
    def internal_count(self) -> int:
        return sum(1 for link in self.links if not link.is_external)

    @computed_field
    @property
    def external_count(self) -> int:
        return sum(1 for link in self.links if link.is_external)

    @computed_field
    @property
    def nofollow_count(self) -> int:
        return sum(1 for link in self.links if link.is_nofollow)

    @computed_field
    @property
    def empty_anchor_count(self) -> int:
        return sum(1 for link in self.links if link.is_empty_anchor)


# -------- Content & Technical --------

class ContentSection(FrozenModel):
    word_count: int = 0
    character_count: int = 0
    character_count_no_spaces: int = 0
    html_size: int = 0
    text_to_html_ratio: float = 0.0
    reading_time_minutes: int = 0
    sentences: int = 0
    paragraphs: int = 0
    average_words_per_sentence: float = 0.0


class ExternalResources(FrozenModel):
    css: List[str] = Field(default_factory=list)
    js: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    fonts: List[str] = Field(default_factory=list)


class TechnicalSection(FrozenModel):
    doctype: str = ""
    lang_attribute: str = ""
    schema_markup_present: bool = False
    open_graph_present: bool = False
    twitter_cards_present: bool = False
    amp_present: bool = False
    ssl_required: bool = False
    external_resources: ExternalResources = Field(default_factory=ExternalResources)
    inline_styles_count: int = 0
    inline_scripts_count: int = 0


# -------- Structured data & Social --------

class StructuredData(FrozenModel):
    """
    JSON-LD is keyed by `@type` (last block of a type wins). Microdata and RDFa
    only capture the outer type attribute of each item.
    """
    json_ld: Dict[str, Any] = Field(default_factory=dict)
    microdata: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)
    rdfa: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)

    @computed_field
    @property
    def schemas_found(self) -> List[str]:
        found: List[str] = []
        for key in [*self.json_ld, *self.microdata, *self.rdfa]:
            if key not in found:
                found.append(key)
        return found


class FacebookTags(FrozenModel):
    app_id: str = ""
    admins: str = ""


class LinkedInTags(FrozenModel):
    partner_id: str = ""


class SocialMedia(FrozenModel):
    open_graph: Dict[str, str] = Field(default_factory=dict)
    twitter_cards: Dict[str, str] = Field(default_factory=dict)
    facebook: FacebookTags = Field(default_factory=FacebookTags)
    linkedin: LinkedInTags = Field(default_factory=LinkedInTags)


class SeoTags(FrozenModel):
    next_page: str = ""
    prev_page: str = ""
    amp_html: str = ""
    mobile_alternate: str = ""


class PerformanceHints(FrozenModel):
    dns_prefetch_count: int = 0
    preconnect_count: int = 0
    prefetch_count: int = 0
    preload_count: int = 0
    external_css_count: int = 0
    external_js_count: int = 0


# -------- Fact records --------

class FullFactRecord(FrozenModel):
    """The unified output of the standard strategy: every section is always present."""
    meta: MetaData = Field(default_factory=MetaData)
    headings: HeadingMap = Field(default_factory=HeadingMap)
    images: ImagesSection = Field(default_factory=ImagesSection)
    links: LinksSection = Field(default_factory=LinksSection)
    content: ContentSection = Field(default_factory=ContentSection)
    technical: TechnicalSection = Field(default_factory=TechnicalSection)
    structured_data: StructuredData = Field(default_factory=StructuredData)
    social_media: SocialMedia = Field(default_factory=SocialMedia)
    seo_tags: SeoTags = Field(default_factory=SeoTags)
    performance: PerformanceHints = Field(default_factory=PerformanceHints)


class PartialFactRecord(FrozenModel):
    """
    Output of the chunked and streaming strategies.
    Holds a subset of categories; a missing category means "not computed", not "empty".
    """
    strategy: str
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def categories(self) -> List[str]:
        return [key for key in self.data if key in PARTIAL_CATEGORIES]

    def get(self, category: str, default: Any = None) -> Any:
        return self.data.get(category, default)


# -------- Strategy & Metrics --------

class Strategy(str, Enum):
    STANDARD = "standard"
    CHUNKED = "chunked"
    STREAMING = "streaming"

    @classmethod
    def coerce(cls, value: Any) -> "Strategy":
        """Converts a raw value (e.g. from settings.json) into a Strategy."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise StrategyError(f"Unknown extraction strategy: {value!r}") from None


class StrategyDecision(FrozenModel):
    should_optimize: bool = False
    reasons: List[str] = Field(default_factory=list)
    recommended_strategy: Strategy = Strategy.STANDARD
    html_size: int = 0
    memory_usage: int = 0
    estimated_elements: int = 0


class PerformanceMetrics(FrozenModel):
    processing_time_ms: float = 0.0
    memory_used_mb: float = 0.0
    peak_memory_mb: float = 0.0
    optimization_applied: bool = False
    optimization_strategy: str = Strategy.STANDARD.value
    optimization_reasons: List[str] = Field(default_factory=list)


class OptimizerSettings(BaseModel):
    """Thresholds and batch sizes for the strategy selector and the optimized executors."""
    large_html_threshold: int = 1024 * 1024
    memory_threshold: int = 128 * 1024 * 1024
    dom_element_threshold: int = 5000
    streaming_size_threshold: int = 5 * 1024 * 1024
    streaming_element_threshold: int = 10000
    batch_size: int = 500
    memory_check_interval: int = 100
    chunk_size: int = 512000
    gc_every_chunks: int = 5
    processing_timeout_s: float = 30
    force_strategy: Optional[str] = None

    @classmethod
    def from_config(cls, **overrides: Any) -> "OptimizerSettings":
        """Builds settings from the 'optimizer' section of settings.json; explicit overrides win."""
        section = config_manager.get_nested("optimizer", {}) or {}
        values = {k: v for k, v in section.items() if k in cls.model_fields and v is not None}
        values.update(overrides)
        return cls(**values)
