"""
pagefacts: SEO fact extraction from HTML documents.

    >>> import pagefacts
    >>> record, metrics = pagefacts.extract(html, "https://example.com/page")
"""
from typing import Iterable, Optional, Tuple, Union

from pagefacts.exceptions import ChunkParseError, ExtractionError, PageFactsError, ParseError, StrategyError
from pagefacts.model import (
    FullFactRecord, OptimizerSettings, PartialFactRecord, PerformanceMetrics, Strategy, StrategyDecision,
)

__version__ = "0.1.0"

_default_controller = None


def extract(
        html: Union[str, bytes],
        url: str,
        targets: Optional[Iterable[str]] = None,
) -> Tuple[Union[FullFactRecord, PartialFactRecord], PerformanceMetrics]:
    """Extracts the fact record of one document with the configured defaults."""
    global _default_controller
    if _default_controller is None:
        from pagefacts.controllers.extract_controller import ExtractController
        _default_controller = ExtractController()
    return _default_controller.extract(html, url, targets=targets)


__all__ = [
    "extract",
    "FullFactRecord", "PartialFactRecord", "PerformanceMetrics", "Strategy", "StrategyDecision",
    "OptimizerSettings",
    "PageFactsError", "ParseError", "ChunkParseError", "ExtractionError", "StrategyError",
]
