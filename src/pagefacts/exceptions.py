# src/pagefacts/exceptions.py
from typing import Any, Optional


class PageFactsError(Exception):
    """
    Base class for all errors raised by the extraction engine.

    The controller attaches the PerformanceMetrics of the failed run to
    `metrics` before re-raising, so callers can still log timing data.
    """

    def __init__(self, message: str, metrics: Optional[Any] = None):
        super().__init__(message)
        self.metrics = metrics


class ParseError(PageFactsError):
    """The input could not be turned into any document tree."""


class ChunkParseError(ParseError):
    """A single streaming chunk failed to parse. Recovered locally by the streaming service."""

    def __init__(self, message: str, chunk_index: int):
        super().__init__(message)
        self.chunk_index = chunk_index


class ExtractionError(PageFactsError):
    """An extractor failed unexpectedly while building a FactRecord section."""

    def __init__(self, message: str, category: Optional[str] = None, metrics: Optional[Any] = None):
        super().__init__(message, metrics=metrics)
        self.category = category


class StrategyError(PageFactsError):
    """An unknown or unsupported extraction strategy was requested."""
