# src/pagefacts/services/size_estimator_service.py
import logging
import re
from typing import List, Optional, Union

from pagefacts.model import OptimizerSettings, Strategy, StrategyDecision
from pagefacts.utils.memory_probe import MemoryProbe, PsutilMemoryProbe

logger = logging.getLogger(__name__)

_OPENING_TAG_RE = re.compile(r'<[a-zA-Z][^>]*>')
_UNITS = ("B", "KB", "MB", "GB")


class SizeEstimator:
    """
    Classifies raw HTML by size, process memory and estimated DOM complexity,
    and recommends an extraction strategy.
    """

    def __init__(self, settings: Optional[OptimizerSettings] = None, probe: Optional[MemoryProbe] = None):
        self.settings = settings or OptimizerSettings.from_config()
        self.probe = probe or PsutilMemoryProbe()

    @staticmethod
    def estimate_element_count(html: str) -> int:
        """Rough element count: the number of opening-tag-like matches."""
        return sum(1 for _ in _OPENING_TAG_RE.finditer(html))

    @staticmethod
    def format_bytes(size: float) -> str:
        """Formats a byte count with binary units, e.g. 1536 -> '1.5 KB'."""
        unit = 0
        while size >= 1024 and unit < len(_UNITS) - 1:
            size /= 1024
            unit += 1
        return f"{round(size, 2):g} {_UNITS[unit]}"

    def classify(self, html: Union[str, bytes], memory_usage: Optional[int] = None) -> StrategyDecision:
        """
        Decides whether the input needs an optimized strategy.

        Args:
            html: The raw markup.
            memory_usage: Current process memory in bytes; read from the probe when omitted.

        Returns:
            StrategyDecision with every triggered reason recorded.
        """
        s = self.settings
        text = html.decode("utf-8", errors="replace") if isinstance(html, bytes) else html
        html_size = len(html) if isinstance(html, bytes) else len(text.encode("utf-8"))
        memory = self.probe.current() if memory_usage is None else memory_usage
        elements = self.estimate_element_count(text)

        reasons: List[str] = []
        if html_size > s.large_html_threshold:
            reasons.append(f"Large HTML size ({self.format_bytes(html_size)})")
        if memory > s.memory_threshold:
            reasons.append(f"High memory usage ({self.format_bytes(memory)})")
        if elements > s.dom_element_threshold:
            reasons.append(f"Complex DOM structure (~{elements} elements)")

        strategy = Strategy.STANDARD
        if reasons:
            if html_size > s.streaming_size_threshold or elements > s.streaming_element_threshold:
                strategy = Strategy.STREAMING
            else:
                strategy = Strategy.CHUNKED

        decision = StrategyDecision(
            should_optimize=bool(reasons),
            reasons=reasons,
            recommended_strategy=strategy,
            html_size=html_size,
            memory_usage=memory,
            estimated_elements=elements,
        )
        logger.debug("Strategy decision: %s (%s)", strategy.value, "; ".join(reasons) or "no triggers")
        return decision
