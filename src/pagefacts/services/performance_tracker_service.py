# src/pagefacts/services/performance_tracker_service.py
import logging
from dataclasses import dataclass
from typing import Optional

from pagefacts.model import PerformanceMetrics, Strategy, StrategyDecision
from pagefacts.utils.memory_probe import MB, MemoryProbe, PsutilMemoryProbe
from pagefacts.utils.run_timers import RunTimers

logger = logging.getLogger(__name__)


@dataclass
class TrackingHandle:
    timers: RunTimers
    start_memory: int


class PerformanceTracker:
    """
    Records wall-clock time and memory deltas of one extraction run.
    `stop()` never raises: a metrics record is returned even for failed runs.
    """

    def __init__(self, probe: Optional[MemoryProbe] = None):
        self.probe = probe or PsutilMemoryProbe()

    def _memory(self) -> int:
        try:
            return int(self.probe.current())
        except Exception as e:
            logger.warning("Memory probe failed: %s", e)
            return 0

    def start(self) -> TrackingHandle:
        return TrackingHandle(timers=RunTimers().start(), start_memory=self._memory())

    def stop(
            self,
            handle: TrackingHandle,
            decision: Optional[StrategyDecision] = None,
            strategy: Optional[Strategy] = None,
    ) -> PerformanceMetrics:
        """
        Builds PerformanceMetrics for the run started with `handle`.

        Args:
            handle: The handle returned by start().
            decision: The strategy decision of the run (None when classification never happened).
            strategy: The strategy actually executed; defaults to the decision's recommendation.
        """
        handle.timers.stop()
        end_memory = self._memory()
        try:
            peak = int(self.probe.peak())
        except Exception as e:
            logger.warning("Peak memory probe failed: %s", e)
            peak = max(end_memory, handle.start_memory)

        if strategy is None:
            strategy = decision.recommended_strategy if decision and decision.should_optimize else Strategy.STANDARD

        return PerformanceMetrics(
            processing_time_ms=handle.timers.duration_ms,
            memory_used_mb=round((end_memory - handle.start_memory) / MB, 2),
            peak_memory_mb=round(peak / MB, 2),
            optimization_applied=bool(decision and decision.should_optimize),
            optimization_strategy=strategy.value,
            optimization_reasons=list(decision.reasons) if decision else [],
        )
