# src/pagefacts/utils/memory_probe.py
import logging
from typing import Protocol, runtime_checkable

import psutil

logger = logging.getLogger(__name__)

MB = 1024 * 1024


@runtime_checkable
class MemoryProbe(Protocol):
    """Reports process memory in bytes. Injected so tests can fake memory pressure."""

    def current(self) -> int: ...

    def peak(self) -> int: ...


class PsutilMemoryProbe:
    """
    MemoryProbe backed by psutil's resident set size of the current process.

    psutil only exposes a peak value on Windows (`peak_wset`); elsewhere the
    peak is the highest value this probe has observed.
    """

    def __init__(self, pid: int | None = None):
        self._process = psutil.Process(pid)
        self._observed_peak = 0

    def current(self) -> int:
        rss = self._process.memory_info().rss
        self._observed_peak = max(self._observed_peak, rss)
        return rss

    def peak(self) -> int:
        info = self._process.memory_info()
        native_peak = getattr(info, "peak_wset", None)
        self._observed_peak = max(self._observed_peak, info.rss)
        return max(native_peak or 0, self._observed_peak)
