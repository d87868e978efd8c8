# src/pagefacts/utils/run_timers.py
import time
from typing import Optional


class RunTimers:
    """
    Wall-clock stopwatch for one extraction run or one batch.

    Usable as `RunTimers().start()` / `.stop()` or as a context manager.
    Reading `duration` while running gives the time elapsed so far.
    """

    def __init__(self):
        self._began: Optional[float] = None
        self._ended: Optional[float] = None

    def start(self) -> "RunTimers":
        self._began, self._ended = time.perf_counter(), None
        return self

    def stop(self) -> None:
        if self.running:
            self._ended = time.perf_counter()

    @property
    def running(self) -> bool:
        return self._began is not None and self._ended is None

    @property
    def duration(self) -> float:
        if self._began is None:
            return 0.0
        return (self._ended or time.perf_counter()) - self._began

    @property
    def duration_ms(self) -> float:
        return round(self.duration * 1000, 2)

    def __enter__(self) -> "RunTimers":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"<RunTimers {self.duration_ms} ms{' (running)' if self.running else ''}>"
