from __future__ import annotations

import concurrent.futures
import gc
import json
import logging
import math
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd
from tqdm.auto import tqdm

from pagefacts.dom.document import DocumentModel, ParseOptions
from pagefacts.exceptions import ExtractionError, PageFactsError, StrategyError
from pagefacts.model import (
    HEADING_LEVELS, FullFactRecord, OptimizerSettings, PartialFactRecord, PerformanceMetrics, Strategy,
    StrategyDecision,
)
from pagefacts.services.chunked_service import ChunkedExtractionService
from pagefacts.services.extraction_service import ExtractionService
from pagefacts.services.performance_tracker_service import PerformanceTracker
from pagefacts.services.size_estimator_service import SizeEstimator
from pagefacts.services.streaming_service import StreamingExtractionService
from pagefacts.utils.memory_probe import MemoryProbe, PsutilMemoryProbe
from pagefacts.utils.run_timers import RunTimers

logger = logging.getLogger(__name__)

FactRecord = Union[FullFactRecord, PartialFactRecord]

BATCH_COLUMNS = [
    "index", "url", "ok", "strategy", "error", "title",
    "word_count", "heading_count", "image_count", "link_count", "processing_time_ms",
]


def summarise_record(record: FactRecord) -> Dict[str, Any]:
    """Flattens a fact record into the headline numbers used for batch reports."""
    if isinstance(record, FullFactRecord):
        return {
            "title": record.meta.title,
            "word_count": record.content.word_count,
            "heading_count": sum(len(record.headings.level(lvl)) for lvl in HEADING_LEVELS),
            "image_count": record.images.total_count,
            "link_count": record.links.total_count,
        }

    data = record.data
    headings = data.get("headings")
    if isinstance(headings, dict):
        heading_count = sum(len(headings.get(lvl, [])) for lvl in HEADING_LEVELS)
    elif "heading_counts" in data:
        heading_count = sum(data["heading_counts"].values())
    else:
        heading_count = None

    def section_count(category: str, fallback_key: str) -> Optional[int]:
        section = data.get(category)
        if isinstance(section, dict) and "total_count" in section:
            return section["total_count"]
        return data.get(fallback_key)

    return {
        "title": data.get("title") or (data.get("meta") or {}).get("title", ""),
        "word_count": None,
        "heading_count": heading_count,
        "image_count": section_count("images", "image_count"),
        "link_count": section_count("links", "link_count"),
    }


def extract_page_worker(
        index: int,
        url: str,
        html: Union[str, bytes],
        targets: Optional[List[str]],
        force_strategy: Optional[str],
        settings: Dict[str, Any],
        parse_options: ParseOptions,
) -> str:
    """
    Worker function for batch runs. Builds its own controller inside the child
    process and returns the summary row as a JSON string.
    """
    controller = ExtractController(settings=OptimizerSettings(**settings), parse_options=parse_options)
    row = controller.extract_row(index, url, html, targets=targets, force_strategy=force_strategy)
    return json.dumps(row, ensure_ascii=False, default=str)


class ExtractController:
    """
    Entry point of the extraction engine.

    One call runs Classifying -> {Standard | Chunked | Streaming} -> Done.
    Nothing is kept between calls: every service here is configured once and
    holds no per-document state.
    """

    def __init__(
            self,
            settings: Optional[OptimizerSettings] = None,
            probe: Optional[MemoryProbe] = None,
            parse_options: Optional[ParseOptions] = None,
            reclaim: Callable[[], Any] = gc.collect,
            *,
            default_workers: Optional[int] = None,
    ) -> None:
        self.settings = settings or OptimizerSettings.from_config()
        self.probe = probe or PsutilMemoryProbe()
        self.parse_options = parse_options or ParseOptions.from_config()
        self.default_workers = default_workers or (os.cpu_count() or 4)

        self.estimator = SizeEstimator(self.settings, self.probe)
        self.tracker = PerformanceTracker(self.probe)
        self.standard = ExtractionService(self.parse_options)
        self.chunked = ChunkedExtractionService(self.settings, self.probe, reclaim, self.parse_options)
        self.streaming = StreamingExtractionService(self.settings, reclaim, parse_options=self.parse_options)

    # -------- Single document --------

    def _select_strategy(self, decision: StrategyDecision, force_strategy: Optional[str]) -> Strategy:
        requested = force_strategy or self.settings.force_strategy or decision.recommended_strategy
        try:
            return Strategy.coerce(requested)
        except StrategyError as e:
            logger.warning("%s; falling back to the standard strategy.", e)
            return Strategy.STANDARD

    def _run(
            self,
            strategy: Strategy,
            html: str,
            url: str,
            targets: Optional[Iterable[str]],
            show_progress: bool,
    ) -> FactRecord:
        if strategy is Strategy.STREAMING:
            return self.streaming.extract(html, url, targets=targets, show_progress=show_progress)
        if strategy is Strategy.CHUNKED:
            return self.chunked.extract(html, url, targets=targets, show_progress=show_progress)
        return self.standard.extract(html, url)

    def extract(
            self,
            html: Union[str, bytes],
            url: str,
            targets: Optional[Iterable[str]] = None,
            force_strategy: Optional[str] = None,
            show_progress: bool = False,
    ) -> Tuple[FactRecord, PerformanceMetrics]:
        """
        Extracts the fact record of one document.

        Args:
            html: Raw markup (str, or UTF-8 bytes).
            url: The page URL, used as base for resolving relative URLs.
            targets: Categories for the chunked/streaming strategies; ignored by the standard one.
            force_strategy: Skip the size-based choice and run this strategy instead.
            show_progress: Show tqdm bars for batches and chunks.

        Returns:
            (FactRecord, PerformanceMetrics)

        Raises:
            ParseError: when the input cannot be parsed at all.
            ExtractionError: for any unexpected failure during extraction.
            Both carry the metrics of the failed run in `.metrics`.
        """
        handle = self.tracker.start()
        decision: Optional[StrategyDecision] = None
        strategy: Optional[Strategy] = None

        try:
            text = DocumentModel.normalize_source(html)
            decision = self.estimator.classify(text)
            strategy = self._select_strategy(decision, force_strategy)
            logger.debug("Extracting %s with the %s strategy", url, strategy.value)
            record = self._run(strategy, text, url, targets, show_progress)
        except PageFactsError as e:
            e.metrics = self.tracker.stop(handle, decision, strategy)
            logger.error("HTML extraction failed for %s: %s", url, e, exc_info=True)
            raise
        except Exception as e:
            metrics = self.tracker.stop(handle, decision, strategy)
            logger.error("HTML extraction failed for %s: %s", url, e, exc_info=True)
            raise ExtractionError(f"Failed to extract facts from {url}: {e}", metrics=metrics) from e

        metrics = self.tracker.stop(handle, decision, strategy)
        logger.debug(
            "Extraction of %s completed in %.2f ms (%s)",
            url, metrics.processing_time_ms, metrics.optimization_strategy,
        )
        return record, metrics

    # -------- Batches --------

    def extract_row(
            self,
            index: int,
            url: str,
            html: Union[str, bytes],
            targets: Optional[Iterable[str]] = None,
            force_strategy: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Extracts one page and returns its batch summary row; failures become rows too."""
        row: Dict[str, Any] = {"index": index, "url": url}
        try:
            record, metrics = self.extract(html, url, targets=targets, force_strategy=force_strategy)
        except PageFactsError as e:
            metrics = e.metrics
            row.update(ok=False, strategy=metrics.optimization_strategy if metrics else None, error=str(e))
            row["processing_time_ms"] = metrics.processing_time_ms if metrics else None
            return row

        row.update(ok=True, strategy=metrics.optimization_strategy, error=None)
        row.update(summarise_record(record))
        row["processing_time_ms"] = metrics.processing_time_ms
        return row

    @staticmethod
    def _timed_out_row(index: int, url: str, deadline: float) -> Dict[str, Any]:
        return {"index": index, "url": url, "ok": False, "error": f"Timed out after {deadline:g}s"}

    def extract_batch(
            self,
            pages: Iterable[Tuple[str, Union[str, bytes]]],
            workers: Optional[int] = None,
            targets: Optional[Iterable[str]] = None,
            force_strategy: Optional[str] = None,
            show_progress: bool = False,
            timeout_s: Optional[float] = None,
    ) -> pd.DataFrame:
        """
        Extracts many (url, html) pairs and returns one summary row per page.

        Pages are spread over a process pool; `workers=0` runs them inline in
        this process. Pages that have not finished when the overall deadline
        passes are reported as failed. Rows are returned in input order.
        """
        items = list(pages)
        if not items:
            return pd.DataFrame(columns=BATCH_COLUMNS)

        n_workers = self.default_workers if workers is None else int(workers)
        targets_list = list(targets) if targets else None
        if timeout_s is None:
            timeout_s = self.settings.processing_timeout_s * math.ceil(len(items) / max(1, n_workers))

        if n_workers <= 0:
            rows = self._batch_inline(items, targets_list, force_strategy, show_progress, timeout_s)
        else:
            rows = self._batch_pool(items, n_workers, targets_list, force_strategy, show_progress, timeout_s)

        df = pd.DataFrame(rows, columns=BATCH_COLUMNS)
        df = df.sort_values("index").reset_index(drop=True)
        logger.info("Batch extraction finished: %d ok, %d failed", int(df["ok"].sum()), int((~df["ok"]).sum()))
        return df

    def _batch_inline(
            self,
            items: List[Tuple[str, Union[str, bytes]]],
            targets: Optional[List[str]],
            force_strategy: Optional[str],
            show_progress: bool,
            timeout_s: float,
    ) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        iterator = enumerate(items)
        if show_progress:
            iterator = tqdm(iterator, total=len(items), desc="Extracting pages", unit=" page")

        with RunTimers() as timers:
            for index, (url, html) in iterator:
                if timers.duration > timeout_s:
                    rows.append(self._timed_out_row(index, url, timeout_s))
                    continue
                rows.append(self.extract_row(index, url, html, targets=targets, force_strategy=force_strategy))
        logger.debug("Inline batch of %d pages took %.2f ms", len(items), timers.duration_ms)
        return rows

    def _batch_pool(
            self,
            items: List[Tuple[str, Union[str, bytes]]],
            n_workers: int,
            targets: Optional[List[str]],
            force_strategy: Optional[str],
            show_progress: bool,
            timeout_s: float,
    ) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        settings = self.settings.model_dump()
        pool = ProcessPoolExecutor(max_workers=n_workers)
        try:
            futures = {
                pool.submit(
                    extract_page_worker, index, url, html, targets, force_strategy, settings, self.parse_options,
                ): index
                for index, (url, html) in enumerate(items)
            }
            iterator = as_completed(futures, timeout=timeout_s)
            if show_progress:
                iterator = tqdm(iterator, total=len(futures), desc="Extracting pages", unit=" page")

            done = set()
            try:
                for fut in iterator:
                    index = futures[fut]
                    done.add(index)
                    try:
                        rows.append(json.loads(fut.result()))
                    except Exception as e:
                        logger.error("Failed to process page %s: %s", items[index][0], e, exc_info=True)
                        rows.append({"index": index, "url": items[index][0], "ok": False, "error": str(e)})
            except concurrent.futures.TimeoutError:
                logger.warning("Batch deadline of %gs passed; %d pages unfinished", timeout_s, len(futures) - len(done))
                for index in sorted(set(futures.values()) - done):
                    rows.append(self._timed_out_row(index, items[index][0], timeout_s))
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
        return rows
