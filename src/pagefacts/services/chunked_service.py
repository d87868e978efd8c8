# src/pagefacts/services/chunked_service.py
import gc
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from tqdm.auto import tqdm

from pagefacts.dom.document import DocumentModel, Element, ParseOptions
from pagefacts.model import OptimizerSettings, PartialFactRecord, Strategy
from pagefacts.services.partial_fields import CATEGORY_MATCHERS, element_data, resolve_targets, summarise
from pagefacts.utils.memory_probe import MemoryProbe, PsutilMemoryProbe
from pagefacts.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)


class ChunkedExtractionService:
    """
    Chunked strategy for moderately large documents.

    Parses the full document once, then extracts each category's elements in
    fixed-size batches, triggering memory reclamation between batches and
    between categories. Produces a PartialFactRecord over the reduced
    category set.
    """

    def __init__(
            self,
            settings: Optional[OptimizerSettings] = None,
            probe: Optional[MemoryProbe] = None,
            reclaim: Callable[[], Any] = gc.collect,
            parse_options: Optional[ParseOptions] = None,
    ):
        self.settings = settings or OptimizerSettings.from_config()
        self.probe = probe or PsutilMemoryProbe()
        self.reclaim = reclaim
        self.parse_options = parse_options

    def extract(
            self,
            html: Union[str, bytes],
            url: str,
            targets: Optional[Iterable[str]] = None,
            show_progress: bool = False,
    ) -> PartialFactRecord:
        doc = DocumentModel.parse(html, self.parse_options)
        base_host = UrlUtils.get_host(url)

        data: Dict[str, Any] = {}
        for category in resolve_targets(targets):
            elements = doc.find_all(CATEGORY_MATCHERS[category])
            records = self._extract_batched(elements, category, url, base_host, show_progress)
            data[category] = summarise(category, records)
            self.reclaim()

        return PartialFactRecord(strategy=Strategy.CHUNKED.value, data=data)

    def _extract_batched(
            self,
            elements: List[Element],
            category: str,
            url: str,
            base_host: str,
            show_progress: bool,
    ) -> List[Dict[str, Any]]:
        """Turns elements into records batch by batch, watching memory as it goes."""
        batch_size = max(1, self.settings.batch_size)
        check_every = max(1, self.settings.memory_check_interval)
        total = len(elements)
        results: List[Dict[str, Any]] = []
        processed = 0

        starts = range(0, total, batch_size)
        if show_progress:
            starts = tqdm(starts, desc=f"Extracting {category}", unit="batch", leave=False)

        for start in starts:
            batch = []
            for el in elements[start:start + batch_size]:
                batch.append(element_data(el, url, base_host))
                processed += 1
                if processed % check_every == 0:
                    self._check_memory(processed, total)

            results.extend(batch)
            del batch
            self.reclaim()

        return results

    def _check_memory(self, processed: int, total: int) -> None:
        usage = self.probe.current()
        if usage > self.settings.memory_threshold:
            logger.warning(
                "High memory usage during batch processing: %d bytes (%d/%d elements processed)",
                usage, processed, total,
            )
            self.reclaim()
