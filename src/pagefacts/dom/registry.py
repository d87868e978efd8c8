# src/pagefacts/dom/registry.py
import importlib
import logging
import pkgutil
from typing import Dict, List, Optional

from pagefacts.dom.core import ExtractorDefinition
from pagefacts.exceptions import ExtractionError
from pagefacts.model import FACT_CATEGORIES

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """
    Central registry of field extractors.

    Discovers ExtractorDefinition objects in the modules of the
    'pagefacts.extractors' package, one per FactRecord section.
    """

    _definitions: Dict[str, ExtractorDefinition] = {}
    _loaded: bool = False

    @classmethod
    def discover(cls) -> None:
        """
        Imports every module of `pagefacts.extractors` and registers its DEFINITION.

        Raises:
            ExtractionError: if a FactRecord section ends up without an extractor.
        """
        if cls._loaded:
            return

        import pagefacts.extractors as extractors_pkg

        for _, name, _ in pkgutil.iter_modules(extractors_pkg.__path__):
            module = importlib.import_module(f"pagefacts.extractors.{name}")
            defn = getattr(module, "DEFINITION", None)
            if isinstance(defn, ExtractorDefinition):
                cls._definitions[defn.category] = defn
                logger.debug("Extractor loaded: %s", defn.category)

        missing = [c for c in FACT_CATEGORIES if c not in cls._definitions]
        if missing:
            raise ExtractionError(f"No extractor registered for: {', '.join(missing)}")

        cls._loaded = True

    @classmethod
    def get(cls, category: str) -> Optional[ExtractorDefinition]:
        cls.discover()
        return cls._definitions.get(category)

    @classmethod
    def get_all(cls) -> List[ExtractorDefinition]:
        """Returns the registered definitions in FactRecord section order."""
        cls.discover()
        return [cls._definitions[c] for c in FACT_CATEGORIES]
