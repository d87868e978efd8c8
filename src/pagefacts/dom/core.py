# src/pagefacts/dom/core.py
from typing import Callable, Type

from pydantic import BaseModel

from pagefacts.dom.document import DocumentModel

# A field extractor: pure function of the parsed document and the page URL.
Extractor = Callable[[DocumentModel, str], BaseModel]


class ExtractorDefinition:
    """
    Configuration object binding a FactRecord section to its model and extractor.
    Every module in `pagefacts.extractors` exposes one as `DEFINITION`.
    """

    def __init__(self, category: str, model: Type[BaseModel], extractor: Extractor):
        self.category = category
        self.model = model
        self.extractor = extractor

    def __call__(self, doc: DocumentModel, base_url: str) -> BaseModel:
        return self.extractor(doc, base_url)

    def __repr__(self) -> str:
        return f"<ExtractorDefinition {self.category} -> {self.model.__name__}>"
