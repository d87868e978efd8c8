from pagefacts.dom.document import DocumentModel, Element, ParseOptions

__all__ = ["DocumentModel", "Element", "ParseOptions"]
