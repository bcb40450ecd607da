"""Document source adapters."""

from .in_memory_source import InMemoryDocumentSource
from .json_document_source import DocumentRecord, JsonDocumentSource

__all__ = ["DocumentRecord", "InMemoryDocumentSource", "JsonDocumentSource"]
