"""Document storage adapters."""

from .memory import InMemoryDocumentStorage, StoredDocument

__all__ = ["InMemoryDocumentStorage", "StoredDocument"]
