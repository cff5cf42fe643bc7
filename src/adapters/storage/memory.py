"""
In-memory document storage adapter - Implements DocumentStorage protocol.

Uploaded files are kept per authentication surface and document slot. The
domain only learns that a slot is filled; bytes never reach it.
"""

import logging
from dataclasses import dataclass

from src.domain.ports import DocumentKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredDocument:
    filename: str
    content: bytes


class InMemoryDocumentStorage:
    """
    Implements DocumentStorage protocol via a dictionary.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Uploading to a filled slot replaces the previous file.
    """

    def __init__(self) -> None:
        self._documents: dict[str, dict[DocumentKind, StoredDocument]] = {}

    def store(self, surface_id: str, kind: DocumentKind, filename: str, content: bytes) -> None:
        self._documents.setdefault(surface_id, {})[kind] = StoredDocument(filename, content)
        logger.info(
            "[DOCUMENT] Surface: %s Slot: %s File: %s (%d bytes)",
            surface_id,
            kind.value,
            filename,
            len(content),
        )

    def discard(self, surface_id: str, kind: DocumentKind | None = None) -> None:
        if kind is None:
            self._documents.pop(surface_id, None)
            return
        self._documents.get(surface_id, {}).pop(kind, None)

    def get(self, surface_id: str, kind: DocumentKind) -> StoredDocument | None:
        return self._documents.get(surface_id, {}).get(kind)
