from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .models import Document, DocumentMetadata


class DocumentStore(ABC):
    """Read-only view of a vault: documents, their structure, and all other files."""

    @abstractmethod
    def list_documents(self) -> list[str]:
        """Paths of every document, sorted."""

    @abstractmethod
    def get_metadata(self, path: str) -> Optional[DocumentMetadata]:
        """Parsed structure of a document, or None if it has none."""

    @abstractmethod
    def read_text(self, path: str) -> str:
        """Raw text of a document."""

    @abstractmethod
    def list_all_files(self) -> list[str]:
        """Paths of every file in the vault, documents included, sorted."""

    @abstractmethod
    def resolve_path(self, raw_target: str, relative_to: str) -> Optional[str]:
        """Resolve a link target as seen from ``relative_to`` to a vault path."""

    def snapshot(self, path: str) -> Document:
        return Document(path=path, text=self.read_text(path), metadata=self.get_metadata(path))
