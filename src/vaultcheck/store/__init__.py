"""Read-only access to vault documents and their parsed structure."""

from .base import DocumentStore
from .vault import FilesystemVault

__all__ = ["DocumentStore", "FilesystemVault"]
