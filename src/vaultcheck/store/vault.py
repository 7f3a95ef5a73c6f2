"""Filesystem-backed document store."""

from __future__ import annotations

import logging
import posixpath
import threading
from pathlib import Path
from typing import Optional

from .base import DocumentStore
from .models import Document, DocumentMetadata
from .parser import parse_markdown_text

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".md"


def _is_hidden(rel: Path) -> bool:
    return any(part.startswith(".") for part in rel.parts)


class FilesystemVault(DocumentStore):
    """A directory of markdown documents and assets.

    Hidden files and directories (``.obsidian``, ``.git``, ``.trash``...) are not
    part of the vault. Metadata is parsed on first access and cached for the
    lifetime of the instance, so one instance is one read snapshot.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._files: Optional[list[str]] = None
        self._file_set: frozenset[str] = frozenset()
        self._by_name: dict[str, list[str]] = {}
        self._metadata: dict[str, Optional[DocumentMetadata]] = {}
        self._lock = threading.Lock()

    def _load_files(self) -> list[str]:
        with self._lock:
            if self._files is None:
                paths: list[str] = []
                for p in self.root.rglob("*"):
                    rel = p.relative_to(self.root)
                    if _is_hidden(rel) or not p.is_file():
                        continue
                    paths.append(rel.as_posix())
                paths.sort()
                by_name: dict[str, list[str]] = {}
                for rel_posix in paths:
                    by_name.setdefault(posixpath.basename(rel_posix).lower(), []).append(rel_posix)
                self._files = paths
                self._file_set = frozenset(paths)
                self._by_name = by_name
                logger.debug(f"Indexed {len(paths)} files under {self.root}")
            return self._files

    def list_all_files(self) -> list[str]:
        return list(self._load_files())

    def list_documents(self) -> list[str]:
        return [p for p in self._load_files() if p.endswith(DOCUMENT_SUFFIX)]

    def read_text(self, path: str) -> str:
        return (self.root / path).read_text(encoding="utf-8")

    def _parsed(self, path: str, text: Optional[str] = None) -> Optional[DocumentMetadata]:
        if not path.endswith(DOCUMENT_SUFFIX):
            return None
        with self._lock:
            if path in self._metadata:
                return self._metadata[path]
        metadata = parse_markdown_text(self.read_text(path) if text is None else text)
        with self._lock:
            return self._metadata.setdefault(path, metadata)

    def get_metadata(self, path: str) -> Optional[DocumentMetadata]:
        return self._parsed(path)

    def snapshot(self, path: str) -> Document:
        text = self.read_text(path)
        return Document(path=path, text=text, metadata=self._parsed(path, text))

    def _exists(self, path: str) -> bool:
        self._load_files()
        return path in self._file_set

    def _match_suffix(self, name: str) -> Optional[str]:
        candidates = self._by_name.get(posixpath.basename(name).lower(), [])
        exact = [p for p in candidates if p == name or p.endswith("/" + name)]
        if not exact:
            lowered = name.lower()
            exact = [p for p in candidates if p.lower() == lowered or p.lower().endswith("/" + lowered)]
        if not exact:
            return None
        return min(exact, key=lambda p: (p.count("/"), len(p), p))

    def resolve_path(self, raw_target: str, relative_to: str) -> Optional[str]:
        """Resolve a link target the way the editor picks a link destination.

        Order: relative to the source document's folder, then from the vault
        root, then the shallowest file whose trailing path components match
        (case-insensitively as a last resort). A target without the document
        suffix is also tried with it.
        """
        link = raw_target.strip().replace("\\", "/")
        if not link:
            return None
        self._load_files()

        names = [link]
        if not link.lower().endswith(DOCUMENT_SUFFIX):
            names.append(link + DOCUMENT_SUFFIX)

        source_dir = posixpath.dirname(relative_to)
        for name in names:
            if name.startswith("/"):
                absolute = posixpath.normpath(name.lstrip("/"))
                if self._exists(absolute):
                    return absolute
                continue
            relative = posixpath.normpath(posixpath.join(source_dir, name))
            if not relative.startswith("../") and self._exists(relative):
                return relative
            rooted = posixpath.normpath(name)
            if not rooted.startswith("../") and self._exists(rooted):
                return rooted

        for name in names:
            stripped = posixpath.normpath(name.lstrip("/"))
            while stripped.startswith("../"):
                stripped = stripped[3:]
            if stripped in ("", ".", ".."):
                continue
            found = self._match_suffix(stripped)
            if found is not None:
                return found
        return None
