from __future__ import annotations

import re
import threading
from typing import Callable, Iterable, Optional

DRAWING_MARKER = "excalidraw"
_DRAWING_EXPORT_RE = re.compile(r"\.(svg|png)$", re.IGNORECASE)

# Files that are structure, not content, and are never expected to be linked.
STRUCTURAL_SUFFIXES = (".md", ".canvas")


def _under(path: str, prefix: str) -> bool:
    prefix = prefix.strip("/")
    return bool(prefix) and (path == prefix or path.startswith(prefix + "/"))


def drawing_companion(path: str) -> Optional[str]:
    """Document a drawing export was rendered from, e.g. ``x.excalidraw.png`` -> ``x.excalidraw.md``."""
    if DRAWING_MARKER not in path.lower() or not _DRAWING_EXPORT_RE.search(path):
        return None
    return _DRAWING_EXPORT_RE.sub(".md", path)


class AssetReachabilityTracker:
    """Corpus-wide record of which files were the target of at least one reference.

    Every file starts unreached unless it is a document, sits under an exempt
    path, or is explicitly ignored. Marking is monotonic and thread-safe.
    """

    def __init__(
        self,
        all_files: Iterable[str],
        exempt_paths: Iterable[str] = (),
        ignore_files: Iterable[str] = (),
    ):
        exempt = [p for p in exempt_paths if p.strip("/")]
        ignored = set(ignore_files)
        self._reached: dict[str, bool] = {}
        for path in all_files:
            self._reached[path] = (
                path.endswith(STRUCTURAL_SUFFIXES)
                or path in ignored
                or any(_under(path, prefix) for prefix in exempt)
            )
        self._lock = threading.Lock()

    def __contains__(self, path: str) -> bool:
        return path in self._reached

    def __len__(self) -> int:
        return len(self._reached)

    def mark_reached(self, path: str) -> None:
        with self._lock:
            self._reached[path] = True

    def is_reached(self, path: str) -> bool:
        with self._lock:
            return self._reached.get(path, False)

    def unreached(self) -> list[str]:
        with self._lock:
            return sorted(p for p, reached in self._reached.items() if not reached)

    def unreferenced(
        self,
        ignore_unreferenced_path: Iterable[str] = (),
        attachment_dirs: Iterable[str] = (),
        resolve_companion: Optional[Callable[[str], Optional[str]]] = None,
    ) -> list[str]:
        """Sorted unreached attachments that nobody is expected to have skipped.

        Drops paths under an ignored prefix and paths with no attachment
        directory among their folders. A drawing export is dropped when
        ``resolve_companion`` finds the drawing document it came from.
        """
        ignored = [p for p in ignore_unreferenced_path if p]
        dirs = {d.strip("/").lower() for d in attachment_dirs if d.strip("/")}
        result: list[str] = []
        for path in self.unreached():
            if any(_under(path, prefix) for prefix in ignored):
                continue
            folders = [part.lower() for part in path.split("/")[:-1]]
            if dirs and not dirs.intersection(folders):
                continue
            companion = drawing_companion(path)
            if companion is not None and resolve_companion is not None and resolve_companion(companion):
                continue
            result.append(path)
        return result
