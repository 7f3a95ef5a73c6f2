from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from ..store.base import DocumentStore
from .dates import is_future_periodic
from .models import CleanLink, Reference, ResolutionStatus, ResolvedTarget
from .tracker import AssetReachabilityTracker

logger = logging.getLogger(__name__)

EXTERNAL_PREFIXES = ("http", "mailto", "view-source")


def clean_link_target(raw: str) -> CleanLink:
    """Split an authored link into target and anchor.

    ``path#anchor "title"`` -> (``path``, ``anchor``). The title is dropped,
    the split happens at the first ``#``, ``%20`` becomes a space and both
    halves are trimmed.
    """
    link = raw or ""
    title_pos = link.find(' "')
    if title_pos >= 0:
        link = link[:title_pos]
    link = link.strip()
    if link.startswith("<") and link.endswith(">"):
        link = link[1:-1]

    target, sep, anchor = link.partition("#")
    anchor = anchor.replace("%20", " ").strip() if sep else ""
    return CleanLink(target=target.replace("%20", " ").strip(), anchor=anchor)


class TargetResolver:
    """Turns references into resolved targets, applying the exclusion rules."""

    def __init__(
        self,
        store: DocumentStore,
        tracker: AssetReachabilityTracker,
        ignore_files: Iterable[str] = (),
        today: Optional[date] = None,
    ):
        self.store = store
        self.tracker = tracker
        self.ignore_files = set(ignore_files)
        self.today = today or date.today()

    def classify(self, target: str) -> Optional[ResolvedTarget]:
        """Return an external/ignored result for targets that are never looked up."""
        if target.startswith(EXTERNAL_PREFIXES):
            return ResolvedTarget(ResolutionStatus.EXTERNAL, target, reason="external url")
        if target in self.ignore_files:
            return ResolvedTarget(ResolutionStatus.IGNORED, target, reason="ignored file")
        if is_future_periodic(target, self.today):
            return ResolvedTarget(ResolutionStatus.IGNORED, target, reason="future periodic note")
        return None

    def resolve(self, reference: Reference) -> ResolvedTarget:
        clean = clean_link_target(reference.raw)
        if not clean.target:
            return ResolvedTarget(ResolutionStatus.SELF, "", clean.anchor, path=reference.source)

        skipped = self.classify(clean.target)
        if skipped is not None:
            return ResolvedTarget(skipped.status, clean.target, clean.anchor, reason=skipped.reason)

        path = self.store.resolve_path(clean.target, reference.source)
        if path is None:
            logger.debug(f"{reference.source} has lost {clean.target}")
            return ResolvedTarget(ResolutionStatus.UNRESOLVED, clean.target, clean.anchor)

        self.tracker.mark_reached(path)
        return ResolvedTarget(ResolutionStatus.RESOLVED, clean.target, clean.anchor, path=path)
