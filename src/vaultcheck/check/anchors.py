from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import unquote

from ..store.models import DocumentMetadata
from .models import MissingAnchor

logger = logging.getLogger(__name__)

MISSING_METADATA = "missing metadata"

_DROP_RE = re.compile(r"[?:.]")
_SPACE_RE = re.compile(r"\s+")


def normalize_anchor(text: str) -> str:
    """Canonical form used to compare heading anchors with heading text.

    URL-decodes, lowercases, turns ``#`` into a space, drops ``?``, ``:`` and
    ``.``, collapses whitespace and trims. Repeats until the value is stable,
    so multiply-encoded text and already normalized text map to one key.
    """
    value = text
    while True:
        decoded = unquote(value)
        while decoded != value:
            value, decoded = decoded, unquote(decoded)
        normal = _DROP_RE.sub("", value.lower().replace("#", " "))
        normal = _SPACE_RE.sub(" ", normal).strip()
        if normal == value:
            return normal
        value = normal


class AnchorValidator:
    """Checks heading and block anchors against a target's parsed structure."""

    def __init__(self, ignore_anchors: list[str]):
        self.ignore_anchors = set(ignore_anchors)

    def validate(
        self,
        source: str,
        anchor: str,
        target_path: str,
        metadata: Optional[DocumentMetadata],
    ) -> Optional[MissingAnchor]:
        if not anchor or anchor in self.ignore_anchors:
            return None
        if metadata is None:
            logger.warning(f"{source}: no metadata for {target_path}, cannot check #{anchor}")
            return MissingAnchor(source=source, anchor="#" + anchor, target=target_path, detail=MISSING_METADATA)

        if anchor.startswith("^"):
            if anchor[1:] in metadata.block_anchors:
                return None
        else:
            wanted = normalize_anchor(anchor)
            if any(normalize_anchor(h.text) == wanted for h in metadata.headings):
                return None

        logger.debug(f"MISSING: {target_path}#{anchor} referenced from {source}")
        return MissingAnchor(source=source, anchor="#" + anchor, target=target_path)
