from __future__ import annotations

import re
from typing import Iterable

from ..store.models import Document
from ..store.parser import iter_fenced_blocks
from .models import Reference, ReferenceKind

_MAP_IMAGE_RE = re.compile(r"^\s*image:\s*(.*?)\s*$")


def _map_image_references(document: Document, map_block_tags: Iterable[str]) -> list[Reference]:
    tags = {t.lower() for t in map_block_tags}
    refs: list[Reference] = []
    for info, first_line, body in iter_fenced_blocks(document.text):
        tag = info.split()[0].lower() if info else ""
        if tag not in tags:
            continue
        for offset, line in enumerate(body):
            m = _MAP_IMAGE_RE.match(line)
            if not m or not m.group(1):
                continue
            value = m.group(1)
            # map blocks accept [[wikilink]] style image values
            if value.startswith("[[") and value.endswith("]]"):
                value = value[2:-2].split("|", 1)[0].strip()
            refs.append(
                Reference(
                    source=document.path,
                    raw=value,
                    kind=ReferenceKind.MAP_IMAGE,
                    line=first_line + offset,
                )
            )
    return refs


def extract_references(document: Document, map_block_tags: Iterable[str] = ("leaflet",)) -> list[Reference]:
    """All references authored in a document: embeds, links, then map images."""
    refs: list[Reference] = []
    if document.metadata is not None:
        for outlink in document.metadata.embeds:
            refs.append(Reference(document.path, outlink.link, ReferenceKind.EMBED, outlink.start_line))
        for outlink in document.metadata.links:
            refs.append(Reference(document.path, outlink.link, ReferenceKind.LINK, outlink.start_line))
    refs.extend(_map_image_references(document, map_block_tags))
    return refs
