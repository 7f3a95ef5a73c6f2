from __future__ import annotations

import re
from typing import Any, Iterator, Optional

from .models import DocumentMetadata, Frontmatter, Heading, Outlink


_FRONTMATTER_DELIM = "---"
_CODE_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")
_HEADING_RE = re.compile(r"^[ \t]{0,3}(#{1,6})[ \t]+(.*)$")
_BLOCK_ANCHOR_RE = re.compile(r"(?:^|\s)\^([A-Za-z0-9-]+)[ \t]*$")
_FM_KEY_RE = re.compile(r"^([A-Za-z0-9_-]+)\s*:\s*(.*)$")
_FM_ITEM_RE = re.compile(r"^\s*-\s*(.+?)\s*$")
_MD_LINK_RE = re.compile(
    r"(!?)\[((?:[^\[\]]|\[[^\[\]]*\])*)\]\(\s*(<[^>]*>|(?:[^()\s]|\([^()]*\))+(?:\s+\"[^\"]*\")?)\s*\)"
)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1].strip()
    return value


def _parse_fm_value(value: str) -> Any:
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1].strip()
        if not inner:
            return []
        return [_unquote(p) for p in inner.split(",") if _unquote(p)]
    return _unquote(value)


def parse_frontmatter(text: str) -> tuple[dict[str, Any], int]:
    """Parse a leading ``---`` block into a flat key/value map.

    Returns the map and the line index at which the body starts. Scalars,
    inline ``[a, b]`` lists and indented ``- item`` lists are understood;
    anything else is kept as the raw string.
    """
    lines = text.splitlines()
    if not lines or lines[0].rstrip() != _FRONTMATTER_DELIM:
        return {}, 0

    end = None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == _FRONTMATTER_DELIM:
            end = idx
            break
    if end is None:
        return {}, 0

    data: dict[str, Any] = {}
    fm_lines = lines[1:end]
    i = 0
    while i < len(fm_lines):
        line = fm_lines[i].strip()
        i += 1
        if not line or line.startswith("#"):
            continue
        m = _FM_KEY_RE.match(line)
        if not m:
            continue
        key, value = m.group(1), m.group(2).strip()
        if value:
            data[key] = _parse_fm_value(value)
            continue

        # YAML list form
        items: list[str] = []
        while i < len(fm_lines):
            item_line = fm_lines[i]
            if _FM_KEY_RE.match(item_line.strip()) and not item_line.lstrip().startswith("-"):
                break
            m_item = _FM_ITEM_RE.match(item_line)
            if m_item:
                item = _unquote(m_item.group(1))
                if item:
                    items.append(item)
            i += 1
        data[key] = items if items else None

    return data, end + 1


def _outside_inline_code_segments(line: str) -> list[tuple[int, int]]:
    segments: list[tuple[int, int]] = []
    in_code = False
    seg_start = 0
    for idx, ch in enumerate(line):
        if ch != "`":
            continue
        if in_code:
            seg_start = idx + 1
            in_code = False
        else:
            if seg_start < idx:
                segments.append((seg_start, idx))
            in_code = True
    if not in_code and seg_start < len(line):
        segments.append((seg_start, len(line)))
    return segments


def _opens_fence(line: str) -> Optional[str]:
    m = _CODE_FENCE_RE.match(line)
    return m.group(1) if m else None


def _closes_fence(line: str, fence: str) -> bool:
    """A fence closes only on a bare line of the same kind it was opened with."""
    return _opens_fence(line) == fence and line.strip() == fence


def _iter_body_lines(lines: list[str], start: int) -> Iterator[tuple[int, str]]:
    """Yield (1-based line number, line) for body lines outside fenced code."""
    fence: Optional[str] = None
    for idx in range(start, len(lines)):
        line = lines[idx]
        if fence is None:
            fence = _opens_fence(line)
            if fence is None:
                yield idx + 1, line
        elif _closes_fence(line, fence):
            fence = None


def _wikilinks(seg: str) -> Iterator[tuple[int, int, bool, str]]:
    """Yield (start, end, embed, inner) for each ``[[...]]`` in a segment."""
    idx = 0
    while True:
        open_i = seg.find("[[", idx)
        if open_i == -1:
            return
        close_i = seg.find("]]", open_i + 2)
        if close_i == -1:
            return
        embed = open_i > 0 and seg[open_i - 1] == "!"
        start = open_i - 1 if embed else open_i
        yield start, close_i + 2, embed, seg[open_i + 2 : close_i]
        idx = close_i + 2


def parse_markdown_text(text: str) -> DocumentMetadata:
    fm_data, body_start = parse_frontmatter(text)
    frontmatter = Frontmatter.from_mapping(fm_data)

    headings: list[Heading] = []
    links: list[Outlink] = []
    embeds: list[Outlink] = []
    block_anchors: set[str] = set()
    link_ord = 0

    lines = text.splitlines()
    for line_no, line in _iter_body_lines(lines, body_start):
        m = _HEADING_RE.match(line)
        if m:
            heading_text = re.sub(r"\s+#+\s*$", "", m.group(2).strip()).strip()
            headings.append(
                Heading(ord=len(headings), level=len(m.group(1)), text=heading_text, start_line=line_no)
            )

        m_block = _BLOCK_ANCHOR_RE.search(line)
        if m_block:
            block_anchors.add(m_block.group(1))

        for seg_start, seg_end in _outside_inline_code_segments(line):
            seg = line[seg_start:seg_end]
            found: list[tuple[int, Outlink]] = []

            masked = list(seg)
            for start, end, embed, inner in _wikilinks(seg):
                for k in range(start, end):
                    masked[k] = " "
                inner = inner.strip(" \t")
                if not inner:
                    continue
                link, display = (inner.split("|", 1) + [None])[:2]
                display = display.strip() if display is not None else None
                found.append(
                    (
                        start,
                        Outlink(
                            ord=0,
                            link=link.strip(),
                            display=display or None,
                            raw=seg[start:end],
                            embed=embed,
                            style="wiki",
                            start_line=line_no,
                        ),
                    )
                )

            for match in _MD_LINK_RE.finditer("".join(masked)):
                dest = match.group(3).strip()
                if dest.startswith("<") and dest.endswith(">"):
                    dest = dest[1:-1].strip()
                if not dest:
                    continue
                found.append(
                    (
                        match.start(),
                        Outlink(
                            ord=0,
                            link=dest,
                            display=match.group(2) or None,
                            raw=match.group(0),
                            embed=match.group(1) == "!",
                            style="markdown",
                            start_line=line_no,
                        ),
                    )
                )

            found.sort(key=lambda item: item[0])
            for _, outlink in found:
                outlink = Outlink(
                    ord=link_ord,
                    link=outlink.link,
                    display=outlink.display,
                    raw=outlink.raw,
                    embed=outlink.embed,
                    style=outlink.style,
                    start_line=outlink.start_line,
                )
                link_ord += 1
                (embeds if outlink.embed else links).append(outlink)

    return DocumentMetadata(
        headings=headings,
        block_anchors=frozenset(block_anchors),
        links=links,
        embeds=embeds,
        frontmatter=frontmatter,
    )


def iter_fenced_blocks(text: str) -> Iterator[tuple[str, int, list[str]]]:
    """Yield (info string, first body line number, body lines) per fenced block.

    An unterminated fence runs to the end of the text.
    """
    lines = text.splitlines()
    fence: Optional[str] = None
    info = ""
    body: list[str] = []
    body_start = 0
    for idx, line in enumerate(lines):
        if fence is None:
            fence = _opens_fence(line)
            if fence is not None:
                info = line.strip()[3:].strip()
                body = []
                body_start = idx + 2
            continue
        if _closes_fence(line, fence):
            yield info, body_start, body
            fence = None
            continue
        body.append(line)
    if fence is not None:
        yield info, body_start, body
