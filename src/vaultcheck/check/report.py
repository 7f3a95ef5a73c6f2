"""Rendering of check results and substitution into the report document."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .models import CheckReport, MissingAnchor, ReportError

logger = logging.getLogger(__name__)


def path_to_md_link(path: str) -> str:
    return f"[{path}]({path.replace(' ', '%20')})"


def render_table(headers: list[str], rows: list[list[str]]) -> str:
    lines = [
        "|" + "".join(f" {h} |" for h in headers),
        "|" + " --- |" * len(headers),
    ]
    for row in rows:
        lines.append("|" + "".join(f" {c} |" for c in row))
    return "\n".join(lines) + "\n"


def _anchor_row(finding: MissingAnchor) -> list[str]:
    if finding.detail:
        return [path_to_md_link(finding.source), "--", finding.detail]
    return [path_to_md_link(finding.source), finding.anchor, finding.target]


def render_report(report: CheckReport) -> str:
    """Render the four report sections, always in the same order."""
    result = ["\n"]

    result.append("## Missing reference\n")
    result.append(
        render_table(
            ["Source", "Target"],
            [[path_to_md_link(f.source), f.target] for f in report.missing_references],
        )
    )

    result.append("## Missing heading or block reference\n")
    result.append(
        render_table(
            ["Source", "Anchor", "Target"],
            [_anchor_row(f) for f in report.missing_anchors],
        )
    )

    result.append("## Missing map image reference\n")
    result.append(
        render_table(
            ["Map Source", "Missing"],
            [[path_to_md_link(f.source), f.asset] for f in report.missing_assets],
        )
    )

    result.append("## Unreferenced assets\n")
    for asset in sorted(report.unreferenced, key=lambda a: a.path):
        result.append("- " + path_to_md_link(asset.path))

    return "\n".join(result) + "\n"


def replace_between_markers(source: str, content: str, begin: str, end: str) -> str:
    """Replace everything between ``begin`` and ``end`` with ``content``.

    Markers match case-insensitively and are kept; text outside them is
    untouched. Raises ReportError if either marker is missing or they are out
    of order.
    """
    pattern = re.compile(
        r"(" + re.escape(begin) + r")[\s\S]*?(" + re.escape(end) + r")",
        re.IGNORECASE,
    )
    match = pattern.search(source)
    if match is None:
        raise ReportError(f"Report markers {begin} ... {end} not found")
    return source[: match.start()] + match.group(1) + content + match.group(2) + source[match.end() :]


def write_report(path: Path, text: str) -> bool:
    """Write the report document atomically; returns False if nothing changed."""
    if path.exists() and path.read_text(encoding="utf-8") == text:
        logger.info(f"Report {path} unchanged")
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(temp_file, "w", encoding="utf-8") as f:
            f.write(text)
        temp_file.replace(path)
    except OSError:
        if temp_file.exists():
            temp_file.unlink()
        raise
    logger.info(f"Wrote report {path}")
    return True
