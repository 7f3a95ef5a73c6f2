from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class Frontmatter(BaseModel):
    """Typed view of a document's frontmatter block."""

    aliases: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    date: Optional[str] = Field(default=None)
    extra: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Frontmatter":
        """Build from a raw key/value map, coercing scalar aliases/tags to lists."""
        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("aliases", "tags"):
                if value is None or value == "":
                    known[key] = []
                elif isinstance(value, list):
                    known[key] = [str(v) for v in value]
                else:
                    known[key] = [str(value)]
            elif key == "date":
                known[key] = str(value) if value not in (None, "") else None
            else:
                extra[key] = value
        return cls(extra=extra, **known)


@dataclass(frozen=True)
class Heading:
    ord: int
    level: int
    text: str
    start_line: Optional[int] = None


@dataclass(frozen=True)
class Outlink:
    ord: int
    link: str
    display: Optional[str]
    raw: str
    embed: bool = False
    style: Literal["wiki", "markdown"] = "wiki"
    start_line: Optional[int] = None


@dataclass(frozen=True)
class DocumentMetadata:
    headings: list[Heading] = field(default_factory=list)
    block_anchors: frozenset[str] = field(default_factory=frozenset)
    links: list[Outlink] = field(default_factory=list)
    embeds: list[Outlink] = field(default_factory=list)
    frontmatter: Frontmatter = field(default_factory=Frontmatter)


@dataclass(frozen=True)
class Document:
    path: str
    text: str
    metadata: Optional[DocumentMetadata]
