from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class VaultCheckError(Exception):
    """Base exception for fatal checker errors."""
    pass


class ReportError(VaultCheckError):
    """Raised when the report document is missing or has no usable markers."""
    pass


class ReferenceKind(str, Enum):
    LINK = "link"
    EMBED = "embed"
    MAP_IMAGE = "map_image"


class ResolutionStatus(str, Enum):
    EXTERNAL = "external"
    IGNORED = "ignored"
    RESOLVED = "resolved"
    SELF = "self"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Reference:
    source: str
    raw: str
    kind: ReferenceKind
    line: Optional[int] = None


@dataclass(frozen=True)
class CleanLink:
    target: str
    anchor: str


@dataclass(frozen=True)
class ResolvedTarget:
    status: ResolutionStatus
    target: str
    anchor: str = ""
    path: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class MissingReference:
    source: str
    target: str


@dataclass(frozen=True)
class MissingAnchor:
    source: str
    anchor: str
    target: str
    detail: str = ""


@dataclass(frozen=True)
class MissingEmbeddedAsset:
    source: str
    asset: str


@dataclass(frozen=True)
class UnreferencedAsset:
    path: str


@dataclass
class DocumentResult:
    """Findings contributed by a single document."""

    path: str
    missing_references: list[MissingReference] = field(default_factory=list)
    missing_anchors: list[MissingAnchor] = field(default_factory=list)
    missing_assets: list[MissingEmbeddedAsset] = field(default_factory=list)


@dataclass(frozen=True)
class CheckReport:
    missing_references: list[MissingReference]
    missing_anchors: list[MissingAnchor]
    missing_assets: list[MissingEmbeddedAsset]
    unreferenced: list[UnreferencedAsset]
    scanned: int
    failed: list[str] = field(default_factory=list)

    @property
    def total_findings(self) -> int:
        return (
            len(self.missing_references)
            + len(self.missing_anchors)
            + len(self.missing_assets)
            + len(self.unreferenced)
        )
