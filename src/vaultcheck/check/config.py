from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from ..config import load_toml_data

logger = logging.getLogger(__name__)

DEFAULT_REPORT_PATH = "assets/no-sync/missing.md"


class IgnoreRules(BaseModel):
    """What the checker never reports."""

    ignore_anchors: list[str] = Field(
        default_factory=lambda: ["callout", "portrait"],
        alias="ignoreAnchors",
        description="Anchor fragments never flagged as missing",
    )
    ignore_files: list[str] = Field(
        default_factory=list,
        alias="ignoreFiles",
        description="Paths neither scanned nor flagged as broken targets",
    )
    ignore_unreferenced_path: list[str] = Field(
        default_factory=list,
        alias="ignoreUnreferencedPath",
        description="Path prefixes left out of the unreferenced asset list",
    )

    model_config = {"populate_by_name": True}


class CheckConfig(BaseModel):
    """Configuration for one checker run."""

    rules: IgnoreRules = Field(default_factory=IgnoreRules)
    report_path: str = Field(default=DEFAULT_REPORT_PATH, alias="reportPath")
    exempt_paths: list[str] = Field(
        default_factory=lambda: ["assets/regex", "assets/templates", "assets/customjs"],
        alias="exemptPaths",
    )
    attachment_dirs: list[str] = Field(
        default_factory=lambda: ["assets", "attachments", "images", "media"],
        alias="attachmentDirs",
    )
    map_block_tags: list[str] = Field(default_factory=lambda: ["leaflet"], alias="mapBlockTags")
    begin_marker: str = Field(default="<!--MISSING BEGIN-->", alias="beginMarker")
    end_marker: str = Field(default="<!--MISSING END-->", alias="endMarker")
    workers: int = Field(default=8, ge=1)

    model_config = {"populate_by_name": True}

    @property
    def ignore_files(self) -> set[str]:
        """Configured ignore list plus the report document itself."""
        return set(self.rules.ignore_files) | {self.report_path}

    @classmethod
    def from_mapping(cls, data: Optional[dict[str, Any]]) -> "CheckConfig":
        """Build from parsed TOML; keys may sit under ``[check]`` or at top level."""
        data = data or {}
        section = data.get("check", data)
        if not isinstance(section, dict):
            section = {}

        rule_keys = set()
        for name, field_info in IgnoreRules.model_fields.items():
            rule_keys.update({name, field_info.alias})
        rules = {k: v for k, v in section.items() if k in rule_keys}
        rest = {k: v for k, v in section.items() if k not in rule_keys and k != "rules"}
        if isinstance(section.get("rules"), dict):
            rules.update(section["rules"])
        return cls(rules=IgnoreRules(**rules), **rest)


def load_check_config(config_file: Optional[Path]) -> CheckConfig:
    """Load configuration, falling back to defaults when absent or invalid."""
    if config_file is None:
        logger.warning("No config file given, using defaults")
        return CheckConfig()

    data = load_toml_data(config_file)
    try:
        return CheckConfig.from_mapping(data)
    except ValidationError as e:
        logger.warning(f"Invalid config in {config_file}: {e}, using defaults")
        return CheckConfig()
