"""Pytest fixtures for vaultcheck tests."""

from datetime import date
from pathlib import Path

import pytest

from vaultcheck.check.config import CheckConfig

REPORT_TEMPLATE = "# Missing\n\n<!--MISSING BEGIN-->\nstale\n<!--MISSING END-->\n\nfooter\n"


def write_files(root: Path, files: dict) -> None:
    """Write a {relative path: str or bytes} map under root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


@pytest.fixture
def temp_vault(tmp_path):
    """Create an empty vault directory holding only the report document.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to temporary vault root
    """
    vault_root = tmp_path / "test_vault"
    vault_root.mkdir()
    write_files(vault_root, {"assets/no-sync/missing.md": REPORT_TEMPLATE})
    return vault_root


@pytest.fixture
def check_config():
    """Default configuration with a single worker for deterministic logging."""
    return CheckConfig(workers=1)


@pytest.fixture
def today():
    return date(2024, 5, 15)
