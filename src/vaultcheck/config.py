"""Configuration discovery for vaultcheck."""

import logging
import os
from pathlib import Path
from typing import Optional

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".vaultcheck"
CONFIG_FILENAME = "config.toml"
VAULT_ENV = "VAULTCHECK_VAULT"


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            # No repo found, return original directory
            return start_dir

        current_dir = parent_dir


def load_toml_data(config_file: Path) -> Optional[dict]:
    """Load a TOML file, returning None (with a warning) if it is absent or malformed."""
    if not config_file.exists():
        logger.warning(f"Missing config file {config_file}, using defaults")
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Failed to read config file {config_file}: {e}, using defaults")
        return None


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .vaultcheck/config.toml if it exists."""
    config_file = repo_root / CONFIG_DIRNAME / CONFIG_FILENAME
    if not config_file.exists():
        return None
    return load_toml_data(config_file)


def resolve_vault_root(cli_vault_path: Optional[str] = None) -> Path:
    """Resolve the vault root with the following precedence:

    1. CLI --vault option (if provided)
    2. VAULTCHECK_VAULT environment variable
    3. ``vault_root`` in repo-local .vaultcheck/config.toml
    4. The current directory

    Raises:
        FileNotFoundError: If the resolved path is not an existing directory
    """
    if cli_vault_path:
        vault_path = Path(cli_vault_path).expanduser().resolve()
        source = "--vault"
    elif os.environ.get(VAULT_ENV):
        vault_path = Path(os.environ[VAULT_ENV]).expanduser().resolve()
        source = VAULT_ENV
    else:
        data = _load_repo_config_data(_find_repo_root(Path.cwd())) or {}
        vault_root_str = data.get("vault_root")
        if isinstance(vault_root_str, str) and vault_root_str.strip():
            vault_path = Path(vault_root_str).expanduser().resolve()
            source = f"{CONFIG_DIRNAME}/{CONFIG_FILENAME}"
        else:
            vault_path = Path.cwd()
            source = "current directory"

    if not vault_path.exists():
        raise FileNotFoundError(f"Vault path from {source} does not exist: {vault_path}")
    if not vault_path.is_dir():
        raise FileNotFoundError(f"Vault path from {source} is not a directory: {vault_path}")
    return vault_path


def resolve_config_file(vault_root: Path, cli_config_path: Optional[str] = None) -> Path:
    """Pick the config file: --config, then the vault's, then the repo's.

    The returned path may not exist; loading falls back to defaults then.
    """
    if cli_config_path:
        return Path(cli_config_path).expanduser().resolve()

    vault_config = vault_root / CONFIG_DIRNAME / CONFIG_FILENAME
    if vault_config.exists():
        return vault_config

    repo_config = _find_repo_root(Path.cwd()) / CONFIG_DIRNAME / CONFIG_FILENAME
    if repo_config.exists():
        return repo_config
    return vault_config
