"""Reference integrity checking over a document store."""

from .checker import Checker, CheckRun, check_vault
from .config import CheckConfig, IgnoreRules, load_check_config
from .models import CheckReport, ReportError, VaultCheckError

__all__ = [
    "CheckConfig",
    "CheckReport",
    "CheckRun",
    "Checker",
    "IgnoreRules",
    "ReportError",
    "VaultCheckError",
    "check_vault",
    "load_check_config",
]
