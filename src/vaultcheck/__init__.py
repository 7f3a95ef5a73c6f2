"""vaultcheck - cross-document reference integrity checker for markdown vaults."""

__version__ = "0.1.0"
