"""Custom exception hierarchy for the world migration tool."""

from __future__ import annotations


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(MigratorError):
    """Raised when the profile configuration is invalid or missing."""


class CalldataDecodeError(ConfigError):
    """Raised when a calldata string cannot be decoded."""


class InitCallArgsError(ConfigError):
    """Raised when the init call arguments of a contract are malformed."""

    def __init__(self, message: str, tag: str | None = None) -> None:
        super().__init__(message)
        self.tag = tag


class DiffError(MigratorError):
    """Raised when a world diff is unreadable or violates its invariants."""


class LibraryUpgradeError(MigratorError):
    """Raised when the diff asks for a library upgrade, which is not supported."""


class TransactionError(MigratorError):
    """Raised when a remote call is rejected or fails to execute."""

    def __init__(
        self,
        message: str,
        tag: str | None = None,
        entrypoint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.tag = tag
        self.entrypoint = entrypoint


class DeclareError(TransactionError):
    """Raised when publishing a class artifact fails."""


class ProviderError(MigratorError):
    """Raised when the chain state cannot be observed (block number, receipts)."""
