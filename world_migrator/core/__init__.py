"""Core migration logic including the diff model, configuration and orchestration."""

__all__ = [
    "config",
    "diff",
    "manifest",
    "migrator",
]
