"""Logging, calldata encoding and progress reporting helpers."""

__all__ = [
    "calldata",
    "logging",
    "ui",
]
