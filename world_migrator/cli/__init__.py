"""Command-line interface for the world migration tool."""

__all__ = [
    "commands",
    "common",
    "init_config_cmd",
    "migrate_cmd",
    "report",
]
