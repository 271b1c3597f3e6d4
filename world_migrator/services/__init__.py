"""Call builders, synchronizers and the seams to the remote target."""

__all__ = [
    "accounts",
    "declarer",
    "deployer",
    "dry_run",
    "external",
    "initializer",
    "invoker",
    "metadata",
    "permissions",
    "resources",
    "target",
    "world",
]
