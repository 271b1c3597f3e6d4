#!/usr/bin/env python3
"""
World migration tool: applies a world diff to a namespaced world registry
"""

__version__ = "0.1.0"

from world_migrator.core.config import load_config
from world_migrator.core.diff import WorldDiff, load_diff
from world_migrator.core.manifest import Manifest
from world_migrator.core.migrator import Migration, MigrationResult
from world_migrator.services.target import Call, Target, TxnConfig
from world_migrator.services.world import WorldContract
