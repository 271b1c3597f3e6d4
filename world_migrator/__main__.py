#!/usr/bin/env python3
"""
Main execution module for the world migration tool
"""

from world_migrator.cli.commands import main

if __name__ == "__main__":
    main()
