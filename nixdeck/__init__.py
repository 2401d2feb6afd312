"""
NixDeck

Snapshot, restore and isolate desktop environment configuration.
Provides named snapshots, exportable containers and a single-file
config editor with automatic backups.
"""

__version__ = "1.0.0"
__author__ = "NixOS Configuration Team"
