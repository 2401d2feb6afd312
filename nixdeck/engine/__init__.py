"""
Configuration capture engine.

Modules:
- copier: Recursive plain-content copy of files and directory trees
- registry: Component name to config file / directory lookup
- store: Shared capture store (staging, metadata, backup-then-replace)
- snapshots: Snapshots of the critical component subset
- containers: Exportable containers of the broader component set
- editor: Single-component config read/write/preview
- tools: External tool runner with timeouts
"""

from .copier import copy_tree
from .registry import (
    CONTAINER_COMPONENTS,
    EDITOR_CONFIG_FILES,
    SNAPSHOT_COMPONENTS,
    resolve_component_dir,
    resolve_config_file,
)
from .snapshots import SnapshotManager
from .containers import ContainerManager
from .editor import ConfigEditor
from .tools import ToolRunner

__all__ = [
    "copy_tree",
    "CONTAINER_COMPONENTS",
    "EDITOR_CONFIG_FILES",
    "SNAPSHOT_COMPONENTS",
    "resolve_component_dir",
    "resolve_config_file",
    "SnapshotManager",
    "ContainerManager",
    "ConfigEditor",
    "ToolRunner",
]
