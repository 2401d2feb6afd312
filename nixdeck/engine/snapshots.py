"""
Snapshot manager.

Snapshots capture the critical component subset so a configuration
experiment can be rolled back. Layout:
<root>/snapshots/<name>/{<component>/..., metadata.json}
"""

from pathlib import Path
from typing import List

from ..models import CaptureMetadata, SnapshotMetadata
from .registry import SNAPSHOT_COMPONENTS
from .store import CaptureStore


class SnapshotManager(CaptureStore):
    """Create, list, restore and delete snapshots."""

    kind = "Snapshot"
    metadata_model = SnapshotMetadata
    components = SNAPSHOT_COMPONENTS
    backup_suffix = "pre-restore-backup"

    def __init__(self, snapshots_dir: Path, config_home: Path):
        super().__init__(snapshots_dir, config_home)

    def build_metadata(self, name: str, captured: List[str]) -> SnapshotMetadata:
        return SnapshotMetadata(name=name, files=captured)

    def recorded_components(self, metadata: CaptureMetadata) -> List[str]:
        return list(metadata.files)
