"""
Container manager.

Containers capture the broader component set (including GTK settings)
and can be exported as a compressed archive. Layout:
<root>/containers/<name>/{config/<component>/..., metadata.json}
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..errors import NotFoundError
from ..models import CaptureMetadata, ContainerMetadata
from .registry import CONTAINER_COMPONENTS
from .store import CaptureStore
from .tools import ToolRunner

logger = logging.getLogger(__name__)


class ContainerManager(CaptureStore):
    """Create, load, list, delete and export containers."""

    kind = "Container"
    metadata_model = ContainerMetadata
    components = CONTAINER_COMPONENTS
    backup_suffix = "nixdeck-backup"

    def __init__(self, containers_dir: Path, config_home: Path, runner: Optional[ToolRunner] = None):
        """
        Initialize container manager.

        Args:
            containers_dir: Directory holding one subdirectory per container
            config_home: Live configuration directory (~/.config)
            runner: External tool runner used for archiving
        """
        super().__init__(containers_dir, config_home)
        self.runner = runner or ToolRunner()

    def component_root(self, capture_dir: Path) -> Path:
        return capture_dir / "config"

    def build_metadata(self, name: str, captured: List[str]) -> ContainerMetadata:
        return ContainerMetadata(name=name, components=captured)

    def recorded_components(self, metadata: CaptureMetadata) -> List[str]:
        return list(metadata.components)

    def load(self, name: str) -> List[str]:
        """Load a container over the live configuration (metadata-driven)."""
        return self.restore(name)

    def export(self, name: str, archive_path: Path) -> Path:
        """
        Archive a container directory as a gzip-compressed tarball.

        Args:
            name: Container name
            archive_path: Destination archive file

        Returns:
            The archive path

        Raises:
            NotFoundError: If the container does not exist
            SubprocessFailureError: If tar exits non-zero (stderr verbatim)
            ToolTimeoutError: If tar does not finish in time
        """
        container_dir = self.path(name)
        if not container_dir.exists():
            raise NotFoundError(self.kind, name)

        archive_path = Path(archive_path).expanduser()
        self.runner.run(
            ["tar", "-czf", str(archive_path), "-C", str(self.base_dir), name],
            check=True
        )

        logger.info(f"Exported container '{name}' to {archive_path}")
        return archive_path
