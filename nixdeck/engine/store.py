"""
Shared capture store for snapshots and containers.

A capture is a directory named after the capture holding copies of whole
component directories plus a metadata.json record. Captures are
assembled in a hidden staging directory and renamed into place only
after every copy and the metadata write succeeded, so a visible capture
is always complete.

Restores are metadata-driven: only components listed in the metadata are
touched. Each component is copied next to the live path first, then the
live path is moved to its backup and the fresh copy is moved in. The
previous backup is dropped last.
"""

from abc import ABC, abstractmethod
import logging
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Type

from pydantic import ValidationError

from ..errors import (
    AlreadyExistsError,
    InvalidNameError,
    IOFailureError,
    NotFoundError,
    ParseFailureError,
    UnknownComponentError,
)
from ..models import CaptureMetadata
from .copier import copy_tree
from .registry import resolve_component_dir

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
INCOMING_SUFFIX = "nixdeck-incoming"
STALE_SUFFIX = "nixdeck-stale"


def validate_name(name: str) -> str:
    """
    Check that a name is usable as a single directory key and as a tool operand.

    Raises:
        InvalidNameError: If the name is empty, hidden, option-like or contains a path separator
    """
    if not name or not name.strip():
        raise InvalidNameError(name, "name is empty")
    if "/" in name or "\\" in name or "\0" in name:
        raise InvalidNameError(name, "name contains a path separator")
    if name.startswith("."):
        raise InvalidNameError(name, "name starts with a dot")
    if name.startswith("-"):
        raise InvalidNameError(name, "name starts with a dash")
    return name


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as e:
        raise IOFailureError("remove path", str(e), str(path)) from e


def _discard(path: Path) -> None:
    """Remove a leftover from a failed restore step."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")


def _move_back(source: Path, target: Path) -> None:
    try:
        source.rename(target)
    except OSError as e:
        logger.error(f"Could not move {source} back to {target}: {e}")


def replace_with_backup(captured: Path, live: Path, backup_suffix: str) -> Optional[Path]:
    """
    Overwrite a live component with a captured copy, keeping a backup.

    The captured copy is staged next to the live path first. The previous
    backup is only dropped once the new backup and the restored copy are
    both in place; any failure before that puts the live path and the
    previous backup back.

    Args:
        captured: Captured file or directory to restore
        live: Live path to overwrite
        backup_suffix: Suffix appended to the live name for the backup

    Returns:
        Backup path, or None if nothing existed at the live path
    """
    try:
        live.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailureError("create directory", str(e), str(live.parent)) from e

    incoming = live.with_name(f".{live.name}.{INCOMING_SUFFIX}")
    if incoming.exists() or incoming.is_symlink():
        remove_path(incoming)

    try:
        copy_tree(captured, incoming)
    except IOFailureError:
        _discard(incoming)
        raise

    backup = None
    stale = None
    if live.exists() or live.is_symlink():
        backup = live.with_name(f"{live.name}.{backup_suffix}")
        if backup.exists() or backup.is_symlink():
            stale = live.with_name(f".{backup.name}.{STALE_SUFFIX}")
            if stale.exists() or stale.is_symlink():
                remove_path(stale)
            try:
                backup.rename(stale)
            except OSError as e:
                _discard(incoming)
                raise IOFailureError("set aside previous backup", str(e), str(backup)) from e

        try:
            live.rename(backup)
        except OSError as e:
            _discard(incoming)
            if stale:
                _move_back(stale, backup)
            raise IOFailureError("backup current config", str(e), str(live)) from e
        logger.debug(f"Backed up {live} -> {backup}")

    try:
        incoming.rename(live)
    except OSError as e:
        _discard(incoming)
        if backup:
            _move_back(backup, live)
        if stale:
            _move_back(stale, backup)
        raise IOFailureError("move restored config into place", str(e), str(live)) from e

    # A newer backup replaces the previous one
    if stale:
        remove_path(stale)

    return backup


class CaptureStore(ABC):
    """Named, write-once captures of a fixed component list."""

    kind = "Capture"
    metadata_model: Type[CaptureMetadata] = CaptureMetadata
    components: List[str] = []
    backup_suffix = "nixdeck-backup"

    def __init__(self, base_dir: Path, config_home: Path):
        """
        Initialize capture store.

        Args:
            base_dir: Directory holding one subdirectory per capture
            config_home: Live configuration directory (~/.config)
        """
        self.base_dir = Path(base_dir)
        self.config_home = Path(config_home)

    # Hooks for subclasses

    def component_root(self, capture_dir: Path) -> Path:
        """Directory inside a capture that holds component copies."""
        return capture_dir

    @abstractmethod
    def build_metadata(self, name: str, captured: List[str]) -> CaptureMetadata:
        """Metadata record for a freshly captured component list."""

    @abstractmethod
    def recorded_components(self, metadata: CaptureMetadata) -> List[str]:
        """Component names a metadata record lists."""

    # Lookup

    def path(self, name: str) -> Path:
        return self.base_dir / validate_name(name)

    def exists(self, name: str) -> bool:
        return self.path(name).is_dir()

    def list(self) -> List[str]:
        """
        List capture names (sorted). A missing store directory yields [].

        Hidden staging directories are skipped.
        """
        if not self.base_dir.exists():
            return []

        try:
            return sorted(
                entry.name
                for entry in self.base_dir.iterdir()
                if entry.is_dir() and not entry.name.startswith(".")
            )
        except OSError as e:
            raise IOFailureError(f"read {self.kind.lower()}s directory", str(e), str(self.base_dir)) from e

    def get(self, name: str) -> CaptureMetadata:
        """
        Read and validate a capture's metadata.

        Raises:
            NotFoundError: If the capture does not exist
            ParseFailureError: If metadata is missing or malformed
        """
        capture_dir = self.path(name)
        if not capture_dir.is_dir():
            raise NotFoundError(self.kind, name)

        metadata_path = capture_dir / METADATA_FILE
        if not metadata_path.exists():
            raise ParseFailureError(str(metadata_path), "metadata.json is missing; capture is incomplete")

        try:
            raw = metadata_path.read_text(encoding="utf-8")
        except OSError as e:
            raise IOFailureError(f"read {self.kind.lower()} metadata", str(e), str(metadata_path)) from e

        try:
            return self.metadata_model.model_validate_json(raw)
        except ValidationError as e:
            raise ParseFailureError(str(metadata_path), str(e)) from e

    # Operations

    def create(self, name: str) -> CaptureMetadata:
        """
        Capture every present component into a new named capture.

        Raises:
            AlreadyExistsError: If the name is taken (disk state is left untouched)
            IOFailureError: If any copy fails (the partial capture is discarded)
        """
        target = self.path(name)
        if target.exists():
            raise AlreadyExistsError(self.kind, name)

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=f".{name}.staging-", dir=self.base_dir))
        except OSError as e:
            raise IOFailureError(f"create {self.kind.lower()} directory", str(e), str(self.base_dir)) from e

        try:
            root = self.component_root(staging)
            root.mkdir(parents=True, exist_ok=True)

            captured = []
            for component in self.components:
                source = resolve_component_dir(component, self.config_home)
                if not source.exists():
                    logger.debug(f"Skipping {component}: {source} not present")
                    continue
                copy_tree(source, root / component)
                captured.append(component)

            metadata = self.build_metadata(name, captured)
            try:
                (staging / METADATA_FILE).write_text(metadata.model_dump_json(indent=2), encoding="utf-8")
            except OSError as e:
                raise IOFailureError("write metadata", str(e), str(staging / METADATA_FILE)) from e

            try:
                staging.rename(target)
            except OSError as e:
                if target.exists():
                    raise AlreadyExistsError(self.kind, name) from e
                raise IOFailureError(f"create {self.kind.lower()} directory", str(e), str(target)) from e

        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.info(f"Created {self.kind.lower()} '{name}' with {len(captured)} components: {', '.join(captured)}")
        return metadata

    def restore(self, name: str) -> List[str]:
        """
        Copy every recorded component back over the live configuration.

        Components recorded in metadata but missing from the capture are
        skipped. Live configs without a captured counterpart are never
        touched.

        Returns:
            Names of the restored components
        """
        metadata = self.get(name)
        root = self.component_root(self.path(name))

        recorded = self.recorded_components(metadata)
        # Reject the whole capture before any live config is touched
        for component in recorded:
            if component not in self.components:
                raise UnknownComponentError(component, self.components)

        restored = []
        for component in recorded:
            live = resolve_component_dir(component, self.config_home)
            captured = root / component
            if not captured.exists():
                logger.warning(f"{self.kind} '{name}' lists {component} but holds no copy of it")
                continue

            backup = replace_with_backup(captured, live, self.backup_suffix)
            restored.append(component)
            logger.debug(f"Restored {component} (backup: {backup})")

        logger.info(f"Restored {self.kind.lower()} '{name}': {', '.join(restored) or 'nothing'}")
        return restored

    def delete(self, name: str) -> None:
        """
        Remove a capture and everything in it.

        Raises:
            NotFoundError: If the capture does not exist
        """
        target = self.path(name)
        if not target.exists():
            raise NotFoundError(self.kind, name)

        try:
            shutil.rmtree(target)
        except OSError as e:
            raise IOFailureError(f"delete {self.kind.lower()}", str(e), str(target)) from e

        logger.info(f"Deleted {self.kind.lower()} '{name}'")
