"""
Single-component config editor.

Reads, previews and rewrites one component's main config file. Every
write is preceded by a copy of the current file to
<file>.nixdeck-backup; writing without an existing file is refused.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from ..errors import IOFailureError, NotFoundError
from .registry import resolve_config_file

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = "nixdeck-backup"


class ConfigEditor:
    """Get, apply and preview a single component config file."""

    def __init__(self, config_home: Path):
        self.config_home = Path(config_home)

    def config_path(self, component: str) -> Path:
        return resolve_config_file(component, self.config_home)

    def get(self, component: str) -> str:
        """
        Return a component's config text exactly as stored.

        Raises:
            UnknownComponentError: If the component has no editor entry
            NotFoundError: If the config file is absent
        """
        path = self.config_path(component)
        if not path.is_file():
            raise NotFoundError("Config file", str(path))

        try:
            # newline="" keeps \r\n and \r intact
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailureError(f"read {component} config", str(e), str(path)) from e

    def apply(self, component: str, content: str) -> Path:
        """
        Back up the current config, then replace it with new content.

        Returns:
            Path of the backup copy

        Raises:
            UnknownComponentError: If the component has no editor entry
            NotFoundError: If there is no existing file to back up
        """
        path = self.config_path(component)
        if not path.is_file():
            raise NotFoundError("Config file", str(path), suggestion="Create the file before editing it")

        backup = path.with_name(f"{path.name}.{BACKUP_SUFFIX}")
        try:
            shutil.copyfile(path, backup)
        except OSError as e:
            raise IOFailureError("create backup", str(e), str(path)) from e

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            shutil.copymode(path, tmp_name)
            os.replace(tmp_name, path)
        except (OSError, UnicodeEncodeError) as e:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
            raise IOFailureError(f"write {component} config", str(e), str(path)) from e

        logger.info(f"Applied new {component} config (backup: {backup})")
        return backup

    def preview(self, component: str, candidate: str) -> str:
        """Show current and candidate content one after the other."""
        current = self.get(component)
        return f"=== CURRENT ===\n{current}\n\n=== NEW ===\n{candidate}"
