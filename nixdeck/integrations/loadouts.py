"""
AI loadouts.

Loadouts are opaque text blobs stored as <root>/loadouts/<name>.nd2133-loadout.
The assistant itself is a placeholder: send_message echoes its input.
"""

import logging
from pathlib import Path
from typing import List

from ..engine.store import validate_name
from ..errors import IOFailureError, NotFoundError

logger = logging.getLogger(__name__)

LOADOUT_EXTENSION = ".nd2133-loadout"


class LoadoutManager:
    """List, load and save loadouts."""

    def __init__(self, loadouts_dir: Path):
        self.loadouts_dir = Path(loadouts_dir)

    def loadout_path(self, name: str) -> Path:
        return self.loadouts_dir / f"{validate_name(name)}{LOADOUT_EXTENSION}"

    def list(self) -> List[str]:
        if not self.loadouts_dir.exists():
            return []

        try:
            return sorted(
                entry.name[:-len(LOADOUT_EXTENSION)]
                for entry in self.loadouts_dir.iterdir()
                if entry.name.endswith(LOADOUT_EXTENSION)
            )
        except OSError as e:
            raise IOFailureError("read loadouts directory", str(e), str(self.loadouts_dir)) from e

    def load(self, name: str) -> str:
        path = self.loadout_path(name)
        if not path.exists():
            raise NotFoundError("Loadout", name)

        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise IOFailureError("load loadout", str(e), str(path)) from e

    def save(self, name: str, content: str) -> Path:
        path = self.loadout_path(name)
        try:
            self.loadouts_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise IOFailureError("save loadout", str(e), str(path)) from e

        logger.info(f"Saved loadout '{name}'")
        return path

    def send_message(self, message: str, loadout: str) -> str:
        """Placeholder assistant reply."""
        return f"[AI Response Placeholder]\nReceived: {message}\nLoadout: {loadout}"
