"""
Runtime settings for NixDeck.

The data root and the live configuration home are injected here instead
of being looked up wherever they are needed, so tests and alternate
profiles can point the engine at any directory.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import StartupError

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 60.0


class Settings(BaseModel):
    """Resolved NixDeck settings."""

    root_dir: Path = Field(..., description="NixDeck data root (snapshots, containers, themes, loadouts)")
    config_home: Path = Field(..., description="Live configuration directory (usually ~/.config)")
    tool_timeout: float = Field(DEFAULT_TOOL_TIMEOUT, gt=0, description="Timeout for external tools in seconds")
    socket_path: Optional[Path] = Field(None, description="IPC socket path (defaults to <root_dir>/nixdeck.sock)")

    @field_validator('root_dir', 'config_home')
    @classmethod
    def validate_absolute(cls, v: Path) -> Path:
        """Expand ~ and require an absolute path."""
        v = v.expanduser()
        if not v.is_absolute():
            raise ValueError(f"Path must be absolute: {v}")
        return v

    @property
    def snapshots_dir(self) -> Path:
        return self.root_dir / "snapshots"

    @property
    def containers_dir(self) -> Path:
        return self.root_dir / "containers"

    @property
    def loadouts_dir(self) -> Path:
        return self.root_dir / "loadouts"

    @property
    def themes_dir(self) -> Path:
        return self.root_dir / "themes"

    @property
    def ipc_socket(self) -> Path:
        return self.socket_path or self.root_dir / "nixdeck.sock"

    @classmethod
    def from_environment(
        cls,
        root_dir: Optional[Path] = None,
        config_home: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "Settings":
        """
        Resolve settings from explicit arguments, then environment, then $HOME.

        Environment variables:
            NIXDECK_ROOT: data root (default ~/.nixdeck)
            NIXDECK_CONFIG_HOME: live config directory (default ~/.config)
            NIXDECK_TOOL_TIMEOUT: external tool timeout in seconds
            NIXDECK_SOCKET: IPC socket path

        Raises:
            StartupError: If no home directory can be determined or a value is invalid
        """
        env = os.environ if environ is None else environ

        if root_dir is None and env.get("NIXDECK_ROOT"):
            root_dir = Path(env["NIXDECK_ROOT"])
        if config_home is None and env.get("NIXDECK_CONFIG_HOME"):
            config_home = Path(env["NIXDECK_CONFIG_HOME"])

        if root_dir is None or config_home is None:
            try:
                home = Path.home()
            except RuntimeError as e:
                raise StartupError(f"Could not find home directory: {e}") from e
            root_dir = root_dir or home / ".nixdeck"
            config_home = config_home or home / ".config"

        values = {"root_dir": root_dir, "config_home": config_home}
        if env.get("NIXDECK_TOOL_TIMEOUT"):
            values["tool_timeout"] = env["NIXDECK_TOOL_TIMEOUT"]
        if env.get("NIXDECK_SOCKET"):
            values["socket_path"] = Path(env["NIXDECK_SOCKET"])

        try:
            settings = cls(**values)
        except ValidationError as e:
            raise StartupError(str(e)) from e

        logger.debug(f"Resolved settings: root={settings.root_dir} config_home={settings.config_home}")
        return settings

    def ensure_directories(self) -> None:
        """Create the data root and its standard subdirectories."""
        for directory in (self.root_dir, self.snapshots_dir, self.loadouts_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StartupError(f"Failed to create {directory}: {e}") from e
