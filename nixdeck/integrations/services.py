"""
systemd user service management.

Thin wrappers over `systemctl --user`; non-zero exits surface the tool's
stderr unchanged.
"""

import logging
from pathlib import Path
from typing import List

from ..engine.store import validate_name
from ..engine.tools import ToolRunner
from ..errors import IOFailureError

logger = logging.getLogger(__name__)


class ServiceManager:
    """List, create and control user services."""

    def __init__(self, config_home: Path, runner: ToolRunner):
        """
        Initialize service manager.

        Args:
            config_home: Live configuration directory (unit files go to systemd/user/)
            runner: External tool runner
        """
        self.units_dir = Path(config_home) / "systemd" / "user"
        self.runner = runner

    def list(self) -> List[str]:
        """Raw `list-units` lines mentioning a .service unit."""
        result = self.runner.run(["systemctl", "list-units", "--type=service", "--user", "--no-pager"])
        return [line for line in result.stdout.splitlines() if ".service" in line]

    def create(self, name: str, content: str) -> Path:
        """Write a unit file and reload the user manager."""
        unit_path = self.units_dir / f"{validate_name(name)}.service"
        try:
            self.units_dir.mkdir(parents=True, exist_ok=True)
            unit_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise IOFailureError("write service file", str(e), str(unit_path)) from e

        self.runner.run(["systemctl", "--user", "daemon-reload"], check=True)
        logger.info(f"Created user service {unit_path.name}")
        return unit_path

    def _control(self, verb: str, name: str) -> None:
        self.runner.run(["systemctl", "--user", verb, validate_name(name)], check=True)
        logger.info(f"systemctl --user {verb} {name}")

    def enable(self, name: str) -> None:
        self._control("enable", name)

    def disable(self, name: str) -> None:
        self._control("disable", name)

    def start(self, name: str) -> None:
        self._control("start", name)

    def stop(self, name: str) -> None:
        self._control("stop", name)

    def status(self, name: str) -> str:
        # status exits non-zero for inactive units; the text is still wanted
        result = self.runner.run(["systemctl", "--user", "status", validate_name(name), "--no-pager"])
        return result.stdout
