"""Host summary (hostname, kernel, distro, uptime)."""

import logging
from pathlib import Path

from ..engine.tools import ToolRunner
from ..errors import IOFailureError
from ..models import SystemInfo

logger = logging.getLogger(__name__)


class SystemInfoProvider:
    """Collect the host summary shown in the UI header."""

    def __init__(self, runner: ToolRunner, os_release: Path = Path("/etc/os-release")):
        self.runner = runner
        self.os_release = os_release

    def distro(self) -> str:
        """PRETTY_NAME from os-release, without quotes."""
        try:
            lines = self.os_release.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise IOFailureError("read os-release", str(e), str(self.os_release)) from e

        for line in lines:
            if line.startswith("PRETTY_NAME="):
                return line.split("=", 1)[1].strip().strip('"')
        return ""

    def collect(self) -> SystemInfo:
        return SystemInfo(
            hostname=self.runner.run(["hostname"], check=True).stdout.strip(),
            kernel=self.runner.run(["uname", "-r"], check=True).stdout.strip(),
            distro=self.distro(),
            uptime=self.runner.run(["uptime", "-p"], check=True).stdout.strip(),
        )
