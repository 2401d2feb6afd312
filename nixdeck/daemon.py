"""
NixDeck Daemon

Wires settings, the capture engine and its collaborators together and
serves them over the IPC socket.
"""
# Module can be run with: python -m nixdeck

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

from nixdeck.engine import ConfigEditor, ContainerManager, SnapshotManager, ToolRunner
from nixdeck.errors import StartupError
from nixdeck.integrations import (
    CronManager,
    LoadoutManager,
    ServiceManager,
    SystemInfoProvider,
    ThemeManager,
)
from nixdeck.ipc_server import IPCServer
from nixdeck.settings import Settings

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class NixDeckDaemon:
    """Main daemon for desktop configuration snapshots and containers."""

    def __init__(self, settings: Settings):
        """
        Initialize NixDeck daemon.

        Args:
            settings: Resolved settings (data root, config home, tool timeout)
        """
        self.settings = settings
        self.running = False
        self._stop_event: Optional[asyncio.Event] = None

        self.runner = ToolRunner(timeout=settings.tool_timeout)

        # Capture engine
        self.snapshots = SnapshotManager(settings.snapshots_dir, settings.config_home)
        self.containers = ContainerManager(settings.containers_dir, settings.config_home, self.runner)
        self.editor = ConfigEditor(settings.config_home)

        # Collaborators
        self.themes = ThemeManager(settings.themes_dir)
        self.loadouts = LoadoutManager(settings.loadouts_dir)
        self.services = ServiceManager(settings.config_home, self.runner)
        self.cron = CronManager(self.runner)
        self.system = SystemInfoProvider(self.runner)

        self.ipc_server: Optional[IPCServer] = None

    async def start(self):
        """Start the daemon and serve until stopped."""
        logger.info("Starting NixDeck daemon")

        self.settings.ensure_directories()

        self._stop_event = asyncio.Event()
        self.ipc_server = IPCServer(self)
        await self.ipc_server.start()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._stop_event.set)

        self.running = True
        logger.info(f"Daemon started (root={self.settings.root_dir}, config={self.settings.config_home})")

        try:
            await self._stop_event.wait()
        finally:
            await self.stop()

    async def stop(self):
        """Stop the daemon."""
        if not self.running:
            return

        logger.info("Stopping daemon...")
        self.running = False

        if self.ipc_server:
            await self.ipc_server.stop()

        logger.info("Daemon stopped")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="NixDeck configuration daemon",
        prog="nixdeck-daemon"
    )
    parser.add_argument("--root", type=Path, help="Data root (default: ~/.nixdeck)")
    parser.add_argument("--config-home", type=Path, help="Live config directory (default: ~/.config)")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("NIXDECK_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Resolve settings, then run the daemon. Returns an exit status."""
    args = parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        settings = Settings.from_environment(root_dir=args.root, config_home=args.config_home)
        daemon = NixDeckDaemon(settings)
        await daemon.start()
    except StartupError as e:
        logger.error(e.message)
        if e.suggestion:
            logger.error(f"  → {e.suggestion}")
        return 2

    return 0


def run():
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
