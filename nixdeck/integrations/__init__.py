"""
Collaborators reached through the NixDeck command boundary.

Modules:
- themes: UI theme stylesheets (built-in blacksite + user themes)
- loadouts: Saved AI loadouts and the placeholder assistant
- services: systemd user service management
- cron: crontab job management
- system: Host summary for the UI header
"""

from .themes import ThemeManager
from .loadouts import LoadoutManager
from .services import ServiceManager
from .cron import CronManager
from .system import SystemInfoProvider

__all__ = [
    "ThemeManager",
    "LoadoutManager",
    "ServiceManager",
    "CronManager",
    "SystemInfoProvider",
]
