"""
Component registry.

Two deliberately separate tables:
- EDITOR_CONFIG_FILES maps a component to its single main config file
  (used by the editor).
- SNAPSHOT_COMPONENTS / CONTAINER_COMPONENTS list whole config
  directories captured by snapshots and containers.
"""

from pathlib import Path
from typing import Dict, List

from ..errors import UnknownComponentError

# Paths are relative to the live config home (~/.config)
EDITOR_CONFIG_FILES: Dict[str, str] = {
    "waybar": "waybar/config",
    "polybar": "polybar/config.ini",
    "eww": "eww/eww.yuck",
    "conky": "conky/conky.conf",
    "kitty": "kitty/kitty.conf",
    "alacritty": "alacritty/alacritty.yml",
    "picom": "picom/picom.conf",
    "dunst": "dunst/dunstrc",
    "rofi": "rofi/config.rasi",
}

SNAPSHOT_COMPONENTS: List[str] = [
    "waybar",
    "polybar",
    "eww",
    "kitty",
    "alacritty",
    "picom",
]

CONTAINER_COMPONENTS: List[str] = [
    "waybar",
    "polybar",
    "eww",
    "conky",
    "kitty",
    "alacritty",
    "picom",
    "dunst",
    "rofi",
    "gtk-3.0",
    "gtk-4.0",
]


def resolve_config_file(component: str, config_home: Path) -> Path:
    """
    Resolve a component's main config file.

    Raises:
        UnknownComponentError: If the component has no editor entry
    """
    relative = EDITOR_CONFIG_FILES.get(component)
    if relative is None:
        raise UnknownComponentError(component, list(EDITOR_CONFIG_FILES))
    return Path(config_home) / relative


def resolve_component_dir(component: str, config_home: Path) -> Path:
    """
    Resolve a capturable component to its live config directory.

    The directory is not required to exist.

    Raises:
        UnknownComponentError: If the component is not capturable
    """
    if component not in CONTAINER_COMPONENTS:
        raise UnknownComponentError(component, CONTAINER_COMPONENTS)
    return Path(config_home) / component
