"""
Pytest configuration and fixtures for NixDeck tests.

Every test gets its own fake home: a live config directory
(tmp/.config) and a NixDeck data root (tmp/.nixdeck).
"""

import sys
from pathlib import Path
from typing import Dict
from unittest.mock import MagicMock

import pytest

# Add repository root to Python path BEFORE test collection
package_root = Path(__file__).parent.parent
if str(package_root) not in sys.path:
    sys.path.insert(0, str(package_root))

from nixdeck.engine.tools import ToolRunner  # noqa: E402
from nixdeck.models import ToolResult  # noqa: E402
from nixdeck.settings import Settings  # noqa: E402


def write_component(config_home: Path, component: str, files: Dict[str, str]) -> Path:
    """Create a live component directory with the given relative files."""
    component_dir = config_home / component
    for relative, content in files.items():
        path = component_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return component_dir


def tool_result(returncode: int = 0, stdout: str = "", stderr: str = "", args=None) -> ToolResult:
    return ToolResult(args=args or ["tool"], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def config_home(tmp_path) -> Path:
    """Live configuration directory (~/.config)."""
    path = tmp_path / ".config"
    path.mkdir()
    return path


@pytest.fixture
def nixdeck_root(tmp_path) -> Path:
    """NixDeck data root (~/.nixdeck); not created up front."""
    return tmp_path / ".nixdeck"


@pytest.fixture
def settings(nixdeck_root, config_home) -> Settings:
    return Settings(root_dir=nixdeck_root, config_home=config_home, tool_timeout=5)


@pytest.fixture
def rice_setup(config_home) -> Path:
    """A typical riced desktop: bar, terminal, compositor and GTK settings."""
    write_component(config_home, "waybar", {"config": '{"layer": "top"}', "style.css": "* { font-size: 12px; }"})
    write_component(config_home, "kitty", {"kitty.conf": "font=Mono", "themes/dark.conf": "background #000000"})
    write_component(config_home, "picom", {"picom.conf": "shadow = true;"})
    write_component(config_home, "dunst", {"dunstrc": "[global]\nfont = Mono 10"})
    write_component(config_home, "gtk-3.0", {"settings.ini": "[Settings]\ngtk-theme-name=Adwaita-dark"})
    return config_home


@pytest.fixture
def mock_runner() -> MagicMock:
    """ToolRunner double returning a successful empty result by default."""
    runner = MagicMock(spec=ToolRunner)
    runner.run.return_value = tool_result()
    return runner
