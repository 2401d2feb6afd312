"""UI theme storage: <root>/themes/<name>/style.css plus the built-in blacksite theme."""

import logging
from importlib import resources
from pathlib import Path
from typing import List

from ..engine.store import validate_name
from ..errors import InvalidNameError, IOFailureError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_THEME = "blacksite"


class ThemeManager:
    """List, load and save theme stylesheets."""

    def __init__(self, themes_dir: Path):
        self.themes_dir = Path(themes_dir)

    def list(self) -> List[str]:
        """Theme names, the built-in theme first."""
        try:
            self.themes_dir.mkdir(parents=True, exist_ok=True)
            names = sorted(
                entry.name
                for entry in self.themes_dir.iterdir()
                if entry.is_dir() and entry.name != DEFAULT_THEME and not entry.name.startswith(".")
            )
        except OSError as e:
            raise IOFailureError("read themes directory", str(e), str(self.themes_dir)) from e

        return [DEFAULT_THEME] + names

    def load(self, name: str) -> str:
        if name == DEFAULT_THEME:
            return resources.files("nixdeck").joinpath("data", "blacksite.css").read_text(encoding="utf-8")

        css_path = self.themes_dir / validate_name(name) / "style.css"
        if not css_path.exists():
            raise NotFoundError("Theme", name)

        try:
            return css_path.read_text(encoding="utf-8")
        except OSError as e:
            raise IOFailureError("read theme", str(e), str(css_path)) from e

    def save(self, name: str, content: str) -> Path:
        if name == DEFAULT_THEME:
            raise InvalidNameError(name, "cannot overwrite default theme")

        theme_dir = self.themes_dir / validate_name(name)
        css_path = theme_dir / "style.css"
        try:
            theme_dir.mkdir(parents=True, exist_ok=True)
            css_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise IOFailureError("write theme", str(e), str(css_path)) from e

        logger.info(f"Saved theme '{name}'")
        return css_path
