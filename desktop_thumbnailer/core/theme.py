"""
Desktop environment capabilities consumed by the icon resolver.

Both are small classes so the resolver can be handed in-memory doubles
instead of a real desktop session and icon theme tree.
"""

import os
import logging
import subprocess
from typing import List, Optional

from xdg import IconTheme
from xdg.Exceptions import ParsingError

from desktop_thumbnailer.config.config_manager import DEFAULT_THEME, DEFAULT_THEME_COMMAND

SUPPORTED_EXTENSIONS = ["png", "jpg", "jpeg", "svg"]


class ThemeProvider:
    """Supplies the name of the active icon theme"""

    def current_theme(self) -> str:
        raise NotImplementedError


class IconLocator:
    """Looks an icon name up in an icon theme"""

    def find(self, name: str, size: int, theme: str) -> Optional[str]:
        raise NotImplementedError


class GSettingsThemeProvider(ThemeProvider):
    """Ask the desktop preference store for the icon theme via an external command."""

    def __init__(self, command: Optional[List[str]] = None, default_theme: str = DEFAULT_THEME):
        self.command = list(command or DEFAULT_THEME_COMMAND)
        self.default_theme = default_theme

    def current_theme(self) -> str:
        # Blocks until the command exits; there is deliberately no timeout
        try:
            result = subprocess.run(self.command, capture_output=True, text=True, check=True)
        except FileNotFoundError:
            logging.warning(f"Theme command '{self.command[0]}' not found, using '{self.default_theme}'")
            return self.default_theme
        except subprocess.CalledProcessError as e:
            logging.warning(f"Theme command failed with exit code {e.returncode}, using '{self.default_theme}'")
            return self.default_theme
        except OSError as e:
            logging.warning(f"Could not run theme command: {e}, using '{self.default_theme}'")
            return self.default_theme

        theme = result.stdout.strip().strip("'\"").strip()
        if not theme:
            logging.warning(f"Theme command returned nothing, using '{self.default_theme}'")
            return self.default_theme

        logging.debug(f"Active icon theme: {theme}")
        return theme


class XdgIconLocator(IconLocator):
    """Icon lookup through pyxdg, which handles index.theme, inheritance and size buckets."""

    def __init__(self, extensions: Optional[List[str]] = None):
        self.extensions = list(extensions or SUPPORTED_EXTENSIONS)

    def find(self, name: str, size: int, theme: str) -> Optional[str]:
        # pyxdg hands absolute names straight back; those are the resolver's business
        if os.path.isabs(name):
            return None

        try:
            path = IconTheme.getIconPath(name, size=size, theme=theme, extensions=self.extensions)
        except (ParsingError, OSError) as e:
            logging.warning(f"Icon theme lookup for '{name}' in '{theme}' failed: {e}")
            return None

        if not path or not os.path.isfile(path) or not os.access(path, os.R_OK):
            return None
        return path
