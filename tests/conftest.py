"""
Pytest configuration and fixtures for desktop-thumbnailer tests.
"""

import os
import sys
import tempfile
import shutil
from pathlib import Path
from contextlib import ExitStack
from unittest.mock import patch

import pytest
from PIL import Image
from xdg import IconTheme

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from desktop_thumbnailer.config.config_manager import get_default_config
from desktop_thumbnailer.core.theme import IconLocator, ThemeProvider


class FakeThemeProvider(ThemeProvider):
    def __init__(self, theme="hicolor"):
        self.theme = theme
        self.calls = 0

    def current_theme(self):
        self.calls += 1
        return self.theme


class IconThemeTree:
    """On-disk icon theme directory laid out the way pyxdg expects."""

    def __init__(self, root):
        self.root = root

    def add_theme(self, name, size=48, index=None):
        theme_dir = os.path.join(self.root, name)
        os.makedirs(theme_dir, exist_ok=True)
        if index is None:
            index = (f"[Icon Theme]\nName={name}\nDirectories={size}x{size}/apps\n\n"
                     f"[{size}x{size}/apps]\nSize={size}\nType=Fixed\n")
        with open(os.path.join(theme_dir, "index.theme"), "w", encoding="utf-8") as f:
            f.write(index)
        return theme_dir

    def add_icon(self, theme, filename, size=48):
        path = os.path.join(self.root, theme, f"{size}x{size}", "apps", filename)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        if filename.endswith(".svg"):
            with open(path, "wb") as f:
                f.write(SQUARE_SVG)
        else:
            Image.new("RGBA", (size, size), (20, 160, 60, 255)).save(path)
        return path


class FakeIconLocator(IconLocator):
    """In-memory icon theme: maps (name, theme) to a path and records every lookup."""

    def __init__(self, icons=None):
        self.icons = dict(icons or {})
        self.calls = []

    def add(self, name, theme, path):
        self.icons[(name, theme)] = str(path)

    def find(self, name, size, theme):
        self.calls.append((name, size, theme))
        return self.icons.get((name, theme))


SQUARE_SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 64 64">'
    b'<rect x="0" y="0" width="64" height="64" fill="#3366cc"/>'
    b'</svg>'
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def isolated_config_home(temp_dir):
    """Point XDG config and state directories into the temp dir."""
    env = {
        "XDG_CONFIG_HOME": os.path.join(temp_dir, "config"),
        "XDG_STATE_HOME": os.path.join(temp_dir, "state"),
    }
    with patch.dict(os.environ, env):
        yield env


@pytest.fixture
def sample_config():
    config = get_default_config()
    config["log_path"] = None
    return config


@pytest.fixture
def make_image(temp_dir):
    """Factory writing a solid-colour raster image and returning its path."""
    def _make(name, size=(64, 64), color=(200, 30, 30, 255), mode="RGBA", fmt=None):
        path = os.path.join(temp_dir, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        img = Image.new(mode, size, color if mode == "RGBA" else color[:3])
        img.save(path, fmt)
        return path
    return _make


@pytest.fixture
def make_desktop_file(temp_dir):
    """Factory writing a .desktop file; icon=None leaves out the Icon key."""
    def _make(icon=None, name="app.desktop", extra=""):
        lines = ["[Desktop Entry]", "Type=Application", "Name=Test App", "Exec=test-app %U"]
        if icon is not None:
            lines.append(f"Icon={icon}")
        path = os.path.join(temp_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n" + extra)
        return path
    return _make


@pytest.fixture
def svg_file(temp_dir):
    path = os.path.join(temp_dir, "icon.svg")
    with open(path, "wb") as f:
        f.write(SQUARE_SVG)
    return path


@pytest.fixture
def icon_theme_root(temp_dir):
    """Point pyxdg at an empty icon directory and reset its module-level caches."""
    root = os.path.join(temp_dir, "icons")
    os.makedirs(root)
    with ExitStack() as stack:
        stack.enter_context(patch.object(IconTheme, "icondirs", [root]))
        stack.enter_context(patch.object(IconTheme, "themes", []))
        for cache in (IconTheme.theme_cache, IconTheme.dir_cache, IconTheme.icon_cache):
            stack.enter_context(patch.dict(cache, clear=True))
        yield IconThemeTree(root)


@pytest.fixture
def fake_locator():
    return FakeIconLocator()


@pytest.fixture
def fake_theme_provider():
    return FakeThemeProvider()


@pytest.fixture
def cairosvg_backend():
    """Skip when CairoSVG or the cairo shared library is missing."""
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        pytest.skip(f"CairoSVG unavailable: {e}")
    return cairosvg
