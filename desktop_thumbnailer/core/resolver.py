"""
Icon resolution: turn an Icon= reference into an icon file on disk.

Search order, first hit wins:
    1. the reference itself when it is an absolute path to a usable file
    2. the active icon theme
    3. each fallback theme in order
Every theme lookup tries the reference, its lowercase form, its file stem
and the lowercase stem.
"""

import os
import stat
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from desktop_thumbnailer.config.config_manager import DEFAULT_FALLBACK_THEMES
from desktop_thumbnailer.core.errors import ResolutionError
from desktop_thumbnailer.core.theme import IconLocator, SUPPORTED_EXTENSIONS


class AbsolutePathCheck(Enum):
    """Outcome of the absolute-path fast path"""
    FOUND = "found"
    REJECTED = "rejected"  # absolute but unusable; keep searching themes
    NOT_APPLICABLE = "not_applicable"


def candidate_names(icon: str) -> List[str]:
    """Name variants to look up, in priority order, without duplicates."""
    variants = [icon, icon.lower()]
    stem = Path(icon).stem
    if stem:
        variants.extend([stem, stem.lower()])

    candidates = []
    for name in variants:
        if name and name not in candidates:
            candidates.append(name)
    return candidates


def has_supported_extension(path) -> bool:
    suffix = Path(path).suffix
    return bool(suffix) and suffix[1:].lower() in SUPPORTED_EXTENSIONS


def check_absolute_path(icon: str) -> AbsolutePathCheck:
    if not icon.startswith(os.sep):
        return AbsolutePathCheck.NOT_APPLICABLE

    logging.debug(f"Checking absolute path: {icon}")
    # Metadata only, no canonicalisation: symlinks and odd paths are taken as given
    try:
        st = os.stat(icon)
    except FileNotFoundError:
        logging.info(f"File not found: {icon}")
        return AbsolutePathCheck.REJECTED
    except OSError as e:
        logging.info(f"Failed to access path {icon}: {e}")
        return AbsolutePathCheck.REJECTED

    if not stat.S_ISREG(st.st_mode):
        logging.info(f"Path is not a file: {icon}")
        return AbsolutePathCheck.REJECTED

    if os.name == "posix" and not st.st_mode & 0o444:
        logging.info(f"Insufficient permissions for: {icon}")
        return AbsolutePathCheck.REJECTED

    if not has_supported_extension(icon):
        logging.info(f"Unsupported or missing extension: {icon}")
        return AbsolutePathCheck.REJECTED

    logging.info(f"Found valid icon file: {icon}")
    return AbsolutePathCheck.FOUND


class IconResolver:
    def __init__(self, locator: IconLocator, fallback_themes: Optional[List[str]] = None):
        self.locator = locator
        self.fallback_themes = list(DEFAULT_FALLBACK_THEMES if fallback_themes is None else fallback_themes)

    def resolve(self, icon: str, theme: str, size: int) -> Optional[str]:
        logging.info(f"Searching for icon: {icon}")

        if check_absolute_path(icon) is AbsolutePathCheck.FOUND:
            return icon

        candidates = candidate_names(icon)

        path = self._search_theme(candidates, theme, size)
        if path:
            logging.info(f"Found icon in theme {theme}: {path}")
            return path

        for fallback_theme in self.fallback_themes:
            path = self._search_theme(candidates, fallback_theme, size)
            if path:
                logging.info(f"Found icon in fallback theme {fallback_theme}: {path}")
                return path

        logging.info("No icon found after searching themes")
        return None

    def resolve_or_raise(self, icon: str, theme: str, size: int) -> str:
        path = self.resolve(icon, theme, size)
        if path is None:
            raise ResolutionError(f"No valid icon path found for: {icon}")
        return path

    def _search_theme(self, candidates, theme, size):
        for name in candidates:
            path = self.locator.find(name, size, theme)
            if path:
                return path
        return None
