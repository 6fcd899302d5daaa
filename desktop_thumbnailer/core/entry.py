import os
import logging

from xdg.DesktopEntry import DesktopEntry
from xdg.Exceptions import ParsingError

from desktop_thumbnailer.core.errors import EntryError

DESKTOP_ENTRY_GROUP = "Desktop Entry"
ICON_KEY = "Icon"


def read_icon_reference(desktop_path):
    """
    Return the Icon= value of the [Desktop Entry] group of a .desktop file.

    Raises EntryError when the file cannot be found or parsed, or when it
    has no usable Icon key.
    """
    try:
        path = os.path.realpath(desktop_path, strict=True)
    except OSError as e:
        raise EntryError(f"Cannot access desktop file '{desktop_path}': {e}") from e

    entry = DesktopEntry()
    try:
        entry.parse(path)
    except ParsingError as e:
        raise EntryError(f"Parse .desktop failed: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise EntryError(f"Could not read .desktop file '{path}': {e}") from e

    # Unlocalized key; Icon[xx]= variants are ignored
    icon = entry.get(ICON_KEY, group=DESKTOP_ENTRY_GROUP).strip()
    if not icon:
        raise EntryError(f"No {ICON_KEY}= in [{DESKTOP_ENTRY_GROUP}] of {path}")

    logging.info(f"Icon value from .desktop: {icon}")
    return icon
