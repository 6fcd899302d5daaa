"""
Desktop entry icon thumbnailer.

Resolves the ``Icon=`` of a freedesktop ``.desktop`` file through the icon
theme machinery and renders it into a square PNG thumbnail.
"""

__version__ = "0.3.0"
