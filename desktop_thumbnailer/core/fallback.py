import logging

from desktop_thumbnailer.config.config_manager import DEFAULT_FALLBACK_ICON, DEFAULT_FALLBACK_ICON_THEME
from desktop_thumbnailer.core.errors import FallbackError, ThumbnailerError
from desktop_thumbnailer.core.renderer import write_thumbnail


class FallbackThumbnailProvider:
    """Render a generic icon when the real one cannot be resolved or rendered."""

    def __init__(self, locator, renderer, icon_name=DEFAULT_FALLBACK_ICON, theme=DEFAULT_FALLBACK_ICON_THEME):
        self.locator = locator
        self.renderer = renderer
        self.icon_name = icon_name
        self.theme = theme

    def produce(self, destination, size) -> bool:
        """
        Write the fallback thumbnail to ``destination``.

        Never raises. Returns False, leaving no output file behind, when the
        fallback icon itself is missing or cannot be rendered.
        """
        try:
            self._produce(destination, size)
        except (ThumbnailerError, ValueError) as e:
            logging.error(f"Failed to create fallback thumbnail: {e}")
            return False
        return True

    def _produce(self, destination, size):
        path = self.locator.find(self.icon_name, size, self.theme)
        if not path:
            raise FallbackError(f"Failed to find fallback icon '{self.icon_name}' in theme '{self.theme}'")

        logging.info(f"Creating fallback thumbnail from: {path}")
        # Same dispatch as the primary path: svg goes vector, anything else raster
        data = self.renderer.render(path, size)
        write_thumbnail(destination, data)
        logging.info("Fallback thumbnail created successfully")
