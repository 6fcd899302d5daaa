"""
Thumbnail rendering for resolved icon files.

Vector icons are scaled so their smaller side fills the thumbnail and are
clipped on the larger side. Raster icons are scaled so their larger side
fits and are centred on a transparent square. The two policies differ on
purpose; changing either alters visible output.
"""

import io
import os
import logging
from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional, Sequence, Tuple

import numpy as np
import png
from PIL import Image

from desktop_thumbnailer.core.errors import RenderError, RenderFailure

VECTOR_EXTENSIONS = {"svg"}
RASTER_EXTENSIONS = {"png", "jpg", "jpeg"}

TRANSPARENT = (0, 0, 0, 0)


def icon_extension(path) -> str:
    return Path(path).suffix[1:].lower()


def round_half_up(value: float) -> int:
    return int(value + 0.5)


class CairoSvgRasterizer:
    """Vector backend built on CairoSVG; returns RGBA Pillow images."""

    dpi = 96

    def scene_size(self, data: bytes) -> Tuple[float, float]:
        """Intrinsic width and height in user units, unrounded."""
        from cairosvg.helpers import node_format
        from cairosvg.parser import Tree

        # Top-level element: no viewport to resolve percentages against, so
        # width="100%" collapses to 0 and node_format falls back to the viewBox
        context = SimpleNamespace(dpi=self.dpi, font_size=self.dpi / 6,
                                  context_width=None, context_height=None)
        width, height, _ = node_format(context, Tree(bytestring=data))
        return float(width), float(height)

    def rasterize(self, data: bytes, scale: float) -> Image.Image:
        import cairosvg

        with Image.open(io.BytesIO(cairosvg.svg2png(bytestring=data, scale=scale))) as img:
            img.load()
            return img.convert("RGBA")


class PillowDecoder:
    """General purpose decode for any format Pillow understands"""
    name = "pillow"

    def decode(self, path) -> Image.Image:
        try:
            with Image.open(path) as img:
                img.load()
                return img.convert("RGBA")
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise RenderError(RenderFailure.DECODE_FAILED, f"Pillow could not decode {path}: {e}") from e


class PngFallbackDecoder:
    """
    Manual PNG decode with pypng for files Pillow rejects.

    Only 8-bit truecolour images are handled: RGBA is used as-is and RGB
    gets an opaque alpha channel. Everything else is reported as an
    unsupported colour type.
    """
    name = "pypng"

    def decode(self, path) -> Image.Image:
        try:
            width, height, rows, info = png.Reader(filename=str(path)).read()
            color_mode = self._color_mode(info)
            pixels = np.vstack([np.asarray(row, dtype=np.uint8) for row in rows])
        except (png.Error, OSError, ValueError) as e:
            raise RenderError(RenderFailure.DECODE_FAILED, f"pypng could not decode {path}: {e}") from e

        if color_mode == "RGBA":
            rgba = pixels.reshape(height, width, 4)
        else:
            rgb = pixels.reshape(height, width, 3)
            alpha = np.full((height, width, 1), 255, dtype=np.uint8)
            rgba = np.concatenate([rgb, alpha], axis=2)

        return Image.fromarray(np.ascontiguousarray(rgba))

    @staticmethod
    def _color_mode(info) -> str:
        greyscale = info.get("greyscale", False)
        alpha = info.get("alpha", False)
        bitdepth = info.get("bitdepth")
        if info.get("palette") or greyscale or bitdepth != 8:
            kind = "palette" if info.get("palette") else ("greyscale" if greyscale else "truecolour")
            raise RenderError(RenderFailure.UNSUPPORTED_COLOR_TYPE,
                              f"Unsupported PNG color type: {kind}, {'with' if alpha else 'no'} alpha, {bitdepth}-bit")
        return "RGBA" if alpha else "RGB"


def letterbox(image: Image.Image, size: int) -> Image.Image:
    """Scale ``image`` to fit ``size`` on its larger side and centre it on a transparent square."""
    width, height = image.size
    ratio = size / max(width, height)
    new_width = max(1, round_half_up(width * ratio))
    new_height = max(1, round_half_up(height * ratio))

    resized = image.convert("RGBA").resize((new_width, new_height), Image.Resampling.LANCZOS)
    canvas = Image.new("RGBA", (size, size), TRANSPARENT)
    canvas.alpha_composite(resized, dest=((size - new_width) // 2, (size - new_height) // 2))
    return canvas


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise RenderError(RenderFailure.ENCODE_FAILED, f"Failed to encode PNG: {e}") from e
    return buffer.getvalue()


def write_thumbnail(destination, data: bytes):
    """Write PNG bytes to ``destination``, creating parent directories and replacing any existing file."""
    try:
        parent = os.path.dirname(os.fspath(destination))
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(destination, "wb") as f:
            f.write(data)
    except OSError as e:
        raise RenderError(RenderFailure.WRITE_FAILED, f"Failed to write output {destination}: {e}") from e
    logging.info(f"Thumbnail written to {destination}")


class ThumbnailRenderer:
    def __init__(self, vector_rasterizer=None, decoders: Optional[Sequence] = None):
        self.vector_rasterizer = vector_rasterizer or CairoSvgRasterizer()
        self.decoders: List = list(decoders) if decoders is not None else [PillowDecoder(), PngFallbackDecoder()]

    def render(self, path, size: int) -> bytes:
        """Render the icon at ``path`` into ``size`` x ``size`` PNG bytes."""
        return encode_png(self.render_image(path, size))

    def render_image(self, path, size: int) -> Image.Image:
        if size <= 0:
            raise ValueError(f"Thumbnail size must be positive, got {size}")

        extension = icon_extension(path)
        if extension in VECTOR_EXTENSIONS:
            return self.render_svg(path, size)
        if extension in RASTER_EXTENSIONS:
            return self.render_raster(path, size)
        raise RenderError(RenderFailure.UNSUPPORTED_FORMAT, f"Unsupported extension on {path}")

    def render_svg(self, path, size: int) -> Image.Image:
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise RenderError(RenderFailure.READ_FAILED, f"Failed to read SVG: {e}") from e

        try:
            scene_width, scene_height = self.vector_rasterizer.scene_size(data)
            scale = size / min(scene_width, scene_height)
            scene = self.vector_rasterizer.rasterize(data, scale)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(RenderFailure.PARSE_FAILED, f"Failed to parse SVG {path}: {e}") from e

        logging.debug(f"SVG {path}: scene {scene_width}x{scene_height}, scale {scale:.4f}")

        # Drawn at the origin with no offset; whatever exceeds the canvas is cut off
        canvas = Image.new("RGBA", (size, size), TRANSPARENT)
        visible = scene.crop((0, 0, min(scene.width, size), min(scene.height, size)))
        canvas.alpha_composite(visible.convert("RGBA"), dest=(0, 0))
        return canvas

    def render_raster(self, path, size: int) -> Image.Image:
        return letterbox(self.decode_raster(path), size)

    def decode_raster(self, path) -> Image.Image:
        """Try each decoding strategy in order; the last failure is raised."""
        failure = RenderError(RenderFailure.DECODE_FAILED, f"No decoder configured for {path}")
        for decoder in self.decoders:
            try:
                image = decoder.decode(path)
            except RenderError as e:
                logging.warning(f"{decoder.name} decode failed for {path}: {e}")
                failure = e
                continue
            logging.debug(f"Decoded {path} with {decoder.name}: {image.size[0]}x{image.size[1]}")
            return image
        raise failure
