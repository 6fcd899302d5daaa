"""
Thumbnail pipeline for a single desktop entry.

    PARSE_ENTRY -> RESOLVE_ICON -> RENDER -> DONE

A failure in any of the first three states moves to FALLBACK. A failure
there ends in TERMINAL and nothing is written. No state is retried.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from desktop_thumbnailer.core.entry import read_icon_reference
from desktop_thumbnailer.core.errors import EntryError, RenderError, ResolutionError
from desktop_thumbnailer.core.fallback import FallbackThumbnailProvider
from desktop_thumbnailer.core.renderer import ThumbnailRenderer, write_thumbnail
from desktop_thumbnailer.core.resolver import IconResolver
from desktop_thumbnailer.core.theme import GSettingsThemeProvider, XdgIconLocator


class PipelineState(Enum):
    PARSE_ENTRY = "parse_entry"
    RESOLVE_ICON = "resolve_icon"
    RENDER = "render"
    DONE = "done"
    FALLBACK = "fallback"
    TERMINAL = "terminal"


@dataclass
class PipelineResult:
    """Outcome of one pipeline run"""
    state: PipelineState
    destination: str
    icon: Optional[str] = None
    icon_path: Optional[str] = None
    used_fallback: bool = False
    failure: Optional[str] = None  # message of the error that triggered the fallback

    @property
    def output_written(self) -> bool:
        return self.state is PipelineState.DONE


class ThumbnailPipeline:
    STAGE_ERRORS = (EntryError, ResolutionError, RenderError)

    def __init__(self, theme_provider, resolver, renderer, fallback_provider):
        self.theme_provider = theme_provider
        self.resolver = resolver
        self.renderer = renderer
        self.fallback_provider = fallback_provider

    @classmethod
    def from_config(cls, config):
        """Wire the desktop-backed collaborators from a loaded configuration."""
        locator = XdgIconLocator()
        renderer = ThumbnailRenderer()
        return cls(
            theme_provider=GSettingsThemeProvider(config["theme_command"], config["default_theme"]),
            resolver=IconResolver(locator, config["fallback_themes"]),
            renderer=renderer,
            fallback_provider=FallbackThumbnailProvider(
                locator, renderer, config["fallback_icon"], config["fallback_icon_theme"]),
        )

    def run(self, desktop_path, destination, size) -> PipelineResult:
        result = PipelineResult(state=PipelineState.PARSE_ENTRY, destination=str(destination))

        while result.state not in (PipelineState.DONE, PipelineState.TERMINAL):
            current = result.state
            try:
                result.state = self._step(result, desktop_path, destination, size)
            except self.STAGE_ERRORS as e:
                logging.error(f"{current.value} failed: {e}")
                result.failure = str(e)
                result.state = PipelineState.FALLBACK

        return result

    def _step(self, result, desktop_path, destination, size):
        if result.state is PipelineState.PARSE_ENTRY:
            result.icon = read_icon_reference(desktop_path)
            return PipelineState.RESOLVE_ICON

        if result.state is PipelineState.RESOLVE_ICON:
            theme = self.theme_provider.current_theme()
            result.icon_path = self.resolver.resolve_or_raise(result.icon, theme, size)
            return PipelineState.RENDER

        if result.state is PipelineState.RENDER:
            logging.info(f"Processing icon path: {result.icon_path}")
            write_thumbnail(destination, self.renderer.render(result.icon_path, size))
            return PipelineState.DONE

        # FALLBACK
        result.used_fallback = True
        if self.fallback_provider.produce(destination, size):
            return PipelineState.DONE
        return PipelineState.TERMINAL
