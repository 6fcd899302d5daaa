# CLI entry point for desktop-thumbnailer and python -m desktop_thumbnailer

import getpass
import logging

import typer

from desktop_thumbnailer.config.config_manager import DEFAULT_SIZE, load_config, setup_logging
from desktop_thumbnailer.core.errors import UsageError
from desktop_thumbnailer.core.pipeline import PipelineState, ThumbnailPipeline

app_cli = typer.Typer(help="Render the icon of a .desktop file into a square PNG thumbnail", add_completion=False)


def normalize_size(raw, default=DEFAULT_SIZE):
    """Parse the size argument; 0 means the default size."""
    try:
        size = int(str(raw).strip())
    except ValueError:
        raise UsageError(f"Bad size '{raw}': not an integer")
    if size < 0:
        raise UsageError(f"Bad size '{raw}': must not be negative")
    return size or default


def _current_user():
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


@app_cli.command()
def main(
    desktop_file: str = typer.Argument(..., help=".desktop file whose Icon= is rendered"),
    output: str = typer.Argument(..., help="PNG file to write"),
    size: str = typer.Argument(..., help="Edge length in pixels, 0 for the default"),
    config_path: str = typer.Option(None, "--config", "-c", help="Alternative config.yml"),
):
    """Write a SIZE x SIZE PNG thumbnail of DESKTOP_FILE's icon to OUTPUT."""
    config = load_config(config_path)
    setup_logging(config.get("log_path"), config.get("log_level", "INFO"))

    try:
        edge = normalize_size(size, config["default_size"])
    except UsageError as e:
        # No size is known, so there is nothing to render a fallback at
        raise typer.BadParameter(str(e), param_hint="SIZE")

    logging.debug(f"Running as user: {_current_user()}")

    result = ThumbnailPipeline.from_config(config).run(desktop_file, output, edge)
    if result.state is PipelineState.TERMINAL:
        logging.error(f"No thumbnail written for {desktop_file}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app_cli()
