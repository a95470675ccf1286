"""
Doppelganger — CLI Entry Point

Usage:
    doppelganger [--addr HOST] [--port N] [--mirror DIR] [--debug]
    doppelganger --version
    python -m doppelganger --port 8000
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import logging
import sys
from typing import Optional

import click

from . import BUILD_DATE, __version__
from .admin import create_app, run_server
from .config import Settings
from .container import Services
from .errors import ConfigError
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def _print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"Doppelganger, version {__version__}, build date {BUILD_DATE}")
    ctx.exit(0)


@click.command()
@click.option("--addr", default=None, help="Listen address (default: all interfaces)")
@click.option("--port", type=int, default=None, help="Listen port (default: 8081)")
@click.option(
    "--mirror",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory that holds the mirrors (default: $GOPATH/src/github.com)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--version",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_print_version,
    help="Print version and exit",
)
def cli(addr: Optional[str], port: Optional[int], mirror: Optional[Path], debug: bool) -> None:
    """Doppelganger — mirror your GitHub repositories locally."""
    setup_logging(level="DEBUG" if debug else None)

    try:
        settings = Settings.from_env().with_overrides(addr=addr, port=port, mirror_dir=mirror)
        settings.validate()
        services = Services.from_settings(settings)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    app = create_app(services)

    logger.info(f"starting doppelganger {__version__} on {settings.listen_address}")
    try:
        run_server(app, settings.addr or "0.0.0.0", settings.port)
    except OSError as e:
        click.echo(f"Error: cannot listen on {settings.listen_address}: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
