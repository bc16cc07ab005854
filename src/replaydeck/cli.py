"""Root CLI group and version flag."""

import logging

import click

from replaydeck import __version__
from replaydeck.commands.drift import drift
from replaydeck.commands.expectations import expectations
from replaydeck.commands.list_recordings import list_recordings
from replaydeck.commands.migrate import migrate
from replaydeck.commands.show import show


@click.group()
@click.version_option(version=__version__, prog_name="replaydeck")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """replaydeck — inspect and maintain recorded model calls."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


cli.add_command(list_recordings)
cli.add_command(show)
cli.add_command(migrate)
cli.add_command(drift)
cli.add_command(expectations)
