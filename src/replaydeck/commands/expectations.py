"""replaydeck expectations — turn recordings into test assertions."""

from __future__ import annotations

from pathlib import Path

import click

from replaydeck.commands import dir_option, open_store
from replaydeck.expectations import (
    generate_expectation_updates,
    generate_expectations_file,
)


@click.command()
@click.argument("suite", required=False)
@click.argument("test", required=False)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write a TEST_EXPECTATIONS module covering every recording.",
)
@dir_option
def expectations(
    suite: str | None,
    test: str | None,
    output: Path | None,
    recordings_dir: Path | None,
) -> None:
    """Print assertions for SUITE / TEST, or write a module with --output."""
    if output is not None and suite is not None:
        raise click.UsageError("Use either SUITE TEST or --output, not both.")
    if output is None and (suite is None or test is None):
        raise click.UsageError("Give SUITE and TEST, or --output FILE.")

    store = open_store(recordings_dir)
    if output is not None:
        path = generate_expectations_file(store, output)
        click.echo(f"Generated expectations file: {path}")
        return

    lines = generate_expectation_updates(store, suite, test)
    for line in lines:
        click.echo(line)
    if lines[0].startswith(("No recording found", "Error reading recording")):
        raise SystemExit(1)
