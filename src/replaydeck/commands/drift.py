"""replaydeck drift — compare actual responses with a stored recording."""

from __future__ import annotations

import json
from pathlib import Path

import click

from replaydeck.commands import dir_option, open_store
from replaydeck.drift import detect_response_drift


@click.command()
@click.argument("suite")
@click.argument("test")
@click.argument(
    "responses_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@dir_option
def drift(
    suite: str,
    test: str,
    responses_file: Path,
    recordings_dir: Path | None,
) -> None:
    """Report drift between RESPONSES_FILE (a JSON list) and SUITE / TEST."""
    try:
        actual = json.loads(responses_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        click.echo(f"Error: invalid JSON in {responses_file.name}: {exc}", err=True)
        raise SystemExit(1) from exc
    if not isinstance(actual, list):
        click.echo(f"Error: {responses_file.name} must contain a JSON list", err=True)
        raise SystemExit(1)

    store = open_store(recordings_dir)
    try:
        report = detect_response_drift(store, suite, test, actual)
    except (OSError, ValueError) as exc:
        click.echo(f"Error: cannot read recording: {exc}", err=True)
        raise SystemExit(1) from exc

    for line in report:
        click.echo(line)
    if any(line.startswith("Response drift detected") for line in report):
        raise SystemExit(1)
