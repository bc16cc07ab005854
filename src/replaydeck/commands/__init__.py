"""CLI subcommands for inspecting and maintaining recordings."""

from __future__ import annotations

from pathlib import Path

import click

from replaydeck.config.parser import ConfigError, load_config
from replaydeck.recording.store import RecordingStore

#: Shared ``--dir`` option; falls back to the configured recordings dir.
dir_option = click.option(
    "--dir",
    "recordings_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Recordings directory (default: from replaydeck.yaml / environment).",
)


def open_store(recordings_dir: Path | None) -> RecordingStore:
    """Build a store for *recordings_dir* or the configured default."""
    if recordings_dir is not None:
        return RecordingStore(recordings_dir)
    try:
        config = load_config()
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    return RecordingStore(config.recordings_dir)
