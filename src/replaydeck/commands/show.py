"""replaydeck show — print the calls stored for one test."""

from __future__ import annotations

from pathlib import Path

import click

from replaydeck.commands import dir_option, open_store
from replaydeck.constants import PREVIEW_LEN, SHORT_HASH_LEN


@click.command()
@click.argument("suite")
@click.argument("test")
@dir_option
def show(suite: str, test: str, recordings_dir: Path | None) -> None:
    """Show the recorded calls of SUITE / TEST in capture order."""
    store = open_store(recordings_dir)
    path = store.path_for(suite, test)
    if not path.is_file():
        click.echo(f"No recording for {suite}::{test} at {path}", err=True)
        raise SystemExit(1)

    try:
        recording_file = store.load_file(path)
    except (OSError, ValueError) as exc:
        click.echo(f"Error: cannot read {path.name}: {exc}", err=True)
        raise SystemExit(1) from exc

    records = sorted(recording_file.recordings, key=lambda r: r.sequence)
    version = recording_file.version or "legacy"
    click.echo(f"{suite}::{test} — {len(records)} call(s), version {version}")
    for record in records:
        preview = " ".join(record.prompt.split())[:PREVIEW_LEN]
        click.echo(
            f"{record.sequence:>4}  {record.id:<40} "
            f"{record.prompt_hash[:SHORT_HASH_LEN]:<8}  {preview}"
        )
