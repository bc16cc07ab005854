"""replaydeck list — summarize every recording file in the store."""

from __future__ import annotations

from pathlib import Path

import click

from replaydeck.commands import dir_option, open_store


@click.command(name="list")
@dir_option
def list_recordings(recordings_dir: Path | None) -> None:
    """List recorded tests with their call counts and format version."""
    store = open_store(recordings_dir)
    files = store.list_files()
    if not files:
        click.echo(f"No recordings found in {store.recordings_dir}")
        return

    header = f"{'SUITE':<30} {'TEST':<40} {'CALLS':>6} {'VERSION':<8}"
    click.echo(header)
    click.echo("─" * len(header))
    for path in files:
        try:
            recording_file = store.load_file(path)
        except (OSError, ValueError) as exc:
            click.echo(f"⚠️  Failed to parse {path.name}: {exc}", err=True)
            continue
        click.echo(
            f"{recording_file.test_suite[:30]:<30} "
            f"{recording_file.test_name[:40]:<40} "
            f"{len(recording_file.recordings):>6} "
            f"{recording_file.version or 'legacy':<8}"
        )
