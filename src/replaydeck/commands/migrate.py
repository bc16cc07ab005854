"""replaydeck migrate — rewrite stored recordings in the current format."""

from __future__ import annotations

from pathlib import Path

import click

from replaydeck.commands import dir_option, open_store
from replaydeck.constants import FORMAT_VERSION


@click.command()
@dir_option
def migrate(recordings_dir: Path | None) -> None:
    """Upgrade every recording file to the current format version."""
    store = open_store(recordings_dir)
    migrated = 0
    failed = 0
    for path in store.list_files():
        try:
            recording_file = store.load_file(path)
        except (OSError, ValueError) as exc:
            click.echo(f"⚠️  Skipping {path.name}: {exc}", err=True)
            failed += 1
            continue
        if recording_file.version == FORMAT_VERSION:
            continue
        store.save(
            recording_file.test_suite,
            recording_file.test_name,
            recording_file.recordings,
        )
        click.echo(
            f"Migrated {path.name} ({recording_file.version or 'legacy'} → "
            f"{FORMAT_VERSION})"
        )
        migrated += 1

    click.echo(f"{migrated} file(s) migrated, {failed} skipped.")
    if failed:
        raise SystemExit(1)
