"""Generate test expectations from stored recordings.

After re-recording, the assertions a test makes about model output often
need updating. These helpers turn a recording into ready-to-paste
``assert`` lines, or into a Python module mapping every recorded test to
its responses.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from replaydeck.drift import response_text
from replaydeck.recording.store import RecordingStore

logger = logging.getLogger(__name__)

DEFAULT_EXPECTATIONS_FILE = Path("test_expectations.py")

#: Characters of each response used in a generated ``assert ... in`` line.
_SNIPPET_LEN = 50

_KEY_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_]")


def expectation_key(name: str) -> str:
    """Identifier-safe key for a test in ``TEST_EXPECTATIONS``."""
    return _KEY_UNSAFE_RE.sub("_", name)


def _one_line(text: str) -> str:
    return " ".join(text.split())


def generate_expectation_updates(
    store: RecordingStore,
    suite_name: str,
    test_name: str,
) -> list[str]:
    """Return suggested assertion lines for each recorded call of a test.

    Call ``n`` in stored order is expected to be bound to ``response<n>``
    in the test body.
    """
    path = store.path_for(suite_name, test_name)
    if not path.is_file():
        return [f"No recording found for {suite_name}::{test_name}"]

    try:
        recording_file = store.load_file(path)
    except (OSError, ValueError) as exc:
        return [f"Error reading recording: {exc}"]

    lines = [
        f"# Expectations for {test_name}",
        f"# Based on recording: {path}",
        "",
    ]
    for index, record in enumerate(recording_file.recordings, start=1):
        snippet = response_text(record)[:_SNIPPET_LEN]
        lines += [
            f"# Call {index}: {record.caller_id} - {record.call_kind}",
            f"# Prompt: {_one_line(record.prompt)}",
            f"assert {snippet!r} in response{index}",
            "",
        ]
    return lines


def generate_expectations_file(
    store: RecordingStore,
    output_path: Path = DEFAULT_EXPECTATIONS_FILE,
) -> Path:
    """Write a module defining ``TEST_EXPECTATIONS`` for every recording.

    Each entry maps ``call<n>`` to the full response text of the n-th
    stored call. Unreadable files get a single ``error`` entry instead.
    """
    lines = [
        "# Auto-generated test expectations based on recordings.",
        "# Re-run `replaydeck expectations -o FILE` after recording to update.",
        "",
        "TEST_EXPECTATIONS: dict[str, dict[str, str]] = {",
    ]
    for path in store.list_files():
        try:
            recording_file = store.load_file(path)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read recording %s: %s", path, exc)
            error = f"Failed to read recording: {exc}"
            lines.append(f"    {expectation_key(path.stem)!r}: {{")
            lines.append(f"        'error': {error!r},")
            lines.append("    },")
            continue

        key = expectation_key(f"{recording_file.test_suite}_{recording_file.test_name}")
        lines.append(f"    {key!r}: {{")
        for index, record in enumerate(recording_file.recordings, start=1):
            lines.append(f"        'call{index}': {response_text(record)!r},")
        lines.append("    },")

    lines += [
        "}",
        "",
        "# Usage:",
        "#   from test_expectations import TEST_EXPECTATIONS",
        "#   assert TEST_EXPECTATIONS['HouseSuite_lobby_flow']['call1'] in response",
        "",
    ]

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Generated expectations file: %s", output_path)
    return output_path
