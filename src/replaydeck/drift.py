"""Compare actual responses from a test run with a stored recording."""

from __future__ import annotations

from typing import Any

from replaydeck.recording.envelope import decode_response
from replaydeck.recording.models import CallRecord
from replaydeck.recording.store import RecordingStore

_PREVIEW_LEN = 100


def response_text(record: CallRecord) -> str:
    """Text of a recorded response; structured payloads yield their ``text`` key."""
    value = decode_response(record)
    return _as_text(value)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("text"), str):
        return value["text"]
    return str(value)


def detect_response_drift(
    store: RecordingStore,
    suite_name: str,
    test_name: str,
    actual_responses: list[Any],
) -> list[str]:
    """Return report lines describing where *actual_responses* diverge.

    Responses are compared by index against the records in the order the
    file stores them (caller, call kind, local call index). Extra actual
    responses beyond the recording are ignored.
    """
    path = store.path_for(suite_name, test_name)
    if not path.is_file():
        return [f"No recording found to compare against for {suite_name}::{test_name}"]

    records = store.load_file(path).recordings
    report: list[str] = []
    for index, (record, actual) in enumerate(zip(records, actual_responses), start=1):
        recorded_text = response_text(record)
        actual_text = _as_text(actual)
        if recorded_text != actual_text:
            report += [
                f"Response drift detected for call {index} ({record.id}):",
                f"   Recorded: {recorded_text[:_PREVIEW_LEN]}...",
                f"   Actual:   {actual_text[:_PREVIEW_LEN]}...",
                "",
            ]

    if not report:
        report.append(f"No response drift detected for {test_name}")
    return report
