"""Recording store — one JSON document per test, loaded and saved wholesale."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from replaydeck.constants import FORMAT_VERSION, LEGACY_VERSION_CUTOFF
from replaydeck.recording.envelope import to_compact_json
from replaydeck.recording.hashing import context_hash, hash_content
from replaydeck.recording.models import (
    CallRecord,
    FileMetadata,
    RecordingFile,
)

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9_-]")


class RecordingStore:
    """Loads and saves the call records of individual tests.

    Paths are a pure function of ``(suite, test)``. Files are never
    patched in place: ``save`` rewrites the whole document through a
    temporary sibling and an atomic rename.
    """

    def __init__(self, recordings_dir: Path) -> None:
        self._dir = Path(recordings_dir)

    @property
    def recordings_dir(self) -> Path:
        return self._dir

    def path_for(self, suite_name: str, test_name: str) -> Path:
        return self._dir / f"{sanitize_name(suite_name)}__{sanitize_name(test_name)}.json"

    def list_files(self) -> list[Path]:
        """All recording files in the store directory, sorted by name."""
        if not self._dir.is_dir():
            return []
        return sorted(p for p in self._dir.glob("*.json") if p.is_file())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, suite_name: str, test_name: str) -> list[CallRecord]:
        """Return the records stored for a test, or ``[]``.

        A missing file is normal (first recording). An unreadable or
        malformed file is logged and treated the same way so record mode
        always starts from a clean slate.
        """
        path = self.path_for(suite_name, test_name)
        if not path.is_file():
            return []
        try:
            recording_file = self.load_file(path)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load recordings from %s: %s", path, exc)
            return []
        logger.info(
            "Loaded %d model call recordings from %s (version: %s)",
            len(recording_file.recordings),
            path,
            recording_file.version or "legacy",
        )
        return recording_file.recordings

    def load_file(self, path: Path) -> RecordingFile:
        """Parse one recording file, migrating older formats.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the JSON is invalid or does not describe a
                recording file (``ValidationError`` is a ``ValueError``).
        """
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            msg = f"Expected a JSON object in {path.name}, got {type(data).__name__}"
            raise ValueError(msg)

        raw_records = data.get("recordings") or []
        if not isinstance(raw_records, list):
            msg = f"'recordings' in {path.name} must be a list"
            raise ValueError(msg)

        metadata = data.get("metadata") or {}
        version = metadata.get("version") if isinstance(metadata, dict) else None
        if version is not None and not isinstance(version, str):
            msg = f"'metadata.version' in {path.name} must be a string, got {version!r}"
            raise ValueError(msg)
        records = migrate_records(raw_records, version)

        try:
            return RecordingFile.model_validate({**data, "recordings": records})
        except ValidationError:
            logger.error("Recording file %s does not match the expected format", path)
            raise

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def save(
        self,
        suite_name: str,
        test_name: str,
        records: list[CallRecord],
    ) -> Path:
        """Write *records* as the complete recording file for a test."""
        cleaned = sort_records(dedupe_records(records))
        now = iso_now()
        recording_file = RecordingFile(
            test_suite=suite_name,
            test_name=test_name,
            recordings=cleaned,
            metadata=FileMetadata(
                created_at=cleaned[0].timestamp if cleaned else now,
                updated_at=now,
                version=FORMAT_VERSION,
            ),
        )
        path = self.path_for(suite_name, test_name)
        self.write_file(path, recording_file)

        logger.info(
            "Saved %d deduplicated model call recordings to %s", len(cleaned), path
        )
        removed = len(records) - len(cleaned)
        if removed:
            logger.info("Removed %d duplicate recordings", removed)
        return path

    def write_file(self, path: Path, recording_file: RecordingFile) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = recording_file.model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        os.replace(tmp_path, path)


# ----------------------------------------------------------------------
# Record list helpers
# ----------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Make *name* safe for use as a file name component."""
    return _UNSAFE_CHARS_RE.sub("_", name)


def iso_now() -> str:
    """Return the current UTC time as ISO 8601 with milliseconds."""
    return datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def dedupe_records(records: Iterable[CallRecord]) -> list[CallRecord]:
    """Keep one record per label id, the one with the latest timestamp."""
    by_id: dict[str, CallRecord] = {}
    for record in records:
        existing = by_id.get(record.id)
        if existing is None or record.recorded_at > existing.recorded_at:
            by_id[record.id] = record
    return list(by_id.values())


def sort_records(records: Iterable[CallRecord]) -> list[CallRecord]:
    """Order records by caller, then call kind, then local call index."""
    return sorted(records, key=CallRecord.sort_key)


def is_legacy_version(version: str | None) -> bool:
    if not version:
        return True
    return _version_tuple(version) < _version_tuple(LEGACY_VERSION_CUTOFF)


def _version_tuple(version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for piece in version.split("."):
        digits = re.match(r"\d+", piece)
        parts.append(int(digits.group()) if digits else 0)
    return tuple(parts)


def migrate_records(
    raw_records: list[dict[str, Any]],
    version: str | None,
) -> list[CallRecord]:
    """Turn raw stored dicts into clean, de-duplicated, sorted records.

    Every file gets structured responses normalized and is de-duplicated
    and sorted. Legacy files additionally have missing hashes, sequence
    numbers and relative timestamps back-filled from record position.
    """
    legacy = is_legacy_version(version)
    if legacy:
        logger.info("Migrating recordings from legacy format...")

    records = dedupe_records(
        CallRecord.model_validate(_normalize_response(raw)) for raw in raw_records
    )

    if legacy:
        records = [_backfill(record, index) for index, record in enumerate(records)]

    cleaned = sort_records(records)
    dropped = len(raw_records) - len(cleaned)
    if dropped:
        logger.info("Cleaned %d problematic recordings during load", dropped)
    return cleaned


def _normalize_response(raw: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(raw, dict):
        msg = f"Recording entries must be objects, got {type(raw).__name__}"
        raise ValueError(msg)
    response = raw.get("response")
    if response is None:
        return {**raw, "response": ""}
    if isinstance(response, str):
        return raw
    logger.warning(
        "Converting %s response to JSON string for %s",
        _json_type_name(response),
        raw.get("id"),
    )
    return {**raw, "response": to_compact_json(response), "responseKind": "structured"}


def _json_type_name(value: Any) -> str:
    match value:
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case list():
            return "array"
        case dict():
            return "object"
        case _:
            return type(value).__name__


def _backfill(record: CallRecord, index: int) -> CallRecord:
    updates: dict[str, Any] = {}
    if not record.prompt_hash:
        updates["prompt_hash"] = hash_content(record.prompt)
    if not record.context_hash:
        updates["context_hash"] = context_hash(
            record.caller_id, record.call_kind, index
        )
    if record.relative_timestamp is None:
        updates["relative_timestamp"] = index * 1000
    if record.global_sequence is None:
        updates["global_sequence"] = index + 1
    if not updates:
        return record
    return record.model_copy(update=updates)
