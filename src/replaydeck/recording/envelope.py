"""Encoding of live responses into records, and decoding them on replay."""

from __future__ import annotations

import json
import logging
from typing import Any

from replaydeck.recording.models import CallRecord, ResponseKind

logger = logging.getLogger(__name__)


def encode_response(response: Any) -> tuple[str, ResponseKind]:
    """Normalize a live response into its stored string form.

    Strings are stored verbatim. Anything else is stored as compact JSON
    and tagged ``structured`` so replay hands back the original shape.
    """
    if isinstance(response, str):
        return response, "text"
    return to_compact_json(response), "structured"


def to_compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def decode_response(record: CallRecord) -> Any:
    """Return the value a replayed call hands back to its caller.

    Records without a ``responseKind`` come from older files and fall back
    to sniffing: a response that starts like JSON is parsed if it can be.
    """
    raw = record.response
    match record.response_kind:
        case "text":
            return raw
        case "structured":
            return _parse_or_raw(record, raw)
        case _:
            if raw.startswith("[") or raw.startswith("{"):
                return _parse_or_raw(record, raw)
            return raw


def _parse_or_raw(record: CallRecord, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(
            "Failed to parse JSON response for %s, using it as a string", record.id
        )
        return raw
