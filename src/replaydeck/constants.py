"""Shared constants and type aliases for replaydeck."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

#: Live model call supplied by the host: ``(call_kind, payload) -> response``.
LiveCall = Callable[[str, dict[str, Any]], Awaitable[Any]]

#: Current on-disk recording format version.
FORMAT_VERSION = "2.1.0"

#: Files older than this version are migrated on load.
LEGACY_VERSION_CUTOFF = "2.0.0"

#: Max characters of prompt text shown in diagnostics and CLI previews.
PREVIEW_LEN = 80

#: Number of fingerprint characters shown in log lines.
SHORT_HASH_LEN = 8
