"""Content fingerprints and prompt similarity scoring."""

from __future__ import annotations

import hashlib
from typing import Any

#: Fingerprint length in hex characters (64 bits).
FINGERPRINT_LEN = 16


def hash_content(content: str) -> str:
    """Return the 16-char SHA-256 fingerprint of *content*.

    Leading and trailing whitespace is ignored so that trivially
    re-indented prompts still hash identically.
    """
    digest = hashlib.sha256(content.strip().encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LEN]


def context_hash(caller_id: str, call_kind: str, position: int) -> str:
    """Fingerprint of a call's position within its caller/kind stream."""
    return hash_content(f"{caller_id}-{call_kind}-{position}")


def extract_prompt(payload: dict[str, Any] | None) -> str:
    """Pull the prompt text out of a call payload.

    Model calls carry their prompt under ``prompt``; some call kinds use
    ``text`` instead. Anything else has no prompt.
    """
    if not payload:
        return ""
    for key in ("prompt", "text"):
        value = payload.get(key)
        if value:
            return str(value)
    return ""


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def prompt_similarity(first: str, second: str) -> float:
    """Token-level Jaccard similarity between two prompts.

    Prompts are case-folded and split on whitespace. Identical
    normalized prompts score 1.0, including two empty prompts.

    >>> prompt_similarity("Hello  World", "hello world")
    1.0
    >>> prompt_similarity("a b", "c d")
    0.0
    """
    n1 = _normalize(first)
    n2 = _normalize(second)
    if n1 == n2:
        return 1.0
    if not n1 or not n2:
        return 0.0

    tokens1 = set(n1.split(" "))
    tokens2 = set(n2.split(" "))
    return len(tokens1 & tokens2) / len(tokens1 | tokens2)
