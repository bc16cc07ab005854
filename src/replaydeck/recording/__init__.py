"""Call records — models, fingerprints, response envelope and JSON store."""

from replaydeck.recording.envelope import decode_response, encode_response
from replaydeck.recording.hashing import (
    context_hash,
    extract_prompt,
    hash_content,
    prompt_similarity,
)
from replaydeck.recording.models import (
    CallRecord,
    FileMetadata,
    RecordingFile,
    ResponseKind,
    TestContext,
)
from replaydeck.recording.store import RecordingStore, sanitize_name

__all__ = [
    "CallRecord",
    "FileMetadata",
    "RecordingFile",
    "RecordingStore",
    "ResponseKind",
    "TestContext",
    "context_hash",
    "decode_response",
    "encode_response",
    "extract_prompt",
    "hash_content",
    "prompt_similarity",
    "sanitize_name",
]
