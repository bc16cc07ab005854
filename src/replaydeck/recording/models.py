"""Pydantic v2 models for recorded model calls and recording files."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

#: Label ids end in ``-call-<n>``; ``n`` is the per caller/kind local index.
_LOCAL_INDEX_RE = re.compile(r"-call-(\d+)$")

ResponseKind = Literal["text", "structured"]


class TestContext(BaseModel):
    """The (suite, test) pair that scopes one run's records and state."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    suite_name: str = Field(alias="suiteName")
    test_name: str = Field(alias="testName")

    @property
    def key(self) -> str:
        return f"{self.suite_name}::{self.test_name}"


class CallRecord(BaseModel):
    """One captured model call: who asked, what was asked, what came back.

    Field names are camelCase on disk. Files written before callers were
    generalised used ``agentId``/``modelType``; both are still accepted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(description="Label id: '{caller}-{kind}-call-{n}'")
    caller_id: str = Field(
        alias="callerId",
        validation_alias=AliasChoices("callerId", "agentId"),
    )
    call_kind: str = Field(
        alias="callKind",
        validation_alias=AliasChoices("callKind", "modelType"),
    )
    prompt: str = ""
    prompt_hash: str = Field(default="", alias="promptHash")
    context_hash: str | None = Field(default=None, alias="contextHash")
    options: dict[str, Any] = Field(default_factory=dict)
    response: str = Field(description="Raw text or compact JSON payload")
    response_kind: ResponseKind | None = Field(
        default=None,
        alias="responseKind",
        description="Envelope tag; absent in files written before 2.1.0",
    )
    timestamp: str = Field(description="ISO 8601 timestamp with milliseconds")
    relative_timestamp: int | None = Field(
        default=None,
        alias="relativeTimestamp",
        description="Milliseconds since test start",
    )
    global_sequence: int | None = Field(
        default=None,
        alias="globalSequence",
        description="Capture order across all callers in one test run",
    )
    test_context: TestContext | None = Field(default=None, alias="testContext")

    @property
    def local_index(self) -> int:
        match = _LOCAL_INDEX_RE.search(self.id)
        return int(match.group(1)) if match else 0

    @property
    def sequence(self) -> int:
        """Global sequence with missing values ordered first."""
        return self.global_sequence or 0

    @property
    def recorded_at(self) -> datetime:
        parsed = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    def sort_key(self) -> tuple[str, str, int]:
        return (self.caller_id, self.call_kind, self.local_index)


class FileMetadata(BaseModel):
    """Bookkeeping block of a recording file."""

    model_config = ConfigDict(populate_by_name=True)

    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")
    version: str | None = None


class RecordingFile(BaseModel):
    """On-disk container for one test's call records."""

    model_config = ConfigDict(populate_by_name=True)

    test_suite: str = Field(alias="testSuite")
    test_name: str = Field(alias="testName")
    recordings: list[CallRecord] = Field(default_factory=list)
    metadata: FileMetadata | None = None

    @property
    def version(self) -> str | None:
        return self.metadata.version if self.metadata else None
