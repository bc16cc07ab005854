"""Pydantic v2 models for replaydeck configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Mode = Literal["record", "playback", "verify"]


class ReplayConfig(BaseModel):
    """Top-level replaydeck configuration.

    The mode is fixed once per process; everything else only shapes how
    recordings are stored and matched.
    """

    model_config = ConfigDict(extra="forbid")

    mode: Mode = Field(
        default="playback",
        description="record, playback, or verify",
    )
    recordings_dir: Path = Field(
        default=Path("recordings"),
        description="Directory holding one JSON recording file per test",
    )
    record_tests: list[str] | None = Field(
        default=None,
        description=(
            "Allow-list of suite/test name fragments; when set, record mode "
            "only captures tests matching one of them"
        ),
    )
    verify_temperature: float = Field(
        default=1.0,
        ge=0.0,
        description="Sampling temperature passed to the live call in verify mode",
    )
    fuzzy_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Minimum token-Jaccard similarity accepted by fuzzy matching",
    )

    @field_validator("record_tests", mode="before")
    @classmethod
    def _split_record_tests(cls, value: Any) -> Any:
        # Same comma-separated form as MODEL_RECORD_TESTS.
        if isinstance(value, str):
            return value.split(",")
        return value

    @field_validator("record_tests")
    @classmethod
    def _strip_record_tests(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        cleaned = [item.strip() for item in value if item.strip()]
        return cleaned or None

    def should_record(self, suite_name: str, test_name: str) -> bool:
        """Return True if calls made under this test are captured."""
        if self.record_tests is None:
            return True
        return any(
            pattern in test_name or pattern in suite_name
            for pattern in self.record_tests
        )
