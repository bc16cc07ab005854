"""Tests for verify mode: recorded value returned, drift logged."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from replaydeck.engine.replayer import ReplayEngine
from replaydeck.engine.session import ReplaySession
from replaydeck.engine.verifier import VerificationEngine
from replaydeck.recording.hashing import hash_content
from replaydeck.recording.models import CallRecord, TestContext

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session(*pairs: tuple[str, str]) -> ReplaySession:
    records = [
        CallRecord(
            id=f"house-TEXT-call-{n}",
            caller_id="house",
            call_kind="TEXT",
            prompt=prompt,
            prompt_hash=hash_content(prompt),
            response=response,
            response_kind="text",
            timestamp="2026-02-14T12:00:00.000Z",
            global_sequence=n,
        )
        for n, (prompt, response) in enumerate(pairs, start=1)
    ]
    return ReplaySession(TestContext(suite_name="Suite", test_name="verify"), records)


async def _verify(
    verifier: VerificationEngine,
    session: ReplaySession,
    live: AsyncMock,
    prompt: str = "hello",
) -> object:
    label = session.next_label("house", "TEXT")
    return await verifier.verify(
        session, label, "house", "TEXT", {"prompt": prompt}, live
    )


@pytest.fixture
def verify_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.INFO, logger="replaydeck.engine.verifier")
    return caplog


# ===================================================================
# Verification
# ===================================================================


class TestVerify:
    async def test_matching_response_is_verified(
        self, verify_logs: pytest.LogCaptureFixture
    ) -> None:
        verifier = VerificationEngine(ReplayEngine())
        live = AsyncMock(return_value="recorded")

        result = await _verify(verifier, _session(("hello", "recorded")), live)

        assert result == "recorded"
        assert verifier.verified == 1
        assert verifier.drifted == 0
        assert "Response verified for house house-TEXT-call-1" in verify_logs.text

    async def test_drift_returns_recorded_value(
        self, verify_logs: pytest.LogCaptureFixture
    ) -> None:
        verifier = VerificationEngine(ReplayEngine())
        live = AsyncMock(return_value="something new")

        result = await _verify(verifier, _session(("hello", "recorded")), live)

        assert result == "recorded"
        assert verifier.drifted == 1
        assert "Response drift detected for house house-TEXT-call-1" in verify_logs.text
        assert "Recorded: recorded" in verify_logs.text
        assert "something new" in verify_logs.text

    async def test_live_call_uses_verify_temperature(self) -> None:
        verifier = VerificationEngine(ReplayEngine(), verify_temperature=0.3)
        live = AsyncMock(return_value="recorded")

        await _verify(verifier, _session(("hello", "recorded")), live)

        live.assert_awaited_once_with("TEXT", {"prompt": "hello", "temperature": 0.3})

    async def test_default_temperature_is_one(self) -> None:
        verifier = VerificationEngine(ReplayEngine())
        live = AsyncMock(return_value="recorded")

        await _verify(verifier, _session(("hello", "recorded")), live)

        assert live.await_args.args[1]["temperature"] == 1.0

    async def test_failed_live_call_keeps_recorded_value(
        self, verify_logs: pytest.LogCaptureFixture
    ) -> None:
        verifier = VerificationEngine(ReplayEngine())
        live = AsyncMock(side_effect=ConnectionError("offline"))

        result = await _verify(verifier, _session(("hello", "recorded")), live)

        assert result == "recorded"
        assert verifier.verified == 0
        assert verifier.drifted == 0
        assert "failed, keeping recorded response" in verify_logs.text


# ===================================================================
# Missing recordings
# ===================================================================


class TestMissingRecording:
    async def test_miss_falls_back_to_live_call(
        self, verify_logs: pytest.LogCaptureFixture
    ) -> None:
        verifier = VerificationEngine(ReplayEngine())
        live = AsyncMock(return_value="live answer")

        result = await _verify(verifier, _session(), live)

        assert result == "live answer"
        assert verifier.skipped == 1
        live.assert_awaited_once_with("TEXT", {"prompt": "hello"})
        assert "No recording for verification" in verify_logs.text

    async def test_exhausted_recording_falls_back(self) -> None:
        verifier = VerificationEngine(ReplayEngine())
        session = _session(("first", "recorded"))
        live = AsyncMock(return_value="recorded")

        assert await _verify(verifier, session, live, prompt="first") == "recorded"
        live.return_value = "fresh"
        assert await _verify(verifier, session, live, prompt="second") == "fresh"
        assert verifier.skipped == 1

    async def test_miss_is_not_logged_as_error(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        verifier = VerificationEngine(ReplayEngine())
        live = AsyncMock(return_value="live answer")

        await _verify(verifier, _session(), live)

        assert "PLAYBACK MISMATCH" not in caplog.text
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
