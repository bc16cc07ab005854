"""Verification engine — replay, then compare against a fresh live call."""

from __future__ import annotations

import logging
from typing import Any

from replaydeck.constants import LiveCall
from replaydeck.engine.replayer import ReplayEngine, ReplayMiss
from replaydeck.engine.session import ReplaySession

logger = logging.getLogger(__name__)

#: Characters of each response shown in drift warnings.
_DRIFT_PREVIEW_LEN = 100


class VerificationEngine:
    """Detects drift between recorded and live model behaviour.

    The recorded value is always what the caller gets back, so a test
    running in verify mode stays exactly as deterministic as playback.
    Drift is reported through the log and counted, never raised.
    """

    def __init__(self, replayer: ReplayEngine, verify_temperature: float = 1.0) -> None:
        self._replayer = replayer
        self._verify_temperature = verify_temperature
        self.verified = 0
        self.drifted = 0
        self.skipped = 0

    async def verify(
        self,
        session: ReplaySession,
        label_id: str,
        caller_id: str,
        call_kind: str,
        payload: dict[str, Any],
        live_call: LiveCall,
    ) -> Any:
        try:
            record = self._replayer.match(session, caller_id, call_kind, payload)
        except ReplayMiss as miss:
            self.skipped += 1
            logger.warning(
                "No recording for verification of %s, using live call: %s:%s "
                "(%d recorded)",
                label_id,
                miss.caller_id,
                miss.call_kind,
                miss.available,
            )
            return await live_call(call_kind, payload)

        recorded = await self._replayer.deliver(session, record, label_id)
        verify_payload = {**payload, "temperature": self._verify_temperature}
        try:
            current = await live_call(call_kind, verify_payload)
        except Exception as exc:
            logger.warning(
                "Verification call for %s failed, keeping recorded response: %s",
                label_id,
                exc,
            )
            return recorded

        if recorded != current:
            self.drifted += 1
            logger.warning(
                "Response drift detected for %s %s:\nRecorded: %s...\nCurrent:  %s...",
                caller_id,
                label_id,
                _preview(recorded),
                _preview(current),
            )
        else:
            self.verified += 1
            logger.info("Response verified for %s %s", caller_id, label_id)

        return recorded


def _preview(value: Any) -> str:
    return str(value)[:_DRIFT_PREVIEW_LEN]
