"""Recording engine — run live model calls and capture them."""

from __future__ import annotations

import json
import logging
from typing import Any

from replaydeck.config.models import ReplayConfig
from replaydeck.constants import SHORT_HASH_LEN, LiveCall
from replaydeck.engine.session import ReplaySession
from replaydeck.recording.envelope import encode_response
from replaydeck.recording.hashing import context_hash, extract_prompt, hash_content
from replaydeck.recording.models import CallRecord
from replaydeck.recording.store import iso_now

logger = logging.getLogger(__name__)


class RecordingEngine:
    """Captures each live call as a ``CallRecord`` on the session."""

    def __init__(self, config: ReplayConfig) -> None:
        self._config = config

    def is_recording(self, session: ReplaySession | None) -> bool:
        if session is None:
            return False
        ctx = session.context
        return self._config.should_record(ctx.suite_name, ctx.test_name)

    async def record(
        self,
        session: ReplaySession | None,
        label_id: str,
        caller_id: str,
        call_kind: str,
        payload: dict[str, Any],
        live_call: LiveCall,
    ) -> Any:
        """Invoke *live_call* once and capture its result.

        Exceptions from the live call propagate untouched and leave no
        record behind. Tests outside the configured allow-list pass
        straight through without being captured.
        """
        if session is None or not self.is_recording(session):
            return await live_call(call_kind, payload)

        response = await live_call(call_kind, payload)

        stored, kind = encode_response(response)
        prompt = extract_prompt(payload)
        prompt_hash = hash_content(prompt)
        ctx_hash = context_hash(caller_id, call_kind, session.current_sequence)
        sequence = session.next_sequence()

        record = CallRecord(
            id=label_id,
            caller_id=caller_id,
            call_kind=call_kind,
            prompt=prompt,
            prompt_hash=prompt_hash,
            context_hash=ctx_hash,
            options=_snapshot_options(payload),
            response=stored,
            response_kind=kind,
            timestamp=iso_now(),
            relative_timestamp=session.elapsed_ms(),
            global_sequence=sequence,
            test_context=session.context,
        )
        session.add_record(record)

        logger.info(
            "Recorded model call %s for %s (%s) hash:%s seq:%d",
            label_id,
            caller_id,
            call_kind,
            prompt_hash[:SHORT_HASH_LEN],
            sequence,
        )
        return response


def _snapshot_options(payload: dict[str, Any] | None) -> dict[str, Any]:
    """Copy the call options into plain JSON values.

    The caller may mutate its payload after the call returns, and some
    option values (callbacks, clients) are not serializable at all.
    """
    if not payload:
        return {}
    try:
        return json.loads(json.dumps(payload, default=str))
    except (TypeError, ValueError):
        return {key: repr(value) for key, value in payload.items()}
