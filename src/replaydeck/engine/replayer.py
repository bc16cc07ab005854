"""Replay engine — tiered matching of live lookups against recorded calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from replaydeck.constants import PREVIEW_LEN, SHORT_HASH_LEN
from replaydeck.engine.session import ReplaySession
from replaydeck.recording.hashing import extract_prompt, hash_content, prompt_similarity
from replaydeck.recording.models import CallRecord

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """A recorded call listed in miss diagnostics."""

    label_id: str
    prompt_hash: str
    prompt_preview: str
    global_sequence: int | None
    claimed: bool


class ReplayMiss(Exception):
    """No recorded call matches a lookup.

    Always fatal to the calling test: silently answering with something
    else would break determinism. Carries enough detail to tell whether
    the prompt drifted, the call order changed, or the recording is stale.
    """

    def __init__(
        self,
        caller_id: str,
        call_kind: str,
        prompt_hash: str,
        prompt_preview: str,
        requested_call: int,
        candidates: list[Candidate],
        other_kinds: list[str],
    ) -> None:
        self.caller_id = caller_id
        self.call_kind = call_kind
        self.prompt_hash = prompt_hash
        self.prompt_preview = prompt_preview
        self.requested_call = requested_call
        self.candidates = candidates
        self.other_kinds = other_kinds
        super().__init__(self._format())

    @property
    def available(self) -> int:
        """Number of records stored for the requested caller/kind pair."""
        return len(self.candidates)

    @property
    def remaining(self) -> int:
        """Number of those records not yet consumed."""
        return sum(1 for c in self.candidates if not c.claimed)

    def _format(self) -> str:
        lines = [
            f"PLAYBACK MISMATCH for {self.caller_id}:{self.call_kind}",
            f"Expected call: {self.requested_call}, Available: {self.available}"
            f" ({self.remaining} unconsumed)",
            f"Current prompt hash: {self.prompt_hash[:SHORT_HASH_LEN]}",
            f"Current prompt: {self.prompt_preview}...",
            "",
            f"Available recordings for {self.caller_id}:{self.call_kind}:",
        ]
        for index, c in enumerate(self.candidates, start=1):
            used = " (used)" if c.claimed else ""
            lines.append(
                f"  {index}: {c.label_id} hash:{c.prompt_hash[:SHORT_HASH_LEN] or 'N/A'}"
                f'{used} "{c.prompt_preview}..."'
            )
        kinds = ", ".join(self.other_kinds) or "none"
        lines += [
            "",
            f"All call kinds for {self.caller_id}: {kinds}",
            "",
            "Solutions:",
            "  - Run with MODEL_RECORD_MODE=true to re-record",
            "  - Check for race conditions in agent processing order",
            "  - Verify test determinism (same inputs = same model calls)",
            "  - Check if prompt content changed between recording and playback",
        ]
        return "\n".join(lines)


class ReplayEngine:
    """Finds the recorded call that answers a lookup and queues it.

    Matching runs three tiers, first hit wins:

    1. exact prompt fingerprint among unconsumed records of the pair;
    2. best token-Jaccard similarity at or above ``fuzzy_threshold``;
    3. the next unconsumed record of the pair in global sequence order.

    The winning record is consumed before the first suspension point,
    so two concurrent lookups can never receive the same record. Its
    response is delivered through the session's ordered scheduler.
    """

    def __init__(self, fuzzy_threshold: float = 0.8) -> None:
        self._fuzzy_threshold = fuzzy_threshold

    async def replay(
        self,
        session: ReplaySession,
        label_id: str,
        caller_id: str,
        call_kind: str,
        payload: dict[str, Any],
    ) -> Any:
        try:
            record = self.match(session, caller_id, call_kind, payload)
        except ReplayMiss as miss:
            logger.error("%s", miss)
            raise
        return await self.deliver(session, record, label_id)

    async def deliver(
        self, session: ReplaySession, record: CallRecord, label_id: str
    ) -> Any:
        """Consume *record* and await its response in sequence order."""
        session.claim(record)
        return await session.scheduler.submit(record, label_id)

    def match(
        self,
        session: ReplaySession,
        caller_id: str,
        call_kind: str,
        payload: dict[str, Any],
    ) -> CallRecord:
        """Pick the record for a lookup without consuming it.

        Raises:
            ReplayMiss: If no tier produces an unconsumed record.
        """
        prompt = extract_prompt(payload)
        prompt_hash = hash_content(prompt)
        pair_records = session.records_for(caller_id, call_kind)
        unclaimed = [r for r in pair_records if not session.is_claimed(r)]

        record = _exact_match(unclaimed, prompt_hash)
        if record is not None:
            logger.info(
                "Content match: %s for %s (%s) hash:%s",
                record.id,
                caller_id,
                call_kind,
                prompt_hash[:SHORT_HASH_LEN],
            )
            return record

        record, score = self._fuzzy_match(unclaimed, prompt)
        if record is not None:
            logger.info(
                "Fuzzy match: %s for %s (%s) similarity %.2f",
                record.id,
                caller_id,
                call_kind,
                score,
            )
            return record

        record = self._sequential_match(session, pair_records, caller_id, call_kind)
        if record is not None:
            logger.info(
                "Sequential fallback: %s for %s (%s) (seq: %s)",
                record.id,
                caller_id,
                call_kind,
                record.global_sequence,
            )
            return record

        raise self._miss(
            session, pair_records, caller_id, call_kind, prompt, prompt_hash
        )

    def _fuzzy_match(
        self, unclaimed: list[CallRecord], prompt: str
    ) -> tuple[CallRecord | None, float]:
        best: CallRecord | None = None
        best_score = 0.0
        # Candidates arrive in sequence order; strict > keeps the earliest on ties.
        for record in unclaimed:
            score = prompt_similarity(prompt, record.prompt)
            if score >= self._fuzzy_threshold and score > best_score:
                best, best_score = record, score
        return best, best_score

    def _sequential_match(
        self,
        session: ReplaySession,
        pair_records: list[CallRecord],
        caller_id: str,
        call_kind: str,
    ) -> CallRecord | None:
        position = session.cursor(caller_id, call_kind)
        while position < len(pair_records):
            record = pair_records[position]
            position += 1
            if not session.is_claimed(record):
                session.advance_cursor(caller_id, call_kind, position)
                return record
        session.advance_cursor(caller_id, call_kind, position)
        return None

    def _miss(
        self,
        session: ReplaySession,
        pair_records: list[CallRecord],
        caller_id: str,
        call_kind: str,
        prompt: str,
        prompt_hash: str,
    ) -> ReplayMiss:
        candidates = [
            Candidate(
                label_id=r.id,
                prompt_hash=r.prompt_hash,
                prompt_preview=r.prompt[:PREVIEW_LEN],
                global_sequence=r.global_sequence,
                claimed=session.is_claimed(r),
            )
            for r in pair_records
        ]
        other_kinds = sorted(
            {r.call_kind for r in session.records if r.caller_id == caller_id}
        )
        return ReplayMiss(
            caller_id=caller_id,
            call_kind=call_kind,
            prompt_hash=prompt_hash,
            prompt_preview=prompt[:PREVIEW_LEN],
            requested_call=session.cursor(caller_id, call_kind) + 1,
            candidates=candidates,
            other_kinds=other_kinds,
        )


def _exact_match(unclaimed: list[CallRecord], prompt_hash: str) -> CallRecord | None:
    # Sequence order means the first hit is the lowest unconsumed sequence.
    for record in unclaimed:
        if record.prompt_hash == prompt_hash:
            return record
    return None
