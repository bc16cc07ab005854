"""ReplaySession — all mutable state of one test context."""

from __future__ import annotations

import time
from collections import Counter

from replaydeck.engine.scheduler import OrderedPlaybackScheduler
from replaydeck.recording.models import CallRecord, TestContext


class NoTestContextError(RuntimeError):
    """Raised when a replayed call arrives before any test context is set."""


class ReplaySession:
    """State owned by one (suite, test) run.

    Holds the records in play, per caller/kind counters used for label
    ids, the set of records already consumed by a lookup, sequential
    fallback cursors, the capture sequence counter and the playback
    scheduler. A new session is built for every test; nothing here is
    shared between tests.
    """

    def __init__(self, context: TestContext, records: list[CallRecord]) -> None:
        self.context = context
        self.records: list[CallRecord] = list(records)
        self.scheduler = OrderedPlaybackScheduler()
        self._call_counters: Counter[tuple[str, str]] = Counter()
        self._claimed: set[str] = set()
        self._cursors: Counter[tuple[str, str]] = Counter()
        self._global_sequence = 0
        self._started_ns = time.monotonic_ns()

    # ------------------------------------------------------------------
    # Labels and capture bookkeeping
    # ------------------------------------------------------------------

    def next_label(self, caller_id: str, call_kind: str) -> str:
        """Return the label id of the next call for this caller and kind."""
        key = (caller_id, call_kind)
        self._call_counters[key] += 1
        return f"{caller_id}-{call_kind}-call-{self._call_counters[key]}"

    def next_sequence(self) -> int:
        self._global_sequence += 1
        return self._global_sequence

    @property
    def current_sequence(self) -> int:
        return self._global_sequence

    def elapsed_ms(self) -> int:
        return int((time.monotonic_ns() - self._started_ns) / 1_000_000)

    def add_record(self, record: CallRecord) -> None:
        self.records.append(record)

    @property
    def total_calls(self) -> int:
        return sum(self._call_counters.values())

    def clear(self) -> None:
        """Drop captured records and call counters."""
        self.records.clear()
        self._call_counters.clear()

    # ------------------------------------------------------------------
    # Claim tracking
    # ------------------------------------------------------------------

    def records_for(self, caller_id: str, call_kind: str) -> list[CallRecord]:
        """Records for a caller/kind pair in global sequence order."""
        matching = [
            r
            for r in self.records
            if r.caller_id == caller_id and r.call_kind == call_kind
        ]
        return sorted(matching, key=lambda r: r.sequence)

    def is_claimed(self, record: CallRecord) -> bool:
        return record.id in self._claimed

    def claim(self, record: CallRecord) -> None:
        if record.id in self._claimed:
            msg = f"Record {record.id} was already consumed in this test run"
            raise RuntimeError(msg)
        self._claimed.add(record.id)

    @property
    def claimed_count(self) -> int:
        return len(self._claimed)

    def cursor(self, caller_id: str, call_kind: str) -> int:
        return self._cursors[(caller_id, call_kind)]

    def advance_cursor(self, caller_id: str, call_kind: str, position: int) -> None:
        self._cursors[(caller_id, call_kind)] = position
