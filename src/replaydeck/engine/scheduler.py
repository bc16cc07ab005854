"""Ordered playback — hand replayed responses back in recording order."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

from replaydeck.recording.envelope import decode_response
from replaydeck.recording.models import CallRecord

logger = logging.getLogger(__name__)


@dataclass(order=True)
class _Pending:
    sequence: int
    arrival: int
    record: CallRecord = field(compare=False)
    label_id: str = field(compare=False)
    future: asyncio.Future[Any] = field(compare=False)


class OrderedPlaybackScheduler:
    """Single-consumer queue that resolves lookups by global sequence.

    Concurrent ``replay`` calls submit the record they matched and await
    the returned future. One drain task services the queue, always
    resolving the pending entry with the smallest ``globalSequence``.
    The drain yields to the event loop before every dequeue so callers
    that were already runnable get to enqueue first; a late arrival with
    a smaller sequence number is therefore served ahead of larger ones.
    """

    def __init__(self) -> None:
        self._pending: list[_Pending] = []
        self._arrivals = itertools.count()
        self._draining = False
        self._drain_task: asyncio.Task[None] | None = None
        self._delivered = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def delivered_count(self) -> int:
        """Number of futures resolved with a response so far."""
        return self._delivered

    def submit(self, record: CallRecord, label_id: str) -> asyncio.Future[Any]:
        """Queue *record* for ordered delivery and return its future."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        heapq.heappush(
            self._pending,
            _Pending(record.sequence, next(self._arrivals), record, label_id, future),
        )
        if not self._draining:
            self._draining = True
            self._drain_task = loop.create_task(self._drain())
        return future

    async def _drain(self) -> None:
        try:
            while True:
                await asyncio.sleep(0)
                if not self._pending:
                    break
                entry = heapq.heappop(self._pending)
                self._resolve(entry)
        finally:
            self._draining = False
            self._drain_task = None

    def _resolve(self, entry: _Pending) -> None:
        if entry.future.done():
            return
        try:
            response = decode_response(entry.record)
        except Exception as exc:
            logger.error(
                "Ordered playback failed for %s (record %s): %s",
                entry.label_id,
                entry.record.id,
                exc,
            )
            entry.future.set_exception(exc)
            return
        logger.debug(
            "Ordered playback: %s -> %s (seq: %s)",
            entry.label_id,
            entry.record.id,
            entry.record.global_sequence,
        )
        self._delivered += 1
        entry.future.set_result(response)
