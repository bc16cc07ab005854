"""Call interceptor — the host-facing entry point for model call mocking."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

from replaydeck.config.models import Mode, ReplayConfig
from replaydeck.constants import LiveCall
from replaydeck.engine.recorder import RecordingEngine
from replaydeck.engine.replayer import ReplayEngine
from replaydeck.engine.session import NoTestContextError, ReplaySession
from replaydeck.engine.verifier import VerificationEngine
from replaydeck.recording.models import CallRecord, TestContext
from replaydeck.recording.store import RecordingStore

logger = logging.getLogger(__name__)


class CallInterceptor:
    """Routes every model call to record, playback, or verify handling.

    Typical host usage in a test fixture::

        interceptor = CallInterceptor(load_config())
        interceptor.set_test_context("HouseSuite", "lobby flow")
        use_model = interceptor.wrap("house", runtime.use_model)
        ...
        interceptor.save_recordings()

    The mode is fixed for the lifetime of the interceptor. All per-test
    state lives on the current ``ReplaySession``, replaced wholesale by
    ``set_test_context``.
    """

    def __init__(
        self,
        config: ReplayConfig | None = None,
        store: RecordingStore | None = None,
    ) -> None:
        self._config = config or ReplayConfig()
        self._store = store or RecordingStore(self._config.recordings_dir)
        self._session: ReplaySession | None = None
        self.recorder = RecordingEngine(self._config)
        self.replayer = ReplayEngine(self._config.fuzzy_threshold)
        self.verifier = VerificationEngine(
            self.replayer, self._config.verify_temperature
        )

    @property
    def mode(self) -> Mode:
        return self._config.mode

    @property
    def store(self) -> RecordingStore:
        return self._store

    @property
    def session(self) -> ReplaySession | None:
        return self._session

    # ------------------------------------------------------------------
    # Test lifecycle
    # ------------------------------------------------------------------

    def set_test_context(self, suite_name: str, test_name: str) -> ReplaySession:
        """Start a fresh session for a test.

        Playback and verify load the stored records. Record mode starts
        from an empty list so a re-recording never mixes with old calls.
        """
        context = TestContext(suite_name=suite_name, test_name=test_name)
        if self.mode == "record":
            records: list[CallRecord] = []
            logger.info(
                "Cleared existing recordings for clean re-recording: %s", test_name
            )
        else:
            records = self._store.load(suite_name, test_name)
        self._session = ReplaySession(context, records)
        return self._session

    def save_recordings(self) -> None:
        """Flush the current test's captured calls (record mode only)."""
        if self._session is None or self.mode != "record":
            return
        if not self._session.records:
            return
        ctx = self._session.context
        self._store.save(ctx.suite_name, ctx.test_name, self._session.records)

    def clear_current_recordings(self) -> None:
        """Forget calls captured so far in the current test."""
        if self._session is not None:
            self._session.clear()

    def get_response_stats(self) -> dict[str, int]:
        if self._session is None:
            return {"total_calls": 0, "total_responses": 0}
        return {
            "total_calls": self._session.total_calls,
            "total_responses": len(self._session.records),
        }

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def wrap(self, caller_id: str, live_call: LiveCall) -> LiveCall:
        """Return *live_call* routed through this interceptor for *caller_id*."""

        @functools.wraps(live_call)
        async def wrapped(call_kind: str, payload: dict[str, Any]) -> Any:
            return await self.intercept(caller_id, call_kind, payload, live_call)

        return wrapped

    def install(
        self,
        host: Any,
        caller_id: str,
        attribute: str = "use_model",
    ) -> Callable[[], None]:
        """Replace ``host.<attribute>`` with a wrapped version.

        Returns a zero-argument handle that restores the original.
        """
        original = getattr(host, attribute)
        setattr(host, attribute, self.wrap(caller_id, original))

        def uninstall() -> None:
            setattr(host, attribute, original)

        return uninstall

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def intercept(
        self,
        caller_id: str,
        call_kind: str,
        payload: dict[str, Any] | None,
        live_call: LiveCall,
    ) -> Any:
        payload = payload or {}
        session = self._session

        if session is None:
            if self.mode == "record":
                return await live_call(call_kind, payload)
            msg = f"No test context set for {self.mode} mode"
            raise NoTestContextError(msg)

        label_id = session.next_label(caller_id, call_kind)
        logger.debug(
            "Model call: %s -> %s (%s) [%s mode]",
            caller_id,
            call_kind,
            label_id,
            self.mode,
        )

        match self.mode:
            case "record":
                return await self.recorder.record(
                    session, label_id, caller_id, call_kind, payload, live_call
                )
            case "playback":
                return await self.replayer.replay(
                    session, label_id, caller_id, call_kind, payload
                )
            case "verify":
                return await self.verifier.verify(
                    session, label_id, caller_id, call_kind, payload, live_call
                )
            case _:
                msg = f"Unknown model mock mode: {self.mode}"
                raise ValueError(msg)
