"""Record, playback and verify engines plus the host-facing interceptor."""

from replaydeck.engine.interceptor import CallInterceptor
from replaydeck.engine.recorder import RecordingEngine
from replaydeck.engine.replayer import Candidate, ReplayEngine, ReplayMiss
from replaydeck.engine.scheduler import OrderedPlaybackScheduler
from replaydeck.engine.session import NoTestContextError, ReplaySession
from replaydeck.engine.verifier import VerificationEngine

__all__ = [
    "CallInterceptor",
    "Candidate",
    "NoTestContextError",
    "OrderedPlaybackScheduler",
    "RecordingEngine",
    "ReplayEngine",
    "ReplayMiss",
    "ReplaySession",
    "VerificationEngine",
]
