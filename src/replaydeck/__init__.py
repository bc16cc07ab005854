"""replaydeck — deterministic record/replay of model calls for multi-agent tests."""

__version__ = "0.3.0"
