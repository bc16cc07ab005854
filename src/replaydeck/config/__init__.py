"""Configuration model and loader for replaydeck."""

from replaydeck.config.models import Mode, ReplayConfig
from replaydeck.config.parser import ConfigError, load_config

__all__ = [
    "ConfigError",
    "Mode",
    "ReplayConfig",
    "load_config",
]
