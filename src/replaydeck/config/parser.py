"""Load, validate, and resolve replaydeck configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from replaydeck.config.models import ReplayConfig

DEFAULT_CONFIG_NAME = "replaydeck.yaml"

#: Environment variables recognised as overrides.
ENV_RECORD_MODE = "MODEL_RECORD_MODE"
ENV_VERIFY_MODE = "MODEL_VERIFY_MODE"
ENV_RECORDINGS_DIR = "MODEL_RECORDINGS_DIR"
ENV_RECORD_TESTS = "MODEL_RECORD_TESTS"

#: Per-setting guidance appended to validation errors.
_FIELD_HINTS = {
    "mode": "expected one of record, playback, verify",
    "recordings_dir": "expected a directory path",
    "record_tests": "expected a list (or comma-separated string) of name fragments",
    "verify_temperature": "expected a number >= 0",
    "fuzzy_threshold": "expected a number between 0.0 and 1.0",
}


class ConfigError(Exception):
    """User-facing configuration error."""


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ReplayConfig:
    """Load and validate replaydeck configuration.

    Settings come from the YAML file, then the ``MODEL_*`` environment
    variables override them. A ``.env`` file next to the config file (or
    in the current directory when there is none) is loaded into the
    process environment first, without replacing variables already set.

    Args:
        path: Explicit config file path. If None, uses replaydeck.yaml in
              the current directory when present, otherwise defaults.
        environ: Environment mapping for overrides. Defaults to os.environ.

    Returns:
        A validated ReplayConfig instance.

    Raises:
        ConfigError: On missing explicit file, bad YAML, or validation failure.
    """
    config_path = _resolve_path(path)
    raw: dict[str, Any] = {}
    if config_path is not None:
        raw = _read_yaml(config_path)
    _load_env(config_path.parent if config_path is not None else Path.cwd())
    env = os.environ if environ is None else environ
    _apply_env_overrides(raw, env)
    return _validate(raw)


def _resolve_path(path: Path | None) -> Path | None:
    if path is not None:
        resolved = Path(path)
        if not resolved.is_file():
            msg = f"Config file not found: {resolved}"
            raise ConfigError(msg)
        return resolved

    default = Path.cwd() / DEFAULT_CONFIG_NAME
    if default.is_file():
        return default
    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read config file: {exc}"
        raise ConfigError(msg) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        detail = ""
        if hasattr(exc, "problem_mark") and exc.problem_mark is not None:
            mark = exc.problem_mark
            detail = f" (line {mark.line + 1}, column {mark.column + 1})"
        msg = f"Invalid YAML in {path.name}{detail}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {path.name}, got {type(data).__name__}"
        raise ConfigError(msg)

    return data


def _load_env(config_dir: Path) -> None:
    env_path = config_dir / ".env"
    if env_path.is_file():
        load_dotenv(env_path)


def _apply_env_overrides(raw: dict[str, Any], env: Mapping[str, str]) -> None:
    # Record wins over verify when both flags are set.
    if env.get(ENV_RECORD_MODE, "").lower() == "true":
        raw["mode"] = "record"
    elif env.get(ENV_VERIFY_MODE, "").lower() == "true":
        raw["mode"] = "verify"

    recordings_dir = env.get(ENV_RECORDINGS_DIR)
    if recordings_dir:
        raw["recordings_dir"] = recordings_dir

    record_tests = env.get(ENV_RECORD_TESTS)
    if record_tests:
        raw["record_tests"] = record_tests


def _validate(raw: dict[str, Any]) -> ReplayConfig:
    try:
        return ReplayConfig.model_validate(raw)
    except ValidationError as exc:
        parts = [_describe_error(err) for err in exc.errors()]
        joined = "\n".join(parts)
        msg = f"Config validation failed:\n{joined}"
        raise ConfigError(msg) from exc


def _describe_error(err: Mapping[str, Any]) -> str:
    loc = " → ".join(str(s) for s in err["loc"])
    field = str(err["loc"][0]) if err["loc"] else ""
    if err["type"] == "extra_forbidden":
        known = ", ".join(ReplayConfig.model_fields)
        return f"  {loc}: Unknown setting (known settings: {known})"
    hint = _FIELD_HINTS.get(field)
    if hint is not None:
        return f"  {loc}: Invalid value {err.get('input')!r}, {hint}"
    return f"  {loc}: {err['msg']}"
