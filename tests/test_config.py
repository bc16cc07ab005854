"""Tests for replaydeck config models and parser."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from replaydeck.config.models import ReplayConfig
from replaydeck.config.parser import (
    ENV_RECORD_MODE,
    ENV_VERIFY_MODE,
    ConfigError,
    load_config,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict[str, Any]) -> Path:
    """Write *data* as YAML and return the file path."""
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


# ===================================================================
# Model validation tests
# ===================================================================


class TestReplayConfig:
    def test_defaults(self) -> None:
        cfg = ReplayConfig()
        assert cfg.mode == "playback"
        assert cfg.recordings_dir == Path("recordings")
        assert cfg.record_tests is None
        assert cfg.verify_temperature == 1.0
        assert cfg.fuzzy_threshold == 0.8

    def test_unknown_mode_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReplayConfig.model_validate({"mode": "rewind"})

    def test_threshold_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ReplayConfig(fuzzy_threshold=1.5)
        with pytest.raises(ValidationError):
            ReplayConfig(verify_temperature=-0.1)

    def test_blank_record_tests_collapse_to_none(self) -> None:
        assert ReplayConfig(record_tests=["", "  "]).record_tests is None
        assert ReplayConfig(record_tests=[" lobby "]).record_tests == ["lobby"]


class TestShouldRecord:
    def test_no_allow_list_records_everything(self) -> None:
        assert ReplayConfig().should_record("AnySuite", "any test")

    def test_matches_test_or_suite_fragment(self) -> None:
        cfg = ReplayConfig(record_tests=["lobby", "Diary"])
        assert cfg.should_record("HouseSuite", "lobby flow")
        assert cfg.should_record("DiarySuite", "confession")
        assert not cfg.should_record("HouseSuite", "eviction")


# ===================================================================
# Parser tests
# ===================================================================


class TestLoadConfig:
    def test_no_file_gives_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        cfg = load_config(environ={})
        assert cfg == ReplayConfig()

    def test_default_file_in_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_yaml(
            tmp_path / "replaydeck.yaml",
            {"mode": "verify", "recordings_dir": "fixtures/calls"},
        )
        monkeypatch.chdir(tmp_path)
        cfg = load_config(environ={})
        assert cfg.mode == "verify"
        assert cfg.recordings_dir == Path("fixtures/calls")

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "custom.yaml", {"fuzzy_threshold": 0.9})
        assert load_config(path, environ={}).fuzzy_threshold == 0.9

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path, environ={}) == ReplayConfig()

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(tmp_path / "nope.yaml", environ={})

    def test_bad_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("mode: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML in bad.yaml"):
            load_config(path, environ={})

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(path, environ={})

    def test_unknown_setting(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "extra.yaml", {"speed": "fast"})
        with pytest.raises(ConfigError, match="speed: Unknown setting"):
            load_config(path, environ={})

    def test_invalid_mode_message(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "mode.yaml", {"mode": "rewind"})
        with pytest.raises(
            ConfigError,
            match="mode: Invalid value 'rewind', expected one of record, playback, verify",
        ):
            load_config(path, environ={})

    def test_unknown_setting_lists_known_ones(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "extra.yaml", {"threshold": 0.5})
        with pytest.raises(ConfigError) as exc_info:
            load_config(path, environ={})
        assert "threshold: Unknown setting" in str(exc_info.value)
        assert "fuzzy_threshold" in str(exc_info.value)

    def test_out_of_range_threshold_message(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "t.yaml", {"fuzzy_threshold": 1.5})
        with pytest.raises(ConfigError, match=r"expected a number between 0\.0 and 1\.0"):
            load_config(path, environ={})

    def test_record_tests_comma_string(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "c.yaml", {"record_tests": "lobby, diary room"})
        assert load_config(path, environ={}).record_tests == ["lobby", "diary room"]


class TestEnvOverrides:
    def test_record_mode(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "c.yaml", {"mode": "playback"})
        cfg = load_config(path, environ={ENV_RECORD_MODE: "true"})
        assert cfg.mode == "record"

    def test_verify_mode(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "c.yaml", {})
        assert load_config(path, environ={ENV_VERIFY_MODE: "TRUE"}).mode == "verify"

    def test_record_wins_over_verify(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "c.yaml", {})
        env = {ENV_RECORD_MODE: "true", ENV_VERIFY_MODE: "true"}
        assert load_config(path, environ=env).mode == "record"

    def test_non_true_values_ignored(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "c.yaml", {"mode": "verify"})
        assert load_config(path, environ={ENV_RECORD_MODE: "1"}).mode == "verify"

    def test_recordings_dir_and_allow_list(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "c.yaml", {"recordings_dir": "a"})
        env = {
            "MODEL_RECORDINGS_DIR": "b/calls",
            "MODEL_RECORD_TESTS": "lobby flow, eviction ,",
        }
        cfg = load_config(path, environ=env)
        assert cfg.recordings_dir == Path("b/calls")
        assert cfg.record_tests == ["lobby flow", "eviction"]

    def test_dotenv_next_to_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Register both variables for restoration before .env loads them.
        for name in (ENV_RECORD_MODE, ENV_VERIFY_MODE):
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        path = _write_yaml(tmp_path / "replaydeck.yaml", {})
        (tmp_path / ".env").write_text(f"{ENV_RECORD_MODE}=true\n", encoding="utf-8")

        assert load_config(path).mode == "record"

    def test_dotenv_in_cwd_without_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for name in (ENV_RECORD_MODE, ENV_VERIFY_MODE):
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        (tmp_path / ".env").write_text(f"{ENV_VERIFY_MODE}=true\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        assert load_config().mode == "verify"
