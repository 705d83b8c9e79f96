"""Unit tests for TOML configuration loader."""

import tomllib
from pathlib import Path

import pytest

from herbtrace.config.loader import (
    deep_merge,
    get_config_dir,
    get_environment,
    load_config,
    load_toml,
)


class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_merge_nested_tables(self) -> None:
        """Nested tables are merged key by key."""
        base = {"qr": {"issuer": "GACP Thailand", "version": "2.0"}, "debug": False}
        override = {"qr": {"version": "3.0"}}
        result = deep_merge(base, override)
        assert result == {"qr": {"issuer": "GACP Thailand", "version": "3.0"}, "debug": False}

    def test_override_replaces_non_table(self) -> None:
        """Scalar overrides replace whole tables."""
        result = deep_merge({"audit": {"chain_hashes": False}}, {"audit": "off"})
        assert result == {"audit": "off"}

    def test_arguments_unmodified(self) -> None:
        """Neither input is mutated."""
        base = {"locking": {"timeout_seconds": 5.0}}
        override = {"locking": {"timeout_seconds": 1.0}}
        deep_merge(base, override)
        assert base == {"locking": {"timeout_seconds": 5.0}}
        assert override == {"locking": {"timeout_seconds": 1.0}}


class TestLoadToml:
    """Tests for load_toml function."""

    def test_load_valid_toml(self, tmp_path: Path) -> None:
        """Valid TOML file is parsed."""
        toml_file = tmp_path / "test.toml"
        toml_file.write_text('[compliance]\nthreshold = 70\ndefault_rule_sets = ["GACP"]')

        assert load_toml(toml_file) == {
            "compliance": {"threshold": 70, "default_rule_sets": ["GACP"]}
        }

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_toml(tmp_path / "nonexistent.toml")

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        """Invalid TOML syntax raises a decode error."""
        invalid = tmp_path / "invalid.toml"
        invalid.write_text("[broken\nkey = ")
        with pytest.raises(tomllib.TOMLDecodeError):
            load_toml(invalid)


class TestEnvironmentLookup:
    """Tests for config directory and environment resolution."""

    def test_config_dir_from_env(self, test_config_dir, env_override) -> None:
        """HERBTRACE_CONFIG_DIR wins when set."""
        with env_override({"HERBTRACE_CONFIG_DIR": str(test_config_dir)}):
            assert get_config_dir() == test_config_dir

    def test_config_dir_from_env_must_exist(self, tmp_path, env_override) -> None:
        """A config dir override that does not exist is an error."""
        with env_override({"HERBTRACE_CONFIG_DIR": str(tmp_path / "nowhere")}):
            with pytest.raises(FileNotFoundError):
                get_config_dir()

    def test_environment_default(self, monkeypatch) -> None:
        """Environment defaults to development."""
        monkeypatch.delenv("HERBTRACE_ENV", raising=False)
        assert get_environment() == "development"

    def test_environment_from_env(self, env_override) -> None:
        """HERBTRACE_ENV selects the environment."""
        with env_override({"HERBTRACE_ENV": "production"}):
            assert get_environment() == "production"


class TestLoadConfig:
    """Tests for load_config function."""

    def test_environment_file_overrides_default(self, test_config_dir, mock_toml_files) -> None:
        """Environment file values override default.toml."""
        mock_toml_files({
            "default.toml": "[audit]\nchain_hashes = false\nverification_history_size = 10",
            "staging.toml": "[audit]\nchain_hashes = true",
        })

        config = load_config(config_dir=test_config_dir, env="staging")
        assert config["audit"] == {"chain_hashes": True, "verification_history_size": 10}

    def test_missing_environment_file_is_ignored(self, test_config_dir, mock_toml_files) -> None:
        """Only default.toml is used when no environment file exists."""
        mock_toml_files({"default.toml": 'app_name = "herbtrace-test"'})

        config = load_config(config_dir=test_config_dir, env="production")
        assert config == {"app_name": "herbtrace-test"}

    def test_missing_default_yields_empty(self, test_config_dir) -> None:
        """An empty config directory gives an empty configuration."""
        assert load_config(config_dir=test_config_dir, env="development") == {}
