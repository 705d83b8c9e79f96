"""Unit tests for Settings and get_settings."""

import pytest
from pydantic import ValidationError

from herbtrace.compliance.models import COMPLIANCE_THRESHOLD
from herbtrace.config import get_settings, reload_settings
from herbtrace.config.models.compliance import ComplianceConfig
from herbtrace.config.models.tracking import LockingConfig, QRConfig
from herbtrace.entities.enums import EntityKind
from herbtrace.events.enums import EventType


class TestSettingsDefaults:
    """Model defaults apply when no configuration is present."""

    def test_defaults_without_files(self, test_config_dir, env_override) -> None:
        """Empty config dir falls back to model defaults."""
        with env_override({"HERBTRACE_CONFIG_DIR": str(test_config_dir)}):
            settings = get_settings()

        assert settings.app_name == "herbtrace"
        assert settings.locking.timeout_seconds == 5.0
        assert settings.audit.chain_hashes is False
        assert settings.compliance.threshold == COMPLIANCE_THRESHOLD
        assert settings.compliance.default_rule_sets == ["GACP", "WHO", "FDA"]
        assert settings.qr.allow_multiple_active is False


class TestSettingsSources:
    """TOML files and environment variables feed the settings."""

    def test_toml_values_loaded(self, test_config_dir, mock_toml_files, env_override) -> None:
        """Values from default.toml reach the settings."""
        mock_toml_files({
            "default.toml": (
                "[audit]\nchain_hashes = true\n\n"
                "[qr]\nissuer = \"Test Authority\"\nttl_days = 30\n"
            ),
        })
        with env_override({
            "HERBTRACE_CONFIG_DIR": str(test_config_dir),
            "HERBTRACE_ENV": "test",
        }):
            settings = get_settings()

        assert settings.audit.chain_hashes is True
        assert settings.qr.issuer == "Test Authority"
        assert settings.qr.ttl_days == 30

    def test_env_overrides_toml(self, test_config_dir, mock_toml_files, env_override) -> None:
        """HERBTRACE_* variables beat TOML values."""
        mock_toml_files({"default.toml": "[locking]\ntimeout_seconds = 5.0\n"})
        with env_override({
            "HERBTRACE_CONFIG_DIR": str(test_config_dir),
            "HERBTRACE_LOCKING__TIMEOUT_SECONDS": "0.5",
        }):
            settings = get_settings()

        assert settings.locking.timeout_seconds == 0.5

    def test_custom_rule_set_from_toml(
        self, test_config_dir, mock_toml_files, env_override
    ) -> None:
        """Extra rule sets can be declared in configuration."""
        mock_toml_files({
            "default.toml": (
                "[compliance.rule_sets.ORGANIC]\n"
                "name = \"ORGANIC\"\n"
                "description = \"Organic certification\"\n"
                "event_penalty = 20\n"
                "[compliance.rule_sets.ORGANIC.required_events]\n"
                "lot = [\"quality_approved\"]\n"
            ),
        })
        with env_override({"HERBTRACE_CONFIG_DIR": str(test_config_dir)}):
            settings = get_settings()

        organic = settings.compliance.rule_sets["ORGANIC"]
        assert organic.event_penalty == 20
        assert organic.required_events[EntityKind.LOT] == [EventType.QUALITY_APPROVED]

    def test_reload_picks_up_changes(self, test_config_dir, mock_toml_files, env_override) -> None:
        """reload_settings clears the cache."""
        mock_toml_files({"default.toml": 'app_name = "first"'})
        with env_override({"HERBTRACE_CONFIG_DIR": str(test_config_dir)}):
            assert get_settings().app_name == "first"
            mock_toml_files({"default.toml": 'app_name = "second"'})
            assert get_settings().app_name == "first"
            assert reload_settings().app_name == "second"


class TestConfigValidation:
    """Invalid values are rejected by the config models."""

    def test_lock_timeout_must_be_positive(self) -> None:
        """Zero timeout is invalid."""
        with pytest.raises(ValidationError):
            LockingConfig(timeout_seconds=0)

    def test_threshold_bounded(self) -> None:
        """Threshold must stay within 0..100."""
        with pytest.raises(ValidationError):
            ComplianceConfig(threshold=101)

    def test_qr_ttl_positive(self) -> None:
        """Expiry must be at least one day when set."""
        with pytest.raises(ValidationError):
            QRConfig(ttl_days=0)
