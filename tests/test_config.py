"""Tests for configuration validation."""

import pytest
import yaml

from lot_ledger.config.validator import (
    ConfigValidationError,
    ConfigValidator,
    load_and_validate_config,
    validate_config,
)


@pytest.fixture
def validator():
    return ConfigValidator()


@pytest.fixture
def config_file(tmp_path):
    """Write a settings file and return its path."""
    def _write(config):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump(config))
        return str(path)
    return _write


class TestConfigValidator:
    """Tests for schema validation."""

    def test_empty_config_is_valid(self, validator):
        assert validator.validate({}).valid is True

    def test_full_config_is_valid(self, validator):
        config = {
            "ledger": {"strategy": "hifo", "on_error": "abort"},
            "output": {"price_decimals": 4, "quantity_decimals": 8},
            "logging": {"level": "DEBUG", "file": "logs/ledger.log", "json_format": True},
        }
        result = validator.validate(config)

        assert result
        assert result.errors == []
        assert result.warnings == []

    def test_unknown_strategy(self, validator):
        result = validator.validate({"ledger": {"strategy": "lifo"}})

        assert not result
        assert any("ledger.strategy" in e for e in result.errors)

    def test_choices_are_case_insensitive(self, validator):
        result = validator.validate({"ledger": {"strategy": "HIFO"}, "logging": {"level": "debug"}})
        assert result.valid

    def test_wrong_type(self, validator):
        result = validator.validate({"output": {"price_decimals": "two"}})

        assert result.errors == ["output.price_decimals: Expected int, got str"]

    def test_bool_not_accepted_as_int(self, validator):
        result = validator.validate({"output": {"price_decimals": True}})
        assert not result.valid

    def test_range(self, validator):
        result = validator.validate({"output": {"price_decimals": -1, "quantity_decimals": 30}})

        assert len(result.errors) == 2
        assert "below minimum" in result.errors[0]
        assert "exceeds maximum" in result.errors[1]

    def test_section_must_be_mapping(self, validator):
        result = validator.validate({"ledger": "fifo"})
        assert result.errors == ["ledger: Expected a section, got str"]

    def test_top_level_must_be_mapping(self, validator):
        assert not validator.validate(["fifo"]).valid

    def test_unknown_keys_warn(self, validator):
        result = validator.validate({"ledger": {"strategy": "fifo", "symbol": "BTC"}, "extra": 1})

        assert result.valid
        assert "ledger.symbol: Unknown setting, ignored" in result.warnings
        assert "extra: Unknown setting, ignored" in result.warnings

    def test_low_quantity_precision_warns(self, validator):
        result = validator.validate({"output": {"quantity_decimals": 4}})

        assert result.valid
        assert any("quantity_decimals" in w for w in result.warnings)

    def test_env_var_fallback(self, validator, monkeypatch):
        monkeypatch.setenv("LOT_LEDGER_STRATEGY", "bogus")
        assert not validator.validate({}).valid

    def test_apply_defaults(self, validator):
        settings = validator.apply_defaults({"ledger": {"strategy": "HIFO"}})

        assert settings == {
            "ledger": {"strategy": "hifo", "on_error": "skip"},
            "output": {"price_decimals": 2, "quantity_decimals": 8},
            "logging": {"level": "WARNING", "file": None, "json_format": False},
        }

    def test_apply_defaults_uses_env(self, validator, monkeypatch):
        monkeypatch.setenv("LOT_LEDGER_STRATEGY", "HIFO")
        assert validator.apply_defaults({})["ledger"]["strategy"] == "hifo"

    def test_apply_defaults_config_beats_env(self, validator, monkeypatch):
        monkeypatch.setenv("LOT_LEDGER_STRATEGY", "hifo")
        settings = validator.apply_defaults({"ledger": {"strategy": "fifo"}})
        assert settings["ledger"]["strategy"] == "fifo"


class TestLoadConfig:
    """Tests for loading settings files."""

    def test_validate_config_file(self, config_file):
        assert validate_config(config_file({"ledger": {"strategy": "hifo"}})).valid

    def test_validate_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            validate_config(str(tmp_path / "missing.yaml"))

    def test_load_applies_defaults(self, config_file):
        settings = load_and_validate_config(config_file({"logging": {"level": "info"}}))

        assert settings["logging"]["level"] == "INFO"
        assert settings["ledger"]["strategy"] == "fifo"

    def test_load_invalid_raises(self, config_file):
        with pytest.raises(ConfigValidationError) as exc_info:
            load_and_validate_config(config_file({"ledger": {"on_error": "retry"}}))

        assert exc_info.value.errors == ["ledger.on_error: Value must be one of ['skip', 'abort']"]

    def test_load_missing_required(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_and_validate_config(str(tmp_path / "missing.yaml"))

    def test_load_missing_optional_uses_defaults(self, tmp_path):
        settings = load_and_validate_config(str(tmp_path / "missing.yaml"), required=False)
        assert settings["output"]["quantity_decimals"] == 8

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")

        settings = load_and_validate_config(str(path))

        assert settings["ledger"]["on_error"] == "skip"
