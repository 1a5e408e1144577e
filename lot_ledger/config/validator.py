"""Configuration validation for the lot ledger."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {'; '.join(errors)}")


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


# Configuration schema with validation rules
CONFIG_SCHEMA = {
    "ledger": {
        "strategy": {
            "type": str,
            "required": False,
            "default": "fifo",
            "choices": ["fifo", "hifo"],
            "case": "lower",
            "env_var": "LOT_LEDGER_STRATEGY",
        },
        "on_error": {"type": str, "required": False, "default": "skip", "choices": ["skip", "abort"], "case": "lower"},
    },
    "output": {
        "price_decimals": {"type": int, "required": False, "default": 2, "min": 0, "max": 12},
        "quantity_decimals": {"type": int, "required": False, "default": 8, "min": 0, "max": 18},
    },
    "logging": {
        "level": {"type": str, "required": False, "default": "WARNING", "choices": ["DEBUG", "INFO", "WARNING", "ERROR"], "case": "upper"},
        "file": {"type": str, "required": False, "default": None},
        "json_format": {"type": bool, "required": False, "default": False},
    },
}


def _normalize_case(value: Any, rules: dict) -> Any:
    """Fold case for fields whose choices are case-insensitive."""
    if not isinstance(value, str):
        return value
    if rules.get("case") == "lower":
        return value.lower()
    if rules.get("case") == "upper":
        return value.upper()
    return value


class ConfigValidator:
    """Validates lot ledger configuration."""

    def __init__(self, schema: Optional[dict] = None):
        self.schema = schema or CONFIG_SCHEMA

    def validate(self, config: dict) -> ValidationResult:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[str] = []
        warnings: list[str] = []

        if config is not None and not isinstance(config, dict):
            return ValidationResult(
                valid=False,
                errors=[f"Expected a mapping at the top level, got {type(config).__name__}"],
            )

        self._validate_section(config, self.schema, "", errors, warnings)
        self._check_unknown_keys(config, self.schema, "", warnings)
        self._validate_cross_fields(config or {}, errors, warnings)

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    def _validate_section(
        self,
        config: dict,
        schema: dict,
        path: str,
        errors: list,
        warnings: list,
    ) -> None:
        """Recursively validate a configuration section."""
        for key, rules in schema.items():
            full_path = f"{path}.{key}" if path else key
            value = config.get(key) if config else None

            # Nested section
            if isinstance(rules, dict) and "type" not in rules:
                section = config.get(key) if config else None
                if section is not None and not isinstance(section, dict):
                    errors.append(f"{full_path}: Expected a section, got {type(section).__name__}")
                    continue
                self._validate_section(section or {}, rules, full_path, errors, warnings)
                continue

            self._validate_field(full_path, value, rules, errors, warnings)

    def _validate_field(
        self,
        path: str,
        value: Any,
        rules: dict,
        errors: list,
        warnings: list,
    ) -> None:
        """Validate a single field against its rules."""
        # Environment variable fallback
        if value is None or value == "":
            env_var = rules.get("env_var")
            if env_var:
                value = os.getenv(env_var)

        if rules.get("required") and (value is None or value == ""):
            errors.append(f"{path}: Required field is missing")
            return

        if value is None:
            return

        expected_type = rules.get("type")
        if expected_type:
            # bool is an int subclass; keep it out of numeric fields
            if expected_type in (int, float) and isinstance(value, bool):
                errors.append(f"{path}: Expected {expected_type.__name__}, got bool")
                return
            if expected_type == float and isinstance(value, int):
                value = float(value)
            elif not isinstance(value, expected_type):
                errors.append(
                    f"{path}: Expected {expected_type.__name__}, got {type(value).__name__}"
                )
                return

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if "min" in rules and value < rules["min"]:
                errors.append(f"{path}: Value {value} is below minimum {rules['min']}")
            if "max" in rules and value > rules["max"]:
                errors.append(f"{path}: Value {value} exceeds maximum {rules['max']}")

        if "choices" in rules and _normalize_case(value, rules) not in rules["choices"]:
            errors.append(f"{path}: Value must be one of {rules['choices']}")

    def _check_unknown_keys(
        self,
        config: Optional[dict],
        schema: dict,
        path: str,
        warnings: list,
    ) -> None:
        """Warn about keys the schema does not know."""
        if not isinstance(config, dict):
            return
        for key, value in config.items():
            full_path = f"{path}.{key}" if path else key
            if key not in schema:
                warnings.append(f"{full_path}: Unknown setting, ignored")
                continue
            rules = schema[key]
            if isinstance(rules, dict) and "type" not in rules:
                self._check_unknown_keys(value, rules, full_path, warnings)

    def _validate_cross_fields(
        self,
        config: dict,
        errors: list,
        warnings: list,
    ) -> None:
        """Validate relationships between fields."""
        output = config.get("output") or {}
        if not isinstance(output, dict):
            return
        quantity_decimals = output.get("quantity_decimals", 8)
        if isinstance(quantity_decimals, int) and quantity_decimals < 8:
            warnings.append(
                f"output.quantity_decimals ({quantity_decimals}) is below 8, "
                "small remaining quantities may print as zero"
            )

    def apply_defaults(self, config: dict) -> dict:
        """Apply default values to missing configuration fields."""
        return self._apply_defaults_section(config, self.schema)

    def _apply_defaults_section(self, config: dict, schema: dict) -> dict:
        """Recursively apply defaults to a section."""
        result = dict(config) if config else {}

        for key, rules in schema.items():
            if isinstance(rules, dict) and "type" not in rules:
                result[key] = self._apply_defaults_section(
                    result.get(key, {}),
                    rules,
                )
            elif key not in result or result[key] is None:
                env_var = rules.get("env_var")
                env_value = os.getenv(env_var) if env_var else None
                if env_value:
                    result[key] = env_value
                elif "default" in rules:
                    result[key] = rules["default"]

            if "case" in rules:
                result[key] = _normalize_case(result.get(key), rules)

        return result


def _read_config(path: Path) -> dict:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def validate_config(config_path: str = DEFAULT_CONFIG_PATH) -> ValidationResult:
    """
    Validate configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    validator = ConfigValidator()
    return validator.validate(_read_config(path))


def load_and_validate_config(
    config_path: Optional[str] = DEFAULT_CONFIG_PATH,
    required: bool = True,
) -> dict:
    """
    Load and validate configuration, raising on errors.

    Args:
        config_path: Path to configuration file
        required: If False, a missing file yields the defaults

    Returns:
        Validated configuration dict with defaults applied

    Raises:
        ConfigValidationError: If validation fails
        FileNotFoundError: If config file doesn't exist and is required
    """
    validator = ConfigValidator()

    path = Path(config_path) if config_path else None
    if path is None or not path.exists():
        if required:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        logger.debug(f"Config file not found: {config_path}, using defaults")
        config: dict = {}
    else:
        config = _read_config(path)

    result = validator.validate(config)

    if not result.valid:
        raise ConfigValidationError(result.errors)

    for warning in result.warnings:
        logger.warning(f"Config warning: {warning}")

    return validator.apply_defaults(config)
