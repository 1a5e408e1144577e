"""Configuration management and validation."""

from .validator import (
    ConfigValidator,
    ConfigValidationError,
    ValidationResult,
    load_and_validate_config,
    validate_config,
)

__all__ = [
    "ConfigValidator",
    "ConfigValidationError",
    "ValidationResult",
    "load_and_validate_config",
    "validate_config",
]
