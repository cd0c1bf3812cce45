"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Logging configuration
"""

from showback.shared.validators import (
    validate_currency_code,
    validate_interval,
    validate_measure_name,
    validate_unit,
)
from showback.shared.logging_conf import setup_logging

__all__ = [
    "validate_currency_code",
    "validate_interval",
    "validate_measure_name",
    "validate_unit",
    "setup_logging",
]
