# src/showback/shared/validators.py
"""
Input Validation Utilities - Configuration and Data File Validation

This module validates currency codes, unit strings, measure keys and
intervals coming from configuration or data files, so bad input is
rejected before it reaches the rating engine.

Files that USE this module:
- showback.config.settings (uses validation functions in Settings field validators)
- showback.adapters.persistence.file_store (validates loaded plans and events)

Files that this module USES:
- showback.domain.units (prefix tables for unit validation)
"""
import re
from datetime import datetime
from typing import Optional

from showback.domain.units import PrefixFamily, SYMBOLS, extract_prefix, prefix_table


def validate_currency_code(code: str) -> bool:
    """
    Validate an ISO 4217 currency code.

    Args:
        code: Currency code to validate (e.g. "USD")

    Returns:
        True if valid, False otherwise
    """
    if not code:
        return False
    return bool(re.match(r'^[A-Z]{3}$', code))


def validate_unit(unit: Optional[str], family: PrefixFamily = PrefixFamily.ALL) -> bool:
    """
    Validate a unit string such as "GiB", "KB" or "MHz".

    An empty unit is valid and means "unitless".

    Args:
        unit: Unit string to validate
        family: Prefix family the unit must belong to

    Returns:
        True if valid, False otherwise
    """
    if not unit:
        return True
    prefix = extract_prefix(unit, family)
    return prefix in prefix_table(family) and unit[len(prefix):] in SYMBOLS


def validate_measure_name(name: str) -> bool:
    """
    Validate a metric category or aggregation kind (e.g. "CPU", "max_mem").

    Args:
        name: Name to validate

    Returns:
        True if valid, False otherwise
    """
    if not name:
        return False
    return bool(re.match(r'^[A-Za-z][A-Za-z0-9_]*$', name))


def validate_interval(start_time: Optional[datetime], end_time: Optional[datetime]) -> bool:
    """
    Validate that an interval is complete and ends after it starts.

    Returns:
        True if valid, False otherwise
    """
    if start_time is None or end_time is None:
        return False
    try:
        return end_time > start_time
    except TypeError:
        # naive and aware datetimes can't be compared
        return False
