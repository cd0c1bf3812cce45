# src/showback/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions that represent
business rule violations, plus the ErrorBag used to record recoverable
field-level errors on pools and charges.

Files that USE this module:
- showback.domain.pool (records attach/detach and charge errors)
- showback.domain.lifecycle (raises IllegalTransition)
- showback.domain.units (raises UnitConversionError)
- showback.application.pool_service (raises ValidationError, OpenPoolConflict)

Files that this module USES:
- None (pure domain layer)
"""
from __future__ import annotations

from typing import Any, Dict, List


BLANK = "blank"
INCLUSION = "inclusion"
DUPLICATE = "duplicate"
NOT_FOUND = "not found"
INVALID = "invalid"


class ErrorBag:
    """Field-level errors recorded on an entity instead of raising."""

    def __init__(self):
        self._details: Dict[str, List[Dict[str, Any]]] = {}

    def add(self, field: str, error: str, **extra: Any) -> None:
        entry = {"error": error}
        entry.update(extra)
        self._details.setdefault(field, []).append(entry)

    @property
    def details(self) -> Dict[str, List[Dict[str, Any]]]:
        """Copy of the recorded errors, keyed by field."""
        return {field: list(entries) for field, entries in self._details.items()}

    def on(self, field: str) -> List[Dict[str, Any]]:
        return list(self._details.get(field, []))

    def full_messages(self) -> List[str]:
        return [
            f"{field} {entry['error']}"
            for field, entries in self._details.items()
            for entry in entries
        ]

    def clear(self) -> None:
        self._details.clear()

    def __bool__(self) -> bool:
        return bool(self._details)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._details.values())

    def __repr__(self) -> str:
        return f"ErrorBag({self._details!r})"


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class ValidationError(DomainError):
    """Raised when a record fails validation and is not persisted."""

    def __init__(self, message: str, errors: ErrorBag | None = None):
        super().__init__(message)
        self.errors = errors if errors is not None else ErrorBag()


class InvalidState(ValidationError):
    """Raised when a pool carries a state outside OPEN, PROCESSING, CLOSED."""
    pass


class IllegalTransition(DomainError):
    """Raised when a pool state change is not allowed."""
    pass


class OpenPoolConflict(DomainError):
    """Raised when a second OPEN pool would exist for one resource."""

    def __init__(self, resource_id: str, existing_pool_id: str):
        super().__init__(
            f"Resource {resource_id} already has an OPEN pool ({existing_pool_id})"
        )
        self.resource_id = resource_id
        self.existing_pool_id = existing_pool_id


class PoolLockedError(DomainError):
    """Raised when charges of a CLOSED pool are mutated."""
    pass


class EventLockedError(DomainError):
    """Raised when an event belonging to a CLOSED pool is mutated."""
    pass


class UnitConversionError(DomainError):
    """Raised when a unit cannot be resolved in the selected prefix family."""
    pass


class CurrencyMismatchError(DomainError):
    """Raised when monetary values of different currencies are combined."""
    pass
