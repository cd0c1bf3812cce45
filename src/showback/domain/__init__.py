"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules:
unit conversion, money, the pool state machine, metric extractors
and charge computation. No dependencies on infrastructure or external systems.
"""

from showback.domain.errors import (
    CurrencyMismatchError,
    DomainError,
    ErrorBag,
    EventLockedError,
    IllegalTransition,
    InvalidState,
    OpenPoolConflict,
    PoolLockedError,
    UnitConversionError,
    ValidationError,
)
from showback.domain.lifecycle import PoolState
from showback.domain.models import (
    Charge,
    ConsumptionEvent,
    Rate,
    RatePlan,
    ResourceKind,
    ResourceRef,
)
from showback.domain.money import Money
from showback.domain.pool import Pool

__all__ = [
    "Charge",
    "ConsumptionEvent",
    "Money",
    "Pool",
    "PoolState",
    "Rate",
    "RatePlan",
    "ResourceKind",
    "ResourceRef",
    "DomainError",
    "ErrorBag",
    "ValidationError",
    "InvalidState",
    "IllegalTransition",
    "OpenPoolConflict",
    "PoolLockedError",
    "EventLockedError",
    "UnitConversionError",
    "CurrencyMismatchError",
]
