# src/showback/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core showback concepts:
- Metered resources (references only, the inventory owns the resource)
- Consumption events and their measures
- Rate plans and rates
- Charges

Files that USE this module:
- showback.domain.* (pool, rating and metrics operate on these models)
- showback.application.* (services create and use domain models)
- showback.adapters.* (adapters load and persist domain models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- showback.domain.money (Money for rate components and costs)
- showback.domain.errors (EventLockedError, PoolLockedError, ErrorBag)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import uuid  # Identifiers for events, charges and plans
from dataclasses import dataclass, field  # Decorator for creating data classes
from datetime import datetime, timezone  # Date/time utilities for intervals
from enum import Enum  # Resource kind variants
from typing import Dict, List, Optional, Tuple  # Type hints

from showback.domain.errors import ErrorBag, EventLockedError, PoolLockedError
from showback.domain.money import DEFAULT_CURRENCY, Money

MeasureKey = Tuple[str, str]  # (metric_category, aggregation_kind)

CPU_AVERAGE: MeasureKey = ("CPU", "average")
CPU_NUMBER: MeasureKey = ("CPU", "number")
CPU_MAX_NUMBER_OF_CPU: MeasureKey = ("CPU", "max_number_of_cpu")
MEM_MAX_MEM: MeasureKey = ("MEM", "max_mem")


def new_id() -> str:
    return uuid.uuid4().hex


# ConsumptionEvent attributes that can't change once its pool is CLOSED
_FROZEN_WHEN_LOCKED = frozenset({"resource", "start_time", "end_time", "measures", "measure_units"})


class ResourceKind(str, Enum):
    CONTAINER = "container"
    GENERIC = "generic"


@dataclass(frozen=True)
class ResourceRef:
    """
    Reference to a metered resource owned by the inventory.

    Attributes:
        id: Inventory identifier of the resource
        type_name: Inventory type name (e.g. "Vm", "Container")
        kind: Capability variant, resolved once when the reference is built
    """
    id: str
    type_name: str
    kind: ResourceKind = ResourceKind.GENERIC

    @classmethod
    def from_type_name(cls, resource_id: str, type_name: str) -> ResourceRef:
        kind = ResourceKind.CONTAINER if type_name.endswith("Container") else ResourceKind.GENERIC
        return cls(id=str(resource_id), type_name=type_name, kind=kind)

    def __str__(self) -> str:
        return f"{self.type_name}:{self.id}"


@dataclass(eq=False)
class ConsumptionEvent:
    """
    Measured consumption of one resource over an interval.

    Measures, units and the interval can only change while the owning
    pool is not CLOSED; closing the pool locks the event.
    """
    resource: ResourceRef
    start_time: datetime
    end_time: datetime
    measures: Dict[MeasureKey, float] = field(default_factory=dict)
    measure_units: Dict[MeasureKey, str] = field(default_factory=dict)
    id: str = field(default_factory=new_id)
    _locked: bool = field(default=False, init=False, repr=False)

    def __setattr__(self, name, value):
        if name in _FROZEN_WHEN_LOCKED and getattr(self, "_locked", False):
            raise EventLockedError(f"Event {self.id} belongs to a CLOSED pool, {name} can't change")
        object.__setattr__(self, name, value)

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def _check_unlocked(self) -> None:
        if self._locked:
            raise EventLockedError(f"Event {self.id} belongs to a CLOSED pool")

    @property
    def duration_days(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 86400

    def elapsed_days(self, as_of: Optional[datetime] = None) -> int:
        """
        Whole days of the interval already covered at `as_of`.

        `as_of` defaults to now and is clamped to the interval.
        """
        if as_of is None:
            as_of = datetime.now(timezone.utc) if self.start_time.tzinfo else datetime.now()
        as_of = min(max(as_of, self.start_time), self.end_time)
        return (as_of - self.start_time).days

    def get_measure_value(self, category: str, aggregation: str) -> Optional[float]:
        return self.measures.get((category, aggregation))

    def set_measure(self, key: MeasureKey, value: float, unit: Optional[str] = None) -> None:
        self._check_unlocked()
        self.measures[key] = value
        if unit is not None:
            self.measure_units[key] = unit

    def reschedule(self, start_time: datetime, end_time: datetime) -> None:
        self._check_unlocked()
        self.start_time = start_time
        self.end_time = end_time


@dataclass(frozen=True)
class Rate:
    """
    Pricing rule for one measure.

    Attributes:
        category: Metric category (e.g. "CPU", "MEM")
        aggregation: Aggregation kind (e.g. "average", "max_mem")
        fixed: Fixed component charged whenever the measure is present
        variable: Price per unit of measure
        unit: Unit the variable component is priced in ("" when unitless)
    """
    category: str
    aggregation: str
    fixed: Money
    variable: Money
    unit: str = ""
    description: str = ""

    @property
    def key(self) -> MeasureKey:
        return (self.category, self.aggregation)


@dataclass(eq=False)
class RatePlan:
    """Ordered set of rates resolved per pool at rating time."""
    name: str
    description: str = ""
    rates: List[Rate] = field(default_factory=list)
    currency: str = DEFAULT_CURRENCY
    id: str = field(default_factory=new_id)

    def add_rate(self, rate: Rate) -> Rate:
        self.rates.append(rate)
        return rate

    def rates_for(self, key: MeasureKey) -> List[Rate]:
        return [rate for rate in self.rates if rate.key == key]


class Charge:
    """Cost of one event inside one pool."""

    def __init__(self, event: ConsumptionEvent, pool_id: Optional[str],
                 cost: Optional[Money] = None, currency: str = DEFAULT_CURRENCY):
        self.id = new_id()
        self.event = event
        self.pool_id = pool_id
        self._cost = cost if cost is not None else Money.zero(currency)
        self._locked = False
        self.errors = ErrorBag()

    @property
    def cost(self) -> Money:
        return self._cost

    @cost.setter
    def cost(self, value) -> None:
        if self._locked:
            raise PoolLockedError(f"Charge {self.id} belongs to a CLOSED pool")
        self._cost = Money.of(value, self._cost.currency)

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def __repr__(self) -> str:
        return f"Charge(id={self.id!r}, event={self.event.id!r}, pool={self.pool_id!r}, cost={self._cost})"
