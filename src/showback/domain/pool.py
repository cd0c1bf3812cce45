# src/showback/domain/pool.py
"""
Pool - Billing Aggregation Root

A pool holds the consumption events of one resource over a lifecycle
window and exactly one charge per event. Attach/detach problems and
charges that do not belong to the pool are recorded in `errors` and
answered with a sentinel; only lifecycle violations raise.

Files that USE this module:
- showback.application.pool_service (creates, saves and destroys pools)
- showback.application.rating_service (rates pools)
- showback.adapters.persistence.memory_store (stores pools)
- showback.adapters.formatting.formatter (pool summaries)

Files that this module USES:
- showback.domain.models (ConsumptionEvent, Charge, RatePlan, ResourceRef)
- showback.domain.lifecycle (PoolState)
- showback.domain.rating (compute_cost, PlanResolver)
- showback.domain.money (Money)
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Union

from showback.domain.errors import BLANK, DUPLICATE, INCLUSION, INVALID, NOT_FOUND, ErrorBag, PoolLockedError
from showback.domain.lifecycle import STATES, PoolState, parse_state
from showback.domain.models import Charge, ConsumptionEvent, RatePlan, ResourceRef, new_id
from showback.domain.money import DEFAULT_CURRENCY, Money
from showback.domain.rating import PlanResolver, compute_cost

logger = logging.getLogger(__name__)

EventOrCharge = Union[ConsumptionEvent, Charge]


def _type_error(obj) -> str:
    return f"Error Type {type(obj).__name__} is not {ConsumptionEvent.__name__}"


class Pool:
    """Billing bucket for one resource."""

    def __init__(
        self,
        resource: Optional[ResourceRef],
        start_time: datetime,
        end_time: datetime,
        name: Optional[str] = None,
        description: Optional[str] = None,
        state: Union[PoolState, str] = PoolState.OPEN,
        currency: str = DEFAULT_CURRENCY,
        plan_resolver: Optional[PlanResolver] = None,
    ):
        self.id = new_id()
        self.resource = resource
        self.name = name
        self.description = description
        self.start_time = start_time
        self.end_time = end_time
        self.state = state
        self.currency = currency
        self.plan_resolver = plan_resolver
        self.errors = ErrorBag()
        self._events: Dict[str, ConsumptionEvent] = {}
        self._charges: Dict[str, Charge] = {}
        self._saved_state: Optional[PoolState] = None
        self._locked = False

    def __repr__(self) -> str:
        return f"Pool(id={self.id!r}, resource={self.resource}, state={self.state!r})"

    # ------------------------------------------------------------------
    # Validation and persistence bookkeeping
    # ------------------------------------------------------------------

    def validate(self) -> bool:
        """Re-run validations, replacing previously recorded errors."""
        self.errors.clear()
        for field in ("resource", "name", "description"):
            if not getattr(self, field):
                self.errors.add(field, BLANK)
        if parse_state(self.state) is None:
            self.errors.add("state", INCLUSION, value=self.state, allowed=STATES)
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            self.errors.add("end_time", "should happen after start_time")
        return not self.errors

    @property
    def is_valid(self) -> bool:
        return self.validate()

    @property
    def current_state(self) -> Optional[PoolState]:
        return parse_state(self.state)

    @property
    def saved_state(self) -> Optional[PoolState]:
        """State as last persisted, None for a pool never saved."""
        return self._saved_state

    def mark_saved(self) -> None:
        self._saved_state = PoolState(self.state)
        self.state = self._saved_state

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        """Freeze every charge and event; called once the pool is CLOSED."""
        self._locked = True
        for charge in self._charges.values():
            charge.lock()
        for event in self._events.values():
            event.lock()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @property
    def events(self) -> List[ConsumptionEvent]:
        return list(self._events.values())

    @property
    def charges(self) -> List[Charge]:
        return list(self._charges.values())

    def has_event(self, event: ConsumptionEvent) -> bool:
        return event.id in self._events

    def add_event(self, event) -> Optional[Charge]:
        """
        Attach an event and create its zero-cost charge.

        Returns:
            The new Charge, or None when the event was rejected (the reason
            is recorded on `errors["events"]`)
        """
        if not isinstance(event, ConsumptionEvent):
            self.errors.add("events", _type_error(event))
            return None
        if event.id in self._events:
            self.errors.add("events", DUPLICATE)
            return None
        if self.resource is not None and event.resource != self.resource:
            logger.warning("Event %s of %s attached to pool %s of %s",
                           event.id, event.resource, self.id, self.resource)

        charge = Charge(event, self.id, currency=self.currency)
        if self._locked:
            charge.lock()
            event.lock()
        self._events[event.id] = event
        self._charges[event.id] = charge
        return charge

    def remove_event(self, event) -> Optional[ConsumptionEvent]:
        """Detach an event and destroy its charge."""
        if not isinstance(event, ConsumptionEvent):
            self.errors.add("events", _type_error(event))
            return None
        if event.id not in self._events:
            self.errors.add("events", NOT_FOUND)
            return None
        self._charges.pop(event.id, None)
        return self._events.pop(event.id)

    # ------------------------------------------------------------------
    # Charges
    # ------------------------------------------------------------------

    def belongs(self, charge: Optional[Charge]) -> bool:
        return (
            isinstance(charge, Charge)
            and charge.pool_id == self.id
            and self._charges.get(charge.event.id) is charge
        )

    def find_charge(self, item: Optional[EventOrCharge]) -> Optional[Charge]:
        """Charge of an attached event, or the charge itself if it is ours."""
        if isinstance(item, ConsumptionEvent):
            return self._charges.get(item.id)
        if self.belongs(item):
            return item
        return None

    def get_charge(self, item: Optional[EventOrCharge]) -> Money:
        charge = self.find_charge(item)
        return charge.cost if charge is not None else Money.zero(self.currency)

    def add_charge(self, item: EventOrCharge, amount) -> Optional[Money]:
        """
        Set a cost directly, bypassing rate computation.

        An event not yet in the pool is attached first. A charge that
        belongs to another pool is left untouched.

        Raises:
            PoolLockedError: If the pool is CLOSED; nothing is attached
        """
        if self._locked:
            raise PoolLockedError(f"Pool {self.id} is CLOSED, its charges can't change")
        if isinstance(item, ConsumptionEvent) and not self.has_event(item):
            if self.add_event(item) is None:
                return None
        charge = self.find_charge(item)
        if charge is None:
            self.errors.add("charges", NOT_FOUND)
            return None
        charge.cost = Money.of(amount, self.currency)
        return charge.cost

    def update_charge(self, charge: Charge, amount) -> Optional[Money]:
        """Set the cost of one of our charges; None for any other charge."""
        if not self.belongs(charge):
            return None
        charge.cost = Money.of(amount, self.currency)
        return charge.cost

    def clear_charge(self, charge: Charge) -> Optional[Money]:
        return self.update_charge(charge, 0)

    def clean_all_charges(self) -> None:
        for charge in self._charges.values():
            charge.cost = Money.zero(self.currency)

    def sum_of_charges(self) -> Money:
        return sum((charge.cost for charge in self._charges.values()), Money.zero(self.currency))

    @property
    def accumulated_cost(self) -> Money:
        """Always derived from the current charges."""
        return self.sum_of_charges()

    # ------------------------------------------------------------------
    # Rating
    # ------------------------------------------------------------------

    def find_price_plan(self) -> Optional[RatePlan]:
        if self.plan_resolver is None or self.resource is None:
            return None
        return self.plan_resolver(self.resource)

    def calculate_charge(self, charge: Optional[Charge]) -> Money:
        """
        Rate one charge of this pool against the resolved plan.

        Returns:
            The new cost, or zero when the charge is missing or belongs to
            another pool (recorded as "not found")
        """
        if charge is None or not self.belongs(charge):
            self.errors.add("charge", NOT_FOUND)
            if isinstance(charge, Charge):
                charge.errors.add("charge", NOT_FOUND)
            return Money.zero(self.currency)

        plan = self.find_price_plan()
        if plan is None:
            logger.warning("No price plan for pool %s (%s), charging 0", self.id, self.resource)
            self.errors.add("price_plan", INVALID)
        charge.cost = compute_cost(charge.event, plan, self.currency)
        return charge.cost

    def calculate_all_charges(self) -> Money:
        for charge in self._charges.values():
            self.calculate_charge(charge)
        return self.sum_of_charges()
