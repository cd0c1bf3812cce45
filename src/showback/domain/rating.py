# src/showback/domain/rating.py
"""
Rating - Cost of a Consumption Event under a Rate Plan

Every rate of the plan whose measure the event exposes contributes
`fixed + variable * measure`. Contributions are summed exactly and the
total is rounded once, half-even, to the currency's minor unit.

Files that USE this module:
- showback.domain.pool (calculate_charge)
- showback.application.rating_service (plan resolvers)

Files that this module USES:
- showback.domain.models (ConsumptionEvent, Rate, RatePlan, ResourceRef)
- showback.domain.money (Money)
- showback.domain.units (to_unit for unit normalization)
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Iterable, Optional

from showback.domain.errors import UnitConversionError
from showback.domain.models import ConsumptionEvent, Rate, RatePlan, ResourceRef
from showback.domain.money import Money
from showback.domain.units import to_unit

logger = logging.getLogger(__name__)

# Resolves the plan that applies to a resource; None when nothing applies
PlanResolver = Callable[[ResourceRef], Optional[RatePlan]]


def default_plan_resolver(plans: Callable[[], Iterable[RatePlan]]) -> PlanResolver:
    """
    Resolver returning the first available plan for every resource.

    Args:
        plans: Callable returning the plans in priority order
    """
    def resolve(resource: ResourceRef) -> Optional[RatePlan]:
        for plan in plans():
            return plan
        return None
    return resolve


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)
    # Fraction from unit conversion
    return Decimal(value.numerator) / Decimal(value.denominator)


def normalized_measure(event: ConsumptionEvent, rate: Rate):
    """
    Measure of `event` expressed in the unit `rate` is priced in.

    The raw value is used when either side has no unit. A unit pair that
    can't be converted also falls back to the raw value, with a warning.
    """
    value = event.measures[rate.key]
    measure_unit = event.measure_units.get(rate.key, "")
    if not rate.unit or not measure_unit or rate.unit == measure_unit:
        return value
    try:
        return to_unit(value, measure_unit, rate.unit)
    except UnitConversionError as e:
        logger.warning("Rate %s/%s: %s, using raw measure", rate.category, rate.aggregation, e)
        return value


def rate_contribution(event: ConsumptionEvent, rate: Rate) -> Decimal:
    """Unrounded contribution of one rate, zero when the event lacks the measure."""
    if event.measures.get(rate.key) is None:
        return Decimal(0)
    measure = _to_decimal(normalized_measure(event, rate))
    return rate.fixed.amount + rate.variable.amount * measure


def compute_cost(event: ConsumptionEvent, plan: Optional[RatePlan], currency: str) -> Money:
    """
    Cost of `event` under `plan`.

    A missing plan or a plan that matches none of the event's measures
    yields zero.
    """
    if plan is None:
        return Money.zero(currency)
    total = Decimal(0)
    for rate in plan.rates:
        if rate.fixed.currency != currency or rate.variable.currency != currency:
            logger.warning(
                "Skipping rate %s/%s of plan %s: priced in %s, charge is in %s",
                rate.category, rate.aggregation, plan.name, rate.fixed.currency, currency,
            )
            continue
        total += rate_contribution(event, rate)
    return Money(total, currency).rounded()
