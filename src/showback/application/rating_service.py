# src/showback/application/rating_service.py
"""
Rating Service - Measures and Charges for Events and Pools

This module orchestrates the rating flow:
1. Raw samples are turned into event measures by the metric extractors
2. The pool resolves the applicable rate plan
3. Each charge is computed from the event measures and the plan

Files that USE this module:
- showback.app (rates every pool of a run)
- tests.test_rating (unit tests)

Files that this module USES:
- showback.domain.metrics (extract, ExtractionContext, ResourceView)
- showback.domain.pool (Pool)
- showback.domain.models (ConsumptionEvent, MeasureKey)
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Mapping, Optional

from showback.domain.metrics import ExtractionContext, ResourceView, extract
from showback.domain.models import ConsumptionEvent, MeasureKey
from showback.domain.money import Money
from showback.domain.pool import Pool

logger = logging.getLogger(__name__)


class RatingService:
    """Runs metric extraction and charge calculation."""

    def record_samples(
        self,
        event: ConsumptionEvent,
        resource: ResourceView,
        samples: Mapping[MeasureKey, Optional[float]],
        as_of: Optional[datetime] = None,
    ) -> Dict[MeasureKey, float]:
        """
        Fold new raw samples into an event's measures.

        Args:
            event: Event to update (must not belong to a CLOSED pool)
            resource: Read-only view of the event's resource
            samples: New raw value per measure key; None when the measure
                is read from the resource only (e.g. max memory)
            as_of: Point in time of the samples (default: now)

        Returns:
            The event's measures after the update

        Raises:
            EventLockedError: If the event belongs to a CLOSED pool
        """
        if resource.reference != event.resource:
            logger.warning("Samples for event %s come from %s, expected %s",
                           event.id, resource.reference, event.resource)
        context = ExtractionContext(resource=resource, days_elapsed=event.elapsed_days(as_of))
        for key, sample in samples.items():
            previous = event.measures.get(key)
            value = extract(key, sample, previous, context)
            if value is None:
                continue
            event.set_measure(key, value)
        logger.debug("Event %s measures: %s", event.id, event.measures)
        return dict(event.measures)

    def rate_event(self, pool: Pool, event: ConsumptionEvent) -> Money:
        """Calculate the charge of one event of `pool`."""
        return pool.calculate_charge(pool.find_charge(event))

    def rate_pool(self, pool: Pool) -> Money:
        """
        Recalculate every charge of a pool.

        Returns:
            Sum of the pool's charges after the calculation
        """
        plan = pool.find_price_plan()
        if plan is None:
            logger.warning("Pool %s has no price plan, its charges will be 0", pool.id)
        total = pool.calculate_all_charges()
        logger.info("Rated pool %s (%s): %d charges, total %s, plan %s",
                    pool.id, pool.resource, len(pool.charges), total,
                    plan.name if plan else None)
        return total
