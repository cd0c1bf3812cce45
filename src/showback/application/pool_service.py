# src/showback/application/pool_service.py
"""
Pool Service - Pool Lifecycle and Persistence

This module persists pools while enforcing the lifecycle rules:
- state changes are checked against the state machine when saved
- moving a pool from OPEN to PROCESSING opens a fresh pool for the
  resource, unless one is already open
- closing a pool freezes its charges and events
- destroying pools and events cascades to their charges

Files that USE this module:
- showback.app (composition root)
- tests.test_pool_lifecycle (unit tests)

Files that this module USES:
- showback.adapters.persistence.memory_store (MemoryStore)
- showback.domain.pool (Pool)
- showback.domain.lifecycle (check_transition and transition side effects)
- showback.domain.rating (default_plan_resolver)
- showback.config (settings for currency, pool period and naming)
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from showback.adapters.persistence.memory_store import MemoryStore
from showback.config import Settings, settings as default_settings
from showback.domain.errors import InvalidState, OpenPoolConflict, ValidationError
from showback.domain.lifecycle import (
    PoolState,
    check_transition,
    freezes_charges,
    spawns_open_pool,
)
from showback.domain.models import ConsumptionEvent, ResourceRef
from showback.domain.pool import Pool
from showback.domain.rating import PlanResolver, default_plan_resolver

logger = logging.getLogger(__name__)


class PoolService:
    """Creates, saves and destroys pools against a store."""

    def __init__(
        self,
        store: MemoryStore,
        settings: Optional[Settings] = None,
        plan_resolver: Optional[PlanResolver] = None,
    ):
        """
        Initialize the pool service.

        Args:
            store: Persistence collaborator
            settings: Settings to use (default: the global settings)
            plan_resolver: Rate plan resolution for new pools
                (default: first plan in the store)
        """
        self.store = store
        self.settings = settings or default_settings
        self.plan_resolver = plan_resolver or default_plan_resolver(store.plans)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def new_pool(self, resource: ResourceRef, start_time: datetime,
                 end_time: Optional[datetime] = None,
                 state: PoolState = PoolState.OPEN) -> Pool:
        """Build an unsaved pool named after its resource."""
        if end_time is None:
            end_time = start_time + timedelta(days=self.settings.pool_period_days)
        return Pool(
            resource=resource,
            start_time=start_time,
            end_time=end_time,
            name=self.settings.pool_name_template.format(resource=resource, start=start_time),
            description=self.settings.pool_description_template.format(resource=resource, start=start_time),
            state=state,
            currency=self.settings.currency,
            plan_resolver=self.plan_resolver,
        )

    def create_pool(self, resource: ResourceRef, start_time: datetime,
                    end_time: Optional[datetime] = None,
                    state: PoolState = PoolState.OPEN) -> Pool:
        pool = self.new_pool(resource, start_time, end_time, state)
        self.save(pool)
        return pool

    # ------------------------------------------------------------------
    # Saving and transitions
    # ------------------------------------------------------------------

    def save(self, pool: Pool) -> Pool:
        """
        Validate and persist a pool, applying transition side effects.

        Raises:
            InvalidState: If the state is not OPEN, PROCESSING or CLOSED
            ValidationError: If another validation fails
            IllegalTransition: If the state change is not allowed
            OpenPoolConflict: If the resource already has another OPEN pool
        """
        if not pool.validate():
            if pool.errors.on("state"):
                raise InvalidState(f"Invalid pool state {pool.state!r}", pool.errors)
            raise ValidationError(
                "Pool is invalid: " + ", ".join(pool.errors.full_messages()), pool.errors
            )

        previous = pool.saved_state
        requested = PoolState(pool.state)
        if previous is not None:
            check_transition(previous, requested)

        with self.store.resource_lock(pool.resource):
            self.store.put_pool(pool)
            if previous is not None and spawns_open_pool(previous, requested):
                self.ensure_open_pool(pool)

        if not pool.locked and freezes_charges(previous or PoolState.OPEN, requested):
            pool.lock()
            logger.info("Pool %s closed with %s", pool.id, pool.sum_of_charges())
        elif previous != requested:
            logger.info("Pool %s saved as %s", pool.id, requested.value)
        return pool

    def transition(self, pool: Pool, state: PoolState) -> Pool:
        pool.state = state
        return self.save(pool)

    def ensure_open_pool(self, pool: Pool) -> Pool:
        """
        Return the OPEN pool of `pool`'s resource, creating it if needed.

        The new pool starts when `pool` ends and lasts as long. A conflict
        with a concurrently created pool is resolved by re-reading it.
        """
        last_conflict: Optional[OpenPoolConflict] = None
        for _ in range(self.settings.open_pool_retries):
            existing = self.store.find_open_pool(pool.resource, exclude=pool)
            if existing is not None:
                return existing
            fresh = self.new_pool(pool.resource, pool.end_time,
                                  pool.end_time + (pool.end_time - pool.start_time))
            try:
                self.store.put_pool(fresh)
            except OpenPoolConflict as e:
                logger.info("OPEN pool for %s created concurrently, re-reading", pool.resource)
                last_conflict = e
                continue
            logger.info("Opened pool %s for %s after %s started processing",
                        fresh.id, pool.resource, pool.id)
            return fresh
        raise last_conflict

    def open_pool_for(self, resource: ResourceRef, at: Optional[datetime] = None) -> Pool:
        """OPEN pool of a resource, created starting at `at` when none exists."""
        with self.store.resource_lock(resource):
            pool = self.store.find_open_pool(resource)
            if pool is not None:
                return pool
            return self.create_pool(resource, at or datetime.now(timezone.utc))

    def record_event(self, event: ConsumptionEvent) -> Pool:
        """Store a new event and attach it to its resource's OPEN pool."""
        self.store.put_event(event)
        pool = self.open_pool_for(event.resource, event.start_time)
        pool.add_event(event)
        return pool

    # ------------------------------------------------------------------
    # Destruction
    # ------------------------------------------------------------------

    def destroy_pool(self, pool: Pool) -> List[ConsumptionEvent]:
        """
        Delete a pool and its charges.

        Returns:
            Events left without a pool, which callers must re-home
        """
        orphans = self.store.delete_pool(pool)
        if orphans:
            logger.warning("Destroying pool %s left %d events without a pool: %s",
                           pool.id, len(orphans), ", ".join(e.id for e in orphans))
        return orphans

    def destroy_event(self, event: ConsumptionEvent) -> List[Pool]:
        """Delete an event and its charges; returns the pools it left."""
        pools = self.store.delete_event(event)
        if not pools:
            logger.warning("Destroyed event %s was not attached to any pool", event.id)
        return pools
