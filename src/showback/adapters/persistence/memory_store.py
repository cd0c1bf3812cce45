# src/showback/adapters/persistence/memory_store.py
"""
Memory Store - In-Process Storage for Pools, Events and Rate Plans

This module keeps pools, consumption events and rate plans in memory and
enforces the storage-level rules the engine relies on:
- at most one OPEN pool per resource (OpenPoolConflict otherwise)
- destroying a pool removes its charges
- destroying an event removes its charge and detaches it from every pool

A per-resource lock serializes decisions about a resource's OPEN pool.

Files that USE this module:
- showback.application.pool_service (persists pools and events)
- showback.app (composition root)
- tests.* (tests use a fresh store per test)

Files that this module USES:
- showback.domain.pool (Pool)
- showback.domain.models (ConsumptionEvent, RatePlan, ResourceRef)
- showback.domain.errors (OpenPoolConflict)
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from showback.domain.errors import OpenPoolConflict
from showback.domain.lifecycle import PoolState
from showback.domain.models import ConsumptionEvent, RatePlan, ResourceRef
from showback.domain.pool import Pool

logger = logging.getLogger(__name__)


class MemoryStore:
    """In-memory persistence collaborator."""

    def __init__(self):
        self._pools: Dict[str, Pool] = {}
        self._events: Dict[str, ConsumptionEvent] = {}
        self._plans: List[RatePlan] = []
        self._guard = threading.Lock()
        self._resource_locks: Dict[str, threading.RLock] = {}
        # Holders and waiters per resource; a lock is dropped when this reaches 0
        self._lock_users: Dict[str, int] = defaultdict(int)

    @contextmanager
    def resource_lock(self, resource: ResourceRef) -> Iterator[None]:
        """Serialize pool decisions for one resource."""
        key = str(resource)
        with self._guard:
            lock = self._resource_locks.setdefault(key, threading.RLock())
            self._lock_users[key] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._lock_users[key] -= 1
                if not self._lock_users[key]:
                    del self._lock_users[key]
                    del self._resource_locks[key]

    # --- Pools ---

    def find_open_pool(self, resource: ResourceRef, exclude: Optional[Pool] = None) -> Optional[Pool]:
        for pool in list(self._pools.values()):
            if pool is exclude or pool.resource != resource:
                continue
            if pool.saved_state == PoolState.OPEN:
                return pool
        return None

    def put_pool(self, pool: Pool) -> None:
        """
        Insert or update a pool.

        Raises:
            OpenPoolConflict: If the pool is OPEN and the resource already
                has another OPEN pool
        """
        with self._guard:
            if PoolState(pool.state) == PoolState.OPEN:
                existing = self.find_open_pool(pool.resource, exclude=pool)
                if existing is not None:
                    raise OpenPoolConflict(str(pool.resource), existing.id)
            self._pools[pool.id] = pool
            pool.mark_saved()
        for event in pool.events:
            self._events.setdefault(event.id, event)

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        return self._pools.get(pool_id)

    def pools(self, resource: Optional[ResourceRef] = None) -> List[Pool]:
        return [p for p in list(self._pools.values()) if resource is None or p.resource == resource]

    def pools_of(self, event: ConsumptionEvent) -> List[Pool]:
        """Every stored pool the event is attached to."""
        return [pool for pool in list(self._pools.values()) if pool.has_event(event)]

    def delete_pool(self, pool: Pool) -> List[ConsumptionEvent]:
        """
        Remove a pool and its charges.

        Returns:
            Events left without a pool
        """
        events = pool.events
        for event in events:
            pool.remove_event(event)
        self._pools.pop(pool.id, None)
        return [event for event in events if not self.pools_of(event)]

    def charge_count(self) -> int:
        return sum(len(pool.charges) for pool in list(self._pools.values()))

    # --- Events ---

    def put_event(self, event: ConsumptionEvent) -> None:
        self._events[event.id] = event

    def events(self) -> List[ConsumptionEvent]:
        return list(self._events.values())

    def delete_event(self, event: ConsumptionEvent) -> List[Pool]:
        """
        Remove an event and its charge in every pool holding it.

        Returns:
            The pools the event was detached from
        """
        self._events.pop(event.id, None)
        pools = self.pools_of(event)
        for pool in pools:
            pool.remove_event(event)
        return pools

    def orphaned_events(self) -> List[ConsumptionEvent]:
        return [e for e in list(self._events.values()) if not self.pools_of(e)]

    # --- Rate plans ---

    def put_plan(self, plan: RatePlan) -> None:
        if plan not in self._plans:
            self._plans.append(plan)

    def plans(self) -> List[RatePlan]:
        return list(self._plans)
