# src/showback/app.py
"""
Application Entry Point - Show-back Rating Run

This module serves as the composition root for a show-back rating run.
It wires the store, services and file adapters, then:
1. Loads rate plans, inventory resources and consumption events
2. Attaches every event to its resource's OPEN pool
3. Refreshes inventory-derived measures (vCPU count, memory)
4. Rates every pool and prints a report

Files that USE this module:
- showback.__main__ (python -m showback)

Files that this module USES:
- showback.shared.logging_conf (setup_logging for logging configuration)
- showback.config (settings for file paths and logging)
- showback.adapters.persistence (MemoryStore, load_rate_plans, load_events)
- showback.adapters.inventory (load_resources)
- showback.application (PoolService, RatingService)
- showback.adapters.formatting (report)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import logging  # Standard library for logging messages and errors
from typing import Dict, List, Optional  # Type hints

from showback.shared.logging_conf import setup_logging  # Configure logging with file rotation
from showback.config import Settings, settings as default_settings  # Application configuration
from showback.adapters.persistence import MemoryStore, load_events, load_rate_plans  # Storage and data files
from showback.adapters.inventory import StaticResource, load_resources  # Inventory resource views
from showback.adapters.formatting import report  # Text report of rated pools
from showback.application import PoolService, RatingService  # Lifecycle and rating services
from showback.domain.models import CPU_MAX_NUMBER_OF_CPU, MEM_MAX_MEM, ConsumptionEvent
from showback.domain.pool import Pool

logger = logging.getLogger(__name__)

# Measures read from the inventory rather than from samples
INVENTORY_MEASURES = (CPU_MAX_NUMBER_OF_CPU, MEM_MAX_MEM)


def _load_inventory(settings: Settings) -> Dict[str, StaticResource]:
    if not settings.resources_file.exists():
        logger.warning("Resources file %s not found, inventory measures are skipped",
                       settings.resources_file)
        return {}
    return load_resources(settings.resources_file)


def run(settings: Settings, store: Optional[MemoryStore] = None) -> List[Pool]:
    """
    Run one rating pass and return the rated pools.

    Raises:
        RuntimeError: If the events or resources file can't be read
    """
    store = store or MemoryStore()
    for plan in load_rate_plans(settings.rate_plans_file):
        store.put_plan(plan)
    if not store.plans():
        logger.warning("No rate plans available, every charge will be 0")

    resources = _load_inventory(settings)
    references = {rid: resource.reference for rid, resource in resources.items()}
    events: List[ConsumptionEvent] = load_events(settings.events_file, references)

    pools = PoolService(store, settings)
    rating = RatingService()

    for event in sorted(events, key=lambda e: e.start_time):
        pools.record_event(event)
        resource = resources.get(event.resource.id)
        if resource is None:
            logger.warning("Resource %s of event %s not in inventory", event.resource, event.id)
            continue
        rating.record_samples(event, resource, {key: None for key in INVENTORY_MEASURES},
                              as_of=event.end_time)

    rated = store.pools()
    for pool in rated:
        rating.rate_pool(pool)
    return rated


def main() -> int:
    """
    Configure logging, run a rating pass and print the report.

    Returns:
        Process exit code
    """
    settings = default_settings
    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        log_stdout=settings.log_stdout,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    try:
        pools = run(settings)
    except RuntimeError as e:
        logger.error("Rating run failed: %s", e)
        return 1

    print(report(pools))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
