"""
Persistence Adapters - Data Storage

This package contains adapters for persisting data:
- In-memory store for pools, events and rate plans
- File-based storage (JSON) for rate plans and events
"""

from showback.adapters.persistence.memory_store import MemoryStore
from showback.adapters.persistence.file_store import (
    load_events,
    load_rate_plans,
    save_events,
    save_rate_plans,
)

__all__ = [
    "MemoryStore",
    "load_events",
    "load_rate_plans",
    "save_events",
    "save_rate_plans",
]
