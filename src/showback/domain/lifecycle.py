# src/showback/domain/lifecycle.py
"""
Pool Lifecycle - State Machine for Billing Pools

OPEN -> PROCESSING -> CLOSED. No other transition is legal.

Files that USE this module:
- showback.domain.pool (pool state validation)
- showback.application.pool_service (checks transitions when saving)

Files that this module USES:
- showback.domain.errors (IllegalTransition)
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from showback.domain.errors import IllegalTransition


class PoolState(str, Enum):
    OPEN = "OPEN"
    PROCESSING = "PROCESSING"
    CLOSED = "CLOSED"


STATES = tuple(state.value for state in PoolState)

_ALLOWED = {
    (PoolState.OPEN, PoolState.PROCESSING),
    (PoolState.PROCESSING, PoolState.CLOSED),
}


def parse_state(value) -> Optional[PoolState]:
    """Return the PoolState for `value`, or None when it is not a state."""
    try:
        return PoolState(value)
    except ValueError:
        return None


def check_transition(current: PoolState, requested: PoolState) -> None:
    """
    Validate a state change about to be persisted.

    Raises:
        IllegalTransition: If the change is not allowed
    """
    current = PoolState(current)
    requested = PoolState(requested)
    if current == requested:
        return
    if current == PoolState.CLOSED:
        raise IllegalTransition("Pool can't change state when it's CLOSED")
    if (current, requested) not in _ALLOWED:
        raise IllegalTransition(
            f"Pool can't change state to {requested.value} from {current.value}"
        )


def spawns_open_pool(current: PoolState, requested: PoolState) -> bool:
    """True when the transition requires a fresh OPEN pool for the resource."""
    return current == PoolState.OPEN and requested == PoolState.PROCESSING


def freezes_charges(current: PoolState, requested: PoolState) -> bool:
    return current != PoolState.CLOSED and requested == PoolState.CLOSED
