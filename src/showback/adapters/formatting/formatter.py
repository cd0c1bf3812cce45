# src/showback/adapters/formatting/formatter.py
"""
Report Formatter - Text Presentation of Pools and Charges

This module renders pools, their charges and measures as plain text for
show-back reports printed by the command line entry point.

Files that USE this module:
- showback.app (prints a summary per rated pool)
- tests.test_formatter (unit tests)

Files that this module USES:
- showback.domain.pool (Pool)
- showback.domain.models (Charge, ConsumptionEvent)
- showback.domain.money (Money)
"""
from __future__ import annotations

from typing import Iterable, Optional

from showback.domain.models import Charge, ConsumptionEvent
from showback.domain.money import Money
from showback.domain.pool import Pool


def format_money(money: Optional[Money]) -> str:
    """
    Format a monetary value rounded to its minor unit.

    Returns:
        e.g. "1,234.50 USD", or "N/A" when money is None
    """
    if money is None:
        return "N/A"
    rounded = money.rounded()
    return f"{rounded.amount:,} {rounded.currency}"


def format_measures(event: ConsumptionEvent) -> str:
    if not event.measures:
        return "no measures"
    parts = []
    for (category, aggregation), value in sorted(event.measures.items()):
        unit = event.measure_units.get((category, aggregation), "")
        parts.append(f"{category}/{aggregation}={value:g}{unit}")
    return ", ".join(parts)


def charge_line(charge: Charge) -> str:
    event = charge.event
    return (
        f"— {event.start_time:%Y-%m-%d} → {event.end_time:%Y-%m-%d}: "
        f"{format_money(charge.cost)} ({format_measures(event)})"
    )


def pool_summary(pool: Pool) -> str:
    """
    Format a pool with one line per charge and its total.

    Args:
        pool: Pool to render

    Returns:
        Multi-line text summary
    """
    state = getattr(pool.state, "value", pool.state)
    lines = [
        f"{pool.name} [{state}]",
        f"{pool.start_time:%Y-%m-%d} → {pool.end_time:%Y-%m-%d}",
    ]
    charges = pool.charges
    if not charges:
        lines.append("— no charges")
    lines.extend(charge_line(charge) for charge in charges)
    lines.append(f"Total: {format_money(pool.sum_of_charges())}")
    return "\n".join(lines)


def report(pools: Iterable[Pool]) -> str:
    """Join pool summaries with blank lines."""
    return "\n\n".join(pool_summary(pool) for pool in pools)
