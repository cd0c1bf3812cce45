# src/showback/adapters/persistence/file_store.py
"""
File Store - Rate Plan and Event Files

This module reads and writes rate plans and consumption events as JSON
files. Writes are atomic (temp file + rename); a corrupt rate plan file
is backed up and treated as absent.

Files that USE this module:
- showback.app (loads plans and events for a rating run)
- tests.test_file_store (unit tests)

Files that this module USES:
- showback.config (settings for file paths)
- showback.domain.models (RatePlan, Rate, ConsumptionEvent, ResourceRef)
- showback.shared.validators (currency, unit and measure validation)
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from showback.config import settings
from showback.domain.models import ConsumptionEvent, Rate, RatePlan, ResourceRef
from showback.domain.money import Money
from showback.shared.validators import (
    validate_currency_code,
    validate_interval,
    validate_measure_name,
    validate_unit,
)

logger = logging.getLogger(__name__)


def _parse_ts(raw: str) -> datetime:
    # Accept both "...Z" and "+00:00"
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def rate_to_json(rate: Rate) -> dict:
    return {
        "category": rate.category,
        "aggregation": rate.aggregation,
        "fixed": str(rate.fixed.amount),
        "variable": str(rate.variable.amount),
        "unit": rate.unit,
        "description": rate.description,
    }


def plan_to_json(plan: RatePlan) -> dict:
    return {
        "name": plan.name,
        "description": plan.description,
        "currency": plan.currency,
        "rates": [rate_to_json(rate) for rate in plan.rates],
    }


def plan_from_json(data: dict) -> RatePlan:
    """
    Create a RatePlan from a JSON dictionary.

    Amounts are read as strings or numbers and kept exact.

    Raises:
        ValueError: If the currency, a measure name or a unit is invalid
        KeyError: If a required field is missing
    """
    currency = data.get("currency", settings.currency)
    if not validate_currency_code(currency):
        raise ValueError(f"Invalid currency {currency!r} in plan {data.get('name')!r}")

    plan = RatePlan(name=data["name"], description=data.get("description", ""), currency=currency)
    for entry in data.get("rates", []):
        category, aggregation = entry["category"], entry["aggregation"]
        if not (validate_measure_name(category) and validate_measure_name(aggregation)):
            raise ValueError(f"Invalid measure {category!r}/{aggregation!r}")
        unit = entry.get("unit", "")
        if not validate_unit(unit):
            raise ValueError(f"Invalid unit {unit!r} for {category}/{aggregation}")
        plan.add_rate(Rate(
            category=category,
            aggregation=aggregation,
            fixed=Money.of(str(entry.get("fixed", 0)), currency),
            variable=Money.of(str(entry.get("variable", 0)), currency),
            unit=unit,
            description=entry.get("description", ""),
        ))
    return plan


def _atomic_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    # Atomic write: write to temp file first, then rename atomically
    temp_fd, temp_path = tempfile.mkstemp(suffix=".json.tmp", dir=str(path.parent), text=True)
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, str(path))
    except Exception as e:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise RuntimeError(f"Failed to save {path}: {e}") from e


def save_rate_plans(plans: Iterable[RatePlan], path: Optional[Path] = None) -> None:
    """
    Save rate plans using an atomic write.

    Raises:
        RuntimeError: If the file can't be written
    """
    p = Path(path or settings.rate_plans_file)
    _atomic_write_json(p, {"plans": [plan_to_json(plan) for plan in plans]})
    logger.info("Saved rate plans to %s", p)


def load_rate_plans(path: Optional[Path] = None) -> List[RatePlan]:
    """
    Load rate plans, in file order.

    A file with invalid JSON is backed up next to the original as
    *.json.corrupt and removed. Invalid plan entries are skipped.

    Returns:
        The plans, or an empty list when the file is missing or corrupt
    """
    p = Path(path or settings.rate_plans_file)
    if not p.exists():
        logger.warning("Rate plan file %s not found", p)
        return []

    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            backup_path = p.with_suffix(".json.corrupt")
            try:
                shutil.copy2(p, backup_path)
                p.unlink()
                logger.warning("Rate plan file corrupted, backed up to %s: %s", backup_path, e)
            except OSError as backup_error:
                logger.error("Failed to backup corrupt rate plan file: %s", backup_error)
            return []

    plans = []
    for entry in data.get("plans", []):
        try:
            plans.append(plan_from_json(entry))
        except (KeyError, ValueError, TypeError, ArithmeticError) as e:
            logger.warning("Skipping invalid rate plan %r: %s", entry.get("name"), e)
    logger.info("Loaded %d rate plans from %s", len(plans), p)
    return plans


def event_to_json(event: ConsumptionEvent) -> dict:
    return {
        "id": event.id,
        "resource": {"id": event.resource.id, "type": event.resource.type_name},
        "start_time": event.start_time.isoformat(),
        "end_time": event.end_time.isoformat(),
        "measures": [
            {
                "category": key[0],
                "aggregation": key[1],
                "value": value,
                "unit": event.measure_units.get(key, ""),
            }
            for key, value in event.measures.items()
        ],
    }


def event_from_json(data: dict, resources: Optional[Dict[str, ResourceRef]] = None) -> ConsumptionEvent:
    """
    Create a ConsumptionEvent from a JSON dictionary.

    When `resources` is given, the resource reference is taken from it so
    every event of a resource shares one reference.

    Raises:
        ValueError: If the interval or a measure is invalid
        KeyError: If a required field is missing
    """
    raw_resource = data["resource"]
    resource = None
    if resources is not None:
        resource = resources.get(str(raw_resource["id"]))
    if resource is None:
        resource = ResourceRef.from_type_name(str(raw_resource["id"]), raw_resource["type"])

    start_time, end_time = _parse_ts(data["start_time"]), _parse_ts(data["end_time"])
    if not validate_interval(start_time, end_time):
        raise ValueError(f"Event interval {start_time} - {end_time} is empty")

    event = ConsumptionEvent(resource=resource, start_time=start_time, end_time=end_time)
    if data.get("id"):
        event.id = str(data["id"])
    for measure in data.get("measures", []):
        key = (measure["category"], measure["aggregation"])
        unit = measure.get("unit") or None
        if unit is not None and not validate_unit(unit):
            raise ValueError(f"Invalid unit {unit!r} for {key[0]}/{key[1]}")
        event.set_measure(key, measure["value"], unit)
    return event


def save_events(events: Iterable[ConsumptionEvent], path: Optional[Path] = None) -> None:
    p = Path(path or settings.events_file)
    _atomic_write_json(p, {"events": [event_to_json(event) for event in events]})
    logger.info("Saved events to %s", p)


def load_events(path: Optional[Path] = None,
                resources: Optional[Dict[str, ResourceRef]] = None) -> List[ConsumptionEvent]:
    """
    Load consumption events; invalid entries are skipped with a warning.

    Raises:
        RuntimeError: If the file can't be read or parsed
    """
    p = Path(path or settings.events_file)
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RuntimeError(f"Failed to load events file {p}: {e}") from e

    events = []
    for entry in data.get("events", []):
        try:
            events.append(event_from_json(entry, resources))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Skipping invalid event %r: %s", entry.get("id"), e)
    logger.info("Loaded %d events from %s", len(events), p)
    return events
