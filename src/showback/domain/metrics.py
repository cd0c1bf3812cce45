# src/showback/domain/metrics.py
"""
Metric Extractors - Per-Resource Measure Derivation

Each extractor derives one measure of a consumption event from a new raw
sample, the measure already stored on the event and a read-only view of
the resource. Extractors are registered per (resource kind, category,
aggregation); a registration with kind None applies to every kind.

Files that USE this module:
- showback.application.rating_service (records samples on events)
- tests.test_metrics (unit tests)

Files that this module USES:
- showback.domain.models (ResourceKind, ResourceRef, measure keys)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Tuple

from showback.domain.models import (
    CPU_AVERAGE,
    CPU_MAX_NUMBER_OF_CPU,
    CPU_NUMBER,
    MEM_MAX_MEM,
    MeasureKey,
    ResourceKind,
    ResourceRef,
)

logger = logging.getLogger(__name__)


class ResourceView(Protocol):
    """
    Read-only view of an inventory resource.

    Generic resources may also expose `cpu_total_cores` and `ram_size`;
    a missing attribute means the capability is not present.
    """
    reference: ResourceRef

    def latest_performance_state(self) -> Optional[Mapping[str, Any]]:
        ...


@dataclass(frozen=True)
class ExtractionContext:
    resource: ResourceView
    days_elapsed: int = 0


Extractor = Callable[[Optional[float], Optional[float], ExtractionContext], float]

_REGISTRY: Dict[Tuple[Optional[ResourceKind], str, str], Extractor] = {}


def register(key: MeasureKey, kind: Optional[ResourceKind] = None):
    """Decorator registering an extractor for a measure key."""
    def decorator(func: Extractor) -> Extractor:
        _REGISTRY[(kind, key[0], key[1])] = func
        return func
    return decorator


def get_extractor(kind: ResourceKind, category: str, aggregation: str) -> Optional[Extractor]:
    """Kind-specific extractor first, then the one shared by all kinds."""
    return _REGISTRY.get((kind, category, aggregation)) or _REGISTRY.get((None, category, aggregation))


def _latest_state_value(resource: ResourceView, name: str) -> float:
    state = resource.latest_performance_state()
    if not state:
        logger.debug("No performance state for %s, %s defaults to 0", resource.reference, name)
        return 0
    return state.get(name) or 0


def _capability(resource: ResourceView, name: str) -> float:
    return getattr(resource, name, None) or 0


@register(CPU_AVERAGE)
def cpu_average(sample, previous, context):
    """Running average; the new sample is weighted by the days already elapsed."""
    if previous is None:
        return sample
    days = context.days_elapsed
    return (sample * days + previous) / (days + 1)


@register(CPU_NUMBER)
def cpu_number(sample, previous, context):
    return sample


@register(CPU_MAX_NUMBER_OF_CPU)
def cpu_max_number_of_cpu(sample, previous, context):
    resource = context.resource
    if resource.reference.kind == ResourceKind.CONTAINER:
        numcpus = _latest_state_value(resource, "numvcpus")
    else:
        numcpus = _capability(resource, "cpu_total_cores")
    return int(max(previous or 0, numcpus))


@register(MEM_MAX_MEM)
def mem_max_mem(sample, previous, context):
    # Unlike cpu_max_number_of_cpu this does not keep a running max.
    resource = context.resource
    if resource.reference.kind == ResourceKind.CONTAINER:
        return _latest_state_value(resource, "total_mem")
    return _capability(resource, "ram_size")


def extract(key: MeasureKey, sample: Optional[float], previous: Optional[float],
            context: ExtractionContext) -> Optional[float]:
    """
    Derive the new value of `key`.

    Keys without a registered extractor keep the raw sample.
    """
    extractor = get_extractor(context.resource.reference.kind, key[0], key[1])
    if extractor is None:
        logger.debug("No extractor for %s/%s, storing sample as-is", key[0], key[1])
        return sample
    return extractor(sample, previous, context)
