# tests/conftest.py
"""
Shared Test Fixtures - Resources, Events, Pools and Plans

Files that USE this module:
- pytest (fixtures for every test module)

Files that this module USES:
- showback.adapters.persistence.memory_store (MemoryStore)
- showback.application.pool_service (PoolService)
- showback.config (Settings)
- showback.domain.models (ResourceRef, ConsumptionEvent, RatePlan)
"""
import pytest  # Testing framework for writing and running tests

from datetime import datetime, timezone  # Date/time utilities for event intervals

from showback.adapters.persistence.memory_store import MemoryStore
from showback.application.pool_service import PoolService
from showback.config import Settings
from showback.domain.models import (
    CPU_AVERAGE,
    CPU_MAX_NUMBER_OF_CPU,
    MEM_MAX_MEM,
    ConsumptionEvent,
    RatePlan,
    ResourceRef,
)

MONTH_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
MONTH_END = datetime(2024, 2, 1, tzinfo=timezone.utc)


@pytest.fixture
def test_settings():
    return Settings(currency="USD", pool_period_days=31)


@pytest.fixture
def resource():
    return ResourceRef.from_type_name("42", "Vm")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def service(store, test_settings):
    return PoolService(store, test_settings)


@pytest.fixture
def pool(service, resource):
    """Unsaved OPEN pool covering January 2024."""
    return service.new_pool(resource, MONTH_START, MONTH_END)


@pytest.fixture
def make_event(resource):
    def factory(cpu_average=50.25, numcpus=4, max_mem=2048, res=None):
        event = ConsumptionEvent(resource=res or resource, start_time=MONTH_START, end_time=MONTH_END)
        event.set_measure(CPU_AVERAGE, cpu_average)
        event.set_measure(CPU_MAX_NUMBER_OF_CPU, numcpus)
        event.set_measure(MEM_MAX_MEM, max_mem)
        return event
    return factory


@pytest.fixture
def event(make_event):
    return make_event()


@pytest.fixture
def event2(make_event):
    return make_event(cpu_average=10.5)


@pytest.fixture
def enterprise_plan(store):
    plan = RatePlan(name="Enterprise", description="Default enterprise plan")
    store.put_plan(plan)
    return plan
