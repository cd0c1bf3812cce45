# tests/test_rating.py
"""
Rating Tests - Unit Tests for Cost Computation and the Rating Service

This module contains unit tests for computing event costs under rate
plans, unit normalization of measures, and the service that folds raw
samples into events and rates whole pools.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- showback.domain.rating (compute_cost, normalized_measure)
- showback.application.rating_service (RatingService)
- showback.adapters.inventory (StaticResource)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from datetime import timedelta  # Sample timestamps inside the event interval

from showback.adapters.inventory import StaticResource
from showback.application.rating_service import RatingService
from showback.domain.errors import EventLockedError
from showback.domain.lifecycle import PoolState
from showback.domain.models import (
    CPU_AVERAGE,
    CPU_MAX_NUMBER_OF_CPU,
    MEM_MAX_MEM,
    Rate,
    RatePlan,
)
from showback.domain.money import Money
from showback.domain.rating import compute_cost, default_plan_resolver, normalized_measure


def mem_rate(unit, fixed=0, variable=1, currency="USD"):
    return Rate("MEM", "max_mem", fixed=Money.of(fixed, currency),
                variable=Money.of(variable, currency), unit=unit)


class TestComputeCost:
    def test_no_plan_costs_nothing(self, event):
        assert compute_cost(event, None, "USD") == Money.zero()

    def test_fixed_plus_variable(self, event):
        plan = RatePlan("Basic", rates=[Rate("CPU", "number", fixed=Money.of(1), variable=Money.of(1))])
        event.set_measure(("CPU", "number"), 3)
        assert compute_cost(event, plan, "USD") == Money.of(4)

    def test_missing_measure_contributes_nothing(self, event):
        plan = RatePlan("Net", rates=[Rate("NET", "bytes_sent", fixed=Money.of(9), variable=Money.of(1))])
        assert compute_cost(event, plan, "USD") == 0

    def test_rate_in_other_currency_is_skipped(self, event, caplog):
        plan = RatePlan("Mixed", rates=[
            Rate("CPU", "average", fixed=Money.of(1, "EUR"), variable=Money.of(1, "EUR")),
            Rate("CPU", "max_number_of_cpu", fixed=Money.of(0), variable=Money.of(2)),
        ])
        assert compute_cost(event, plan, "USD") == Money.of(8)
        assert "Skipping rate CPU/average" in caplog.text

    def test_sub_cent_prices_survive_until_rounding(self, event):
        plan = RatePlan("Storage", rates=[mem_rate("", variable="0.0001")])
        # 2048 * 0.0001 = 0.2048
        assert compute_cost(event, plan, "USD") == Money.of("0.20")

    def test_result_uses_minor_unit_of_currency(self, event):
        plan = RatePlan("Yen", currency="JPY", rates=[mem_rate("", variable="0.3", currency="JPY")])
        assert compute_cost(event, plan, "JPY") == Money.of(614, "JPY")


class TestUnitNormalization:
    def test_measure_is_converted_to_rate_unit(self, event):
        event.set_measure(MEM_MAX_MEM, 2048, "MiB")
        assert normalized_measure(event, mem_rate("GiB")) == 2

    def test_unitless_sides_use_raw_value(self, event):
        event.set_measure(MEM_MAX_MEM, 2048, "MiB")
        assert normalized_measure(event, mem_rate("")) == 2048
        event.measure_units.clear()
        assert normalized_measure(event, mem_rate("GiB")) == 2048

    def test_cost_is_priced_per_rate_unit(self, event):
        event.set_measure(MEM_MAX_MEM, 2048, "MiB")
        plan = RatePlan("Memory", rates=[mem_rate("GiB", fixed="0.5", variable=3)])
        assert compute_cost(event, plan, "USD") == Money.of("6.50")

    def test_si_and_binary_units_mix(self, event):
        event.set_measure(MEM_MAX_MEM, 1, "GiB")
        assert normalized_measure(event, mem_rate("MB")) == pytest.approx(1073.741824)

    def test_unconvertible_unit_falls_back_to_raw_value(self, event, caplog):
        event.measure_units[MEM_MAX_MEM] = "Mfoo"
        assert normalized_measure(event, mem_rate("GiB")) == 2048
        assert "using raw measure" in caplog.text


class TestPlanResolver:
    def test_first_plan_wins(self, resource):
        plans = [RatePlan("A"), RatePlan("B")]
        assert default_plan_resolver(lambda: plans)(resource) is plans[0]

    def test_no_plans(self, resource):
        assert default_plan_resolver(lambda: [])(resource) is None

    def test_resolver_sees_plans_added_later(self, resource):
        plans = []
        resolve = default_plan_resolver(lambda: plans)
        plans.append(RatePlan("Late"))
        assert resolve(resource).name == "Late"


class TestRatingService:
    @pytest.fixture
    def rating(self):
        return RatingService()

    @pytest.fixture
    def inventory_vm(self, resource):
        return StaticResource(resource, cpu_total_cores=6, ram_size=8192)

    def test_record_samples_uses_elapsed_days(self, rating, inventory_vm, event):
        # new sample 20.25 weighted by two elapsed days, previous 50.25
        as_of = event.start_time + timedelta(days=2, hours=3)
        measures = rating.record_samples(event, inventory_vm, {CPU_AVERAGE: 20.25}, as_of=as_of)
        assert measures[CPU_AVERAGE] == pytest.approx(30.25)

    def test_record_samples_reads_inventory(self, rating, inventory_vm, event):
        rating.record_samples(event, inventory_vm, {CPU_MAX_NUMBER_OF_CPU: None, MEM_MAX_MEM: None},
                              as_of=event.end_time)
        assert event.get_measure_value(*CPU_MAX_NUMBER_OF_CPU) == 6
        assert event.get_measure_value(*MEM_MAX_MEM) == 8192

    def test_missing_sample_without_extractor_is_not_stored(self, rating, inventory_vm, event):
        rating.record_samples(event, inventory_vm, {("NET", "bytes_sent"): None})
        assert ("NET", "bytes_sent") not in event.measures

    def test_closed_pool_event_rejects_samples(self, rating, inventory_vm, service, resource, event):
        pool = service.create_pool(resource, event.start_time, event.end_time, state=PoolState.PROCESSING)
        pool.add_event(event)
        service.transition(pool, PoolState.CLOSED)
        with pytest.raises(EventLockedError):
            rating.record_samples(event, inventory_vm, {CPU_AVERAGE: 1.0})

    def test_rate_event(self, rating, pool, event, enterprise_plan):
        enterprise_plan.add_rate(Rate("CPU", "max_number_of_cpu", fixed=Money.of(0), variable=Money.of(10)))
        pool.add_event(event)
        assert rating.rate_event(pool, event) == Money.of(40)
        assert pool.get_charge(event) == Money.of(40)

    def test_rate_pool_returns_total(self, rating, pool, event, event2, enterprise_plan):
        enterprise_plan.add_rate(Rate("CPU", "average", fixed=Money.of(67), variable=Money.of(12)))
        pool.add_event(event)
        pool.add_event(event2)
        assert rating.rate_pool(pool) == Money.of(670) + Money.of(193)
        assert pool.accumulated_cost == Money.of(863)

    def test_rate_pool_without_plan(self, rating, pool, event, caplog):
        pool.add_charge(event, 12)
        assert rating.rate_pool(pool) == 0
        assert "has no price plan" in caplog.text
