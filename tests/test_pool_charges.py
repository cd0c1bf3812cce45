# tests/test_pool_charges.py
"""
Pool Charge Tests - Unit Tests for Events and Charges inside a Pool

This module contains unit tests for attaching and detaching events,
setting and clearing charges, sums and rate-plan based calculation.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- showback.domain.pool (Pool)
- showback.domain.models (Charge, Rate, RatePlan)
- showback.domain.money (Money)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from showback.domain.models import CPU_AVERAGE, Charge, Rate, RatePlan, ResourceRef
from showback.domain.money import Money


def cpu_average_rate(fixed, variable):
    return Rate("CPU", "average", fixed=Money.of(fixed), variable=Money.of(variable))


class TestPoolEvents:
    def test_add_event(self, pool, event):
        charge = pool.add_event(event)
        assert len(pool.events) == 1
        assert event in pool.events
        assert charge.cost == Money.zero()
        assert charge.pool_id == pool.id

    def test_duplicate_event_is_recorded(self, pool, event):
        pool.add_event(event)
        assert pool.add_event(event) is None
        assert {"error": "duplicate"} in pool.errors.on("events")
        assert len(pool.events) == 1

    def test_add_event_of_wrong_type(self, pool, resource):
        pool.add_event(resource)
        assert {"error": "Error Type ResourceRef is not ConsumptionEvent"} in pool.errors.on("events")
        assert pool.events == []

    def test_remove_event(self, pool, event):
        pool.add_event(event)
        assert pool.remove_event(event) is event
        assert event not in pool.events
        assert pool.charges == []

    def test_remove_missing_event_is_recorded(self, pool, event):
        pool.add_event(event)
        pool.remove_event(event)
        assert pool.remove_event(event) is None
        assert {"error": "not found"} in pool.errors.on("events")

    def test_remove_event_of_wrong_type(self, pool, resource):
        pool.remove_event(resource)
        assert {"error": "Error Type ResourceRef is not ConsumptionEvent"} in pool.errors.on("events")

    def test_each_event_gets_one_charge(self, pool, event, event2):
        pool.add_event(event)
        pool.add_event(event2)
        assert len(pool.charges) == 2
        assert pool.find_charge(event).event is event
        assert pool.find_charge(event2).event is event2


class TestPoolCharges:
    def test_add_charge_to_own_charge(self, pool, event):
        charge = pool.add_event(event)
        pool.add_charge(charge, 2)
        assert charge.cost == Money.of(2)

    def test_add_charge_ignores_charge_of_other_pool(self, pool, service, resource, event):
        other = service.new_pool(resource, pool.start_time, pool.end_time)
        charge = other.add_event(event)
        charge.cost = 7

        assert pool.add_charge(charge, 2) is None
        assert charge.cost == Money.of(7)
        assert charge.pool_id != pool.id
        assert {"error": "not found"} in pool.errors.on("charges")

    def test_add_charge_attaches_new_event(self, pool, event):
        pool.add_charge(event, 5)
        assert len(pool.charges) == 1
        assert pool.get_charge(event) == Money.of(5)

    def test_add_charge_updates_existing_event(self, pool, event):
        charge = pool.add_event(event)
        pool.add_charge(event, 5)
        assert charge.cost == Money.of(5)
        assert len(pool.charges) == 1

    def test_get_charge_from_charge(self, pool, event):
        pool.add_charge(event, 10)
        charge = pool.find_charge(event)
        assert pool.get_charge(charge) == Money.of(10)

    def test_get_charge_from_event(self, pool, event):
        pool.add_charge(event, 10)
        assert pool.get_charge(event) == Money.of(10)

    def test_get_charge_from_none_is_zero(self, pool):
        assert pool.get_charge(None) == 0

    def test_get_charge_of_foreign_event_is_zero(self, pool, event):
        assert pool.get_charge(event) == 0

    def test_update_charge(self, pool, event):
        charge = pool.add_event(event)
        assert pool.update_charge(charge, 5) == Money.of(5)
        assert charge.cost == Money.of(5)

    def test_update_charge_outside_pool_returns_none(self, pool, event):
        foreign = Charge(event, "another-pool")
        assert pool.update_charge(foreign, 5) is None
        assert foreign.cost == 0
        assert not pool.errors

    def test_clear_charge(self, pool, event):
        charge = pool.add_event(event)
        charge.cost = Money.of(5)
        pool.clear_charge(charge)
        assert charge.cost == Money.of(0)

    def test_clean_all_charges(self, pool, event, event2):
        pool.add_charge(event, Money.of(57))
        pool.add_charge(event2, Money.of(123))
        pool.clean_all_charges()
        for charge in pool.charges:
            assert charge.cost == Money.of(0)

    def test_sum_of_charges(self, pool, event, event2):
        pool.add_charge(event, Money.of(57))
        pool.add_charge(event2, Money.of(123))
        assert pool.sum_of_charges() == Money.of(180)
        assert pool.accumulated_cost == Money.of(180)

    def test_accumulated_cost_follows_mutations(self, pool, event, event2):
        pool.add_charge(event, 57)
        pool.add_charge(event2, 123)
        pool.remove_event(event)
        assert pool.accumulated_cost == Money.of(123)

    def test_sum_of_empty_pool_is_zero(self, pool):
        assert pool.sum_of_charges() == Money.zero()


class TestPoolRating:
    def test_find_price_plan_returns_first_plan(self, pool, store, enterprise_plan):
        store.put_plan(RatePlan(name="Second"))
        assert pool.find_price_plan() is enterprise_plan

    def test_find_price_plan_without_plans(self, pool):
        assert pool.find_price_plan() is None

    def test_calculate_charge_of_foreign_charge(self, pool, event):
        foreign = Charge(event, "another-pool", cost=Money.of(10))
        assert pool.calculate_charge(foreign) == Money.of(0)
        assert {"error": "not found"} in foreign.errors.on("charge")
        assert foreign.cost == Money.of(10)

    def test_calculate_charge_of_none(self, pool, enterprise_plan):
        assert pool.find_price_plan() is enterprise_plan
        assert pool.calculate_charge(None) == 0
        assert {"error": "not found"} in pool.errors.on("charge")

    def test_calculate_charge(self, pool, event2, enterprise_plan):
        enterprise_plan.add_rate(cpu_average_rate(67, 12))
        pool.add_event(event2)
        charge = pool.find_charge(event2)
        charge.cost = Money.of(0)

        result = pool.calculate_charge(charge)

        expected = Money.of(event2.get_measure_value("CPU", "average") * 12 + 67)
        assert result == expected
        assert charge.cost == expected

    def test_calculate_charge_sums_every_matching_rate(self, pool, event, enterprise_plan):
        enterprise_plan.add_rate(cpu_average_rate(67, 12))
        enterprise_plan.add_rate(Rate("MEM", "max_mem", fixed=Money.of(1), variable=Money.of("0.01")))
        pool.add_event(event)
        # 67 + 12 * 50.25 + 1 + 0.01 * 2048
        assert pool.calculate_charge(pool.find_charge(event)) == Money.of("691.48")

    def test_unmatched_rate_charges_nothing(self, pool, event, enterprise_plan):
        enterprise_plan.add_rate(Rate("NET", "bytes_sent", fixed=Money.of(5), variable=Money.of(1)))
        pool.add_event(event)
        assert pool.calculate_charge(pool.find_charge(event)) == 0

    def test_calculate_charge_without_plan_is_zero(self, pool, event):
        pool.add_charge(event, 99)
        assert pool.calculate_charge(pool.find_charge(event)) == 0
        assert pool.errors.on("price_plan")

    def test_calculate_all_charges(self, pool, store, enterprise_plan, make_event):
        other_vm = ResourceRef.from_type_name("7", "Vm")
        enterprise_plan.add_rate(cpu_average_rate(67, 12))
        ev = make_event(res=other_vm)
        ev2 = make_event(cpu_average=3.0, res=other_vm)
        pool.add_event(ev)
        pool.add_event(ev2)
        for charge in pool.charges:
            assert charge.cost == Money.of(0)

        total = pool.calculate_all_charges()

        for charge in pool.charges:
            assert charge.cost != Money.of(0)
        assert total == Money.of("670.00") + Money.of(103)

    def test_calculation_is_order_independent(self, service, resource, enterprise_plan, make_event):
        enterprise_plan.add_rate(cpu_average_rate(67, 12))
        events = [make_event(cpu_average=v) for v in (1.0, 2.5, 7.75)]
        first = service.new_pool(resource, events[0].start_time, events[0].end_time)
        second = service.new_pool(resource, events[0].start_time, events[0].end_time)
        for e in events:
            first.add_event(e)
        for e in reversed(events):
            second.add_event(e)
        assert first.calculate_all_charges() == second.calculate_all_charges()

    @pytest.mark.parametrize("measure,expected", [
        (0.125, "68.50"),   # 67 + 1.5
        (0.12625, "68.52"),  # 67 + 1.515 rounds half-even
        (0.12875, "68.54"),  # 67 + 1.545 rounds half-even
    ])
    def test_rounding_is_half_even(self, pool, event, enterprise_plan, measure, expected):
        enterprise_plan.add_rate(cpu_average_rate(67, 12))
        event.set_measure(CPU_AVERAGE, measure)
        pool.add_event(event)
        assert pool.calculate_charge(pool.find_charge(event)) == Money.of(expected)
