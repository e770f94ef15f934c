"""Test the budget store and its invariants."""

import numpy as np
import pytest

from route_budgets.budgets.store import BudgetStore
from route_budgets.core.tables import NetPinTable
from route_budgets.exceptions import InvariantViolation, PreconditionViolation

NS = 1e-9


@pytest.fixture
def store(two_net_netlist):
    store = BudgetStore()
    store.allocate(two_net_netlist)
    return store


def test_new_store_is_inactive():
    store = BudgetStore()
    assert not store.is_active()
    with pytest.raises(PreconditionViolation):
        store.get_min(0, 1)
    with pytest.raises(PreconditionViolation):
        store.get_target(0, 1)


def test_allocate_initial_values(store):
    tables = store.tables
    assert store.is_active()
    assert tables.lower_bound.to_nested() == [[0.0, 0.0, 0.0], [0.0, 0.0]]
    assert tables.upper_bound[0, 1] == pytest.approx(100 * NS)
    assert tables.upper_bound[1, 1] == pytest.approx(100 * NS)
    assert tables.max_budget[0, 2] == tables.lower_bound[0, 2]
    assert tables.congestion.tolist() == [0, 0]


def test_driver_pin_is_rejected(store):
    with pytest.raises(PreconditionViolation):
        store.get_max(0, 0)
    with pytest.raises(PreconditionViolation):
        store.get_min(1, 0)


def test_out_of_range_pin_is_rejected(store):
    with pytest.raises(PreconditionViolation):
        store.get_max(1, 2)
    with pytest.raises(PreconditionViolation):
        store.get_max(2, 1)


def test_teardown_deactivates(store):
    store.teardown()
    assert not store.is_active()
    with pytest.raises(PreconditionViolation):
        store.get_max(0, 1)


def test_clamp_into_bounds(store, two_net_netlist):
    table = NetPinTable.from_nested([[5.0, -1 * NS, 200 * NS], [5.0, 3 * NS]])
    store.clamp(table)
    assert table[0, 1] == 0.0
    assert table[0, 2] == pytest.approx(100 * NS)
    assert table[1, 1] == pytest.approx(3 * NS)
    # driver slot untouched
    assert table[0, 0] == 5.0


def test_enforce_min_le_max_never_raises_max(store):
    tables = store.tables
    tables.max_budget.sinks(0)[:] = [2 * NS, 5 * NS]
    tables.min_budget.sinks(0)[:] = [3 * NS, 1 * NS]
    store.enforce_min_le_max()
    assert tables.min_budget.sinks(0).tolist() == pytest.approx([2 * NS, 1 * NS])
    assert tables.max_budget.sinks(0).tolist() == pytest.approx([2 * NS, 5 * NS])


def test_targets_lean_towards_min(store):
    tables = store.tables
    tables.min_budget.sinks(0)[:] = [0.0, 1 * NS]
    tables.max_budget.sinks(0)[:] = [10 * NS, 1.1 * NS]
    store.calculate_targets()
    assert tables.target[0, 1] == pytest.approx(0.1 * NS)
    assert tables.target[0, 2] == pytest.approx(1.05 * NS)


def test_check_invariants_passes_after_allocate(store):
    store.calculate_targets()
    store.check_invariants()


def test_check_invariants_names_pin(store):
    tables = store.tables
    tables.min_budget[1, 1] = 2 * NS
    tables.max_budget[1, 1] = 1 * NS
    with pytest.raises(InvariantViolation, match="net 1 pin 1"):
        store.check_invariants()


def test_floor(store):
    table = NetPinTable.from_nested([[0.0, -3 * NS, 2 * NS], [0.0, -0.5 * NS]])
    store.floor(table, -1 * NS)
    assert np.allclose(table.sinks(0), [-1 * NS, 2 * NS])
    assert table[1, 1] == pytest.approx(-0.5 * NS)
