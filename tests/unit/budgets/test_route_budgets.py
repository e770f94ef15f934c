"""Test the router-facing RouteBudgets facade."""

import logging

import pytest

from route_budgets.budgets.manager import RouteBudgets
from route_budgets.config import BudgetAlgorithm, BudgetConfig
from route_budgets.core.tables import NetPinTable
from route_budgets.exceptions import PreconditionViolation

NS = 1e-9


class TestDisabled:
    """Tests with budgets switched off."""

    def test_disabled_is_inactive(self, two_net_netlist, two_net_delays):
        budgets = RouteBudgets(BudgetConfig(algorithm=BudgetAlgorithm.DISABLE))
        assert budgets.load(two_net_netlist, two_net_delays) is False
        assert not budgets.is_active()

    @pytest.mark.parametrize("getter", [
        "get_min", "get_max", "get_target", "get_short_path_criticality"
    ])
    def test_every_getter_fails(self, getter, two_net_netlist, two_net_delays):
        budgets = RouteBudgets()
        budgets.load(two_net_netlist, two_net_delays)
        with pytest.raises(PreconditionViolation):
            getattr(budgets, getter)(0, 1)

    def test_disable_after_load_tears_down(self, two_net_oracle, two_net_netlist, two_net_delays):
        budgets = RouteBudgets(BudgetConfig(algorithm="minimax"), oracle=two_net_oracle)
        budgets.load(two_net_netlist, two_net_delays)
        assert budgets.is_active()

        budgets.config.algorithm = BudgetAlgorithm.DISABLE
        budgets.load(two_net_netlist, two_net_delays)
        assert not budgets.is_active()


class TestMinimax:
    """Tests with PERT budgets."""

    @pytest.fixture
    def budgets(self, two_net_oracle, two_net_netlist, two_net_delays):
        budgets = RouteBudgets(BudgetConfig(algorithm="minimax"), oracle=two_net_oracle)
        budgets.load(two_net_netlist, two_net_delays)
        return budgets

    def test_active_with_window(self, budgets, two_net_netlist):
        assert budgets.is_active()
        assert budgets.last_pert_result is not None
        for inet, ipin in two_net_netlist.sink_pins():
            assert budgets.get_min(inet, ipin) <= budgets.get_target(inet, ipin) <= budgets.get_max(inet, ipin)

    def test_driver_pin_rejected(self, budgets):
        with pytest.raises(PreconditionViolation):
            budgets.get_target(0, 0)

    def test_requires_oracle(self, two_net_netlist, two_net_delays):
        budgets = RouteBudgets(BudgetConfig(algorithm="minimax"))
        with pytest.raises(PreconditionViolation):
            budgets.load(two_net_netlist, two_net_delays)

    def test_congestion_relaxes_min(self, budgets):
        tables = budgets.store.tables
        tables.min_budget[1, 1] = 2 * NS
        tables.max_budget[1, 1] = max(tables.max_budget[1, 1], 3 * NS)
        tables.target[1, 1] = 2.1 * NS

        for _ in range(3):
            budgets.update_congested(1)
        assert budgets.relax() >= 1
        assert budgets.get_min(1, 1) == pytest.approx(2 * NS - 1e-12)

        budgets.update_uncongested(1)
        assert budgets.relax() == 0


class TestScaleDelay:
    """Tests with criticality-scaled budgets."""

    def test_requires_criticalities(self, two_net_netlist, two_net_delays):
        budgets = RouteBudgets(BudgetConfig(algorithm="scale_delay"))
        with pytest.raises(PreconditionViolation):
            budgets.load(two_net_netlist, two_net_delays)

    def test_short_path_criticality(self, two_net_netlist, two_net_delays):
        criticalities = NetPinTable.from_nested([[0.0, 0.995, 0.0], [0.0, 0.5]])
        budgets = RouteBudgets(BudgetConfig(algorithm="scale_delay"))
        budgets.load(two_net_netlist, two_net_delays, criticalities)

        # target 0.1 ns over a lower bound of 0 -> fully tight
        assert budgets.get_short_path_criticality(0, 1) == pytest.approx(1.0)

        budgets.store.tables.lower_bound[0, 1] = 0.025 * NS
        assert budgets.get_short_path_criticality(0, 1) == pytest.approx(0.75 ** 0.5)

    def test_short_path_criticality_zero_target(self, two_net_netlist):
        delays = NetPinTable.zeros(two_net_netlist)
        criticalities = NetPinTable.full(two_net_netlist, 0.9)
        budgets = RouteBudgets(BudgetConfig(algorithm="scale_delay"))
        budgets.load(two_net_netlist, delays, criticalities)

        assert budgets.get_target(1, 1) == 0.0
        assert budgets.get_short_path_criticality(1, 1) == 0.0


class TestDump:
    """Tests for the debug dump."""

    def test_dump_writes_file(self, tmp_path, two_net_netlist, two_net_delays):
        budgets = RouteBudgets(BudgetConfig(algorithm="scale_delay"))
        budgets.load(two_net_netlist, two_net_delays, NetPinTable.zeros(two_net_netlist))

        path = tmp_path / "route_budget.txt"
        assert budgets.dump(path) is True
        assert "Target Delay Budgets:" in path.read_text()

    def test_unwritable_dump_is_reported(self, tmp_path, caplog, two_net_netlist, two_net_delays):
        budgets = RouteBudgets(BudgetConfig(algorithm="scale_delay"))
        budgets.load(two_net_netlist, two_net_delays, NetPinTable.zeros(two_net_netlist))

        with caplog.at_level(logging.ERROR):
            assert budgets.dump(tmp_path / "no_such_dir" / "budget.txt") is False
        assert "dump failed" in caplog.text
        # budgets are still usable
        assert budgets.get_max(0, 1) == 100 * NS
