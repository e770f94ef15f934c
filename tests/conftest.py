"""Pytest fixtures for testing."""

import networkx as nx
import numpy as np
import pytest

from route_budgets.core.netlist import Net, Netlist, Pin
from route_budgets.core.tables import NetPinTable
from route_budgets.timing.graph_oracle import GraphTimingOracle
from route_budgets.timing.oracle import TimingOracle, TimingSnapshot, TimingTag

NS = 1e-9


class FixedSnapshot(TimingSnapshot):
    """Every timing node sits on one path start -> node -> 'end'.

    Arrival at the node is ``arrival``, its required time ``required`` and the
    endpoint requires ``final_required``, so each node's path delay is
    ``arrival + final_required - required``.
    """

    def __init__(self, slack=0.0, arrival=1 * NS, required=9 * NS, final_required=10 * NS,
                 untimed=()):
        self._slack = slack
        self._arrival = arrival
        self._required = required
        self._final_required = final_required
        self._untimed = set(untimed)

    def slack(self, node, mode):
        if node in self._untimed:
            return float('inf')
        return self._slack

    def arrival_tags(self, node, mode):
        if node == 'end':
            return frozenset()
        return frozenset({TimingTag(self._arrival, 'start')})

    def required_tags(self, node, mode):
        if node == 'end':
            return frozenset({TimingTag(self._final_required, 'end')})
        return frozenset({TimingTag(self._required, 'end')})


class FixedOracle(TimingOracle):
    """Returns the same snapshot on every refresh and counts the calls."""

    def __init__(self, snapshot):
        self.snapshot = snapshot
        self.refresh_count = 0

    def refresh(self, delay_table):
        self.refresh_count += 1
        return self.snapshot


@pytest.fixture
def two_net_netlist():
    """net0: ff0 -> (lut1, ff3); net1: lut1 -> ff2."""
    return Netlist(nets=[
        Net(net_id=0, pins=[
            Pin("ff0", ("ff0.q",)),
            Pin("lut1", ("lut1.in",)),
            Pin("ff3", ("ff3.d",)),
        ], name="n0"),
        Net(net_id=1, pins=[
            Pin("lut1", ("lut1.out",)),
            Pin("ff2", ("ff2.d",)),
        ], name="n1"),
    ])


@pytest.fixture
def two_net_delays():
    return NetPinTable.from_nested([
        [0.0, 1 * NS, 2 * NS],
        [0.0, 1.5 * NS],
    ])


@pytest.fixture
def two_net_graph():
    graph = nx.DiGraph()
    graph.add_edge("ff0.q", "lut1.in", net=(0, 1))
    graph.add_edge("ff0.q", "ff3.d", net=(0, 2))
    graph.add_edge("lut1.in", "lut1.out", delay=0.5 * NS)
    graph.add_edge("lut1.out", "ff2.d", net=(1, 1))
    return graph


@pytest.fixture
def two_net_oracle(two_net_graph):
    return GraphTimingOracle(two_net_graph, clock_period=10 * NS, hold_time=0.0)


@pytest.fixture
def fixed_netlist():
    """Three nets whose sink pins each resolve to one timing node."""
    return Netlist(nets=[
        Net(net_id=i, pins=[Pin(f"b{i}", (f"n{i}.drv",))] + [
            Pin(f"b{i}_{j}", (f"n{i}.s{j}",)) for j in range(1, num_pins)
        ])
        for i, num_pins in enumerate([2, 3, 4])
    ])


@pytest.fixture
def fixed_delays(fixed_netlist):
    return NetPinTable.full(fixed_netlist, 1 * NS)


def random_design(seed, num_nets=8, max_fanout=4):
    """Random acyclic design: nets chained through fixed cell delays."""
    rng = np.random.default_rng(seed)
    graph = nx.DiGraph()
    nets = []
    delays = []
    sink_nodes = []

    for inet in range(num_nets):
        num_pins = int(rng.integers(2, max_fanout + 2))
        driver = f"d{inet}"
        if sink_nodes and rng.random() < 0.7:
            source = sink_nodes[int(rng.integers(len(sink_nodes)))]
            graph.add_edge(source, driver, delay=float(rng.uniform(0.1, 1.0)) * NS)
        else:
            graph.add_node(driver)

        pins = [Pin(f"blk{inet}", (driver,))]
        row = [0.0]
        for ipin in range(1, num_pins):
            sink = f"s{inet}_{ipin}"
            graph.add_edge(driver, sink, net=(inet, ipin))
            pins.append(Pin(f"blk{inet}_{ipin}", (sink,)))
            row.append(float(rng.uniform(0.2, 3.0)) * NS)
            sink_nodes.append(sink)
        nets.append(Net(net_id=inet, pins=pins))
        delays.append(row)

    oracle = GraphTimingOracle(graph, clock_period=float(rng.uniform(5.0, 20.0)) * NS)
    return Netlist(nets=nets), NetPinTable.from_nested(delays), oracle


@pytest.fixture
def make_fixed_oracle():
    """Factory: ``make_fixed_oracle(slack=..., ...)`` -> FixedOracle."""
    def _make(**kwargs):
        return FixedOracle(FixedSnapshot(**kwargs))
    return _make


@pytest.fixture
def make_random_design():
    return random_design
