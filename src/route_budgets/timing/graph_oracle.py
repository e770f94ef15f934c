"""Reference timing oracle over a networkx timing graph.

Nodes are timing pins; edges carry either a fixed ``delay`` (cell or
intra-block delay) or a ``net=(inet, ipin)`` reference whose delay is read
from the table passed to ``refresh``. Startpoints (no fan-in) launch at time
0, endpoints (no fan-out) capture against ``clock_period`` for setup and
``hold_time`` for hold. A node attribute ``timed=False`` on a startpoint or
endpoint removes it from analysis, which leaves the paths through it
unconstrained.

Tags are tracked per origin, so a node fed by two startpoints carries two
arrival tags.
"""

import logging
from typing import Callable, Dict, FrozenSet, Hashable, List, Tuple

import networkx as nx

from .oracle import TimingMode, TimingOracle, TimingSnapshot, TimingTag


logger = logging.getLogger(__name__)

_TagMap = Dict[Hashable, FrozenSet[TimingTag]]
_EMPTY: FrozenSet[TimingTag] = frozenset()


class GraphTimingSnapshot(TimingSnapshot):
    """Immutable per-mode arrival/required tags of one analysis run."""

    def __init__(
        self,
        arrival: Dict[TimingMode, _TagMap],
        required: Dict[TimingMode, _TagMap],
        critical_path_delay: float
    ):
        self._arrival = arrival
        self._required = required
        self._critical_path_delay = critical_path_delay

    @property
    def critical_path_delay(self) -> float:
        """Longest setup arrival time over all timed endpoints."""
        return self._critical_path_delay

    def arrival_tags(self, node: Hashable, mode: TimingMode) -> FrozenSet[TimingTag]:
        return self._arrival[mode].get(node, _EMPTY)

    def required_tags(self, node: Hashable, mode: TimingMode) -> FrozenSet[TimingTag]:
        return self._required[mode].get(node, _EMPTY)

    def slack(self, node: Hashable, mode: TimingMode) -> float:
        arrivals = self.arrival_tags(node, mode)
        requireds = self.required_tags(node, mode)
        if not arrivals or not requireds:
            return float('inf')

        if mode is TimingMode.SETUP:
            return min(t.time for t in requireds) - max(t.time for t in arrivals)
        return min(t.time for t in arrivals) - max(t.time for t in requireds)


class GraphTimingOracle(TimingOracle):
    """Static timing analysis on a DAG of timing nodes."""

    def __init__(self, graph: nx.DiGraph, clock_period: float, hold_time: float = 0.0):
        """Initialize oracle.

        Args:
            graph: Timing graph (must be acyclic)
            clock_period: Setup requirement at endpoints, in seconds
            hold_time: Hold requirement at endpoints, in seconds
        """
        if not nx.is_directed_acyclic_graph(graph):
            raise ValueError("Timing graph must be a DAG")
        if clock_period <= 0:
            raise ValueError("clock_period must be positive")

        self.graph = graph
        self.clock_period = clock_period
        self.hold_time = hold_time

        self._order: List[Hashable] = list(nx.topological_sort(graph))
        self._startpoints = {
            n for n in self._order
            if graph.in_degree(n) == 0 and graph.nodes[n].get('timed', True)
        }
        self._endpoints = {
            n for n in self._order
            if graph.out_degree(n) == 0 and graph.nodes[n].get('timed', True)
        }
        logger.debug(
            "Timing graph: %d nodes, %d startpoints, %d endpoints",
            graph.number_of_nodes(), len(self._startpoints), len(self._endpoints)
        )

    def edge_delay(self, source: Hashable, sink: Hashable, delay_table) -> float:
        """Delay of one timing edge under the given connection delays."""
        data = self.graph.edges[source, sink]
        if 'net' in data:
            inet, ipin = data['net']
            return float(delay_table[inet, ipin])
        return float(data.get('delay', 0.0))

    def refresh(self, delay_table) -> GraphTimingSnapshot:
        delays = {
            (u, v): self.edge_delay(u, v, delay_table)
            for u, v in self.graph.edges
        }

        setup_arrival = self._propagate_arrival(delays, max)
        hold_arrival = self._propagate_arrival(delays, min)
        setup_required = self._propagate_required(delays, self.clock_period, min)
        hold_required = self._propagate_required(delays, self.hold_time, max)

        critical_path_delay = 0.0
        for endpoint in self._endpoints:
            times = setup_arrival.get(endpoint, {})
            if times:
                critical_path_delay = max(critical_path_delay, max(times.values()))

        return GraphTimingSnapshot(
            arrival={
                TimingMode.SETUP: _freeze(setup_arrival),
                TimingMode.HOLD: _freeze(hold_arrival)
            },
            required={
                TimingMode.SETUP: _freeze(setup_required),
                TimingMode.HOLD: _freeze(hold_required)
            },
            critical_path_delay=critical_path_delay
        )

    def _propagate_arrival(
        self,
        delays: Dict[Tuple[Hashable, Hashable], float],
        pick: Callable[[float, float], float]
    ) -> Dict[Hashable, Dict[Hashable, float]]:
        """Forward pass: arrival time per (node, launching startpoint)."""
        arrival: Dict[Hashable, Dict[Hashable, float]] = {}
        for node in self._order:
            if node in self._startpoints:
                arrival[node] = {node: 0.0}
                continue
            times: Dict[Hashable, float] = {}
            for pred in self.graph.predecessors(node):
                delay = delays[(pred, node)]
                for origin, t in arrival[pred].items():
                    candidate = t + delay
                    times[origin] = pick(times[origin], candidate) if origin in times else candidate
            arrival[node] = times
        return arrival

    def _propagate_required(
        self,
        delays: Dict[Tuple[Hashable, Hashable], float],
        boundary: float,
        pick: Callable[[float, float], float]
    ) -> Dict[Hashable, Dict[Hashable, float]]:
        """Backward pass: required time per (node, capturing endpoint)."""
        required: Dict[Hashable, Dict[Hashable, float]] = {}
        for node in reversed(self._order):
            if node in self._endpoints:
                required[node] = {node: boundary}
                continue
            times: Dict[Hashable, float] = {}
            for succ in self.graph.successors(node):
                delay = delays[(node, succ)]
                for origin, t in required[succ].items():
                    candidate = t - delay
                    times[origin] = pick(times[origin], candidate) if origin in times else candidate
            required[node] = times
        return required


def _freeze(times: Dict[Hashable, Dict[Hashable, float]]) -> _TagMap:
    return {
        node: frozenset(TimingTag(time=t, origin=origin) for origin, t in per_origin.items())
        for node, per_origin in times.items()
        if per_origin
    }
