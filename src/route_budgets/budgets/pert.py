"""Minimax PERT budget allocation.

Max budgets are grown as far as setup slack allows and min budgets shrunk
as far as hold slack allows. Each round re-runs timing analysis with the
current budgets used as connection delays, then hands every sink a share of
its path slack proportional to the connection's share of the path delay::

    adjustment = delay_estimate * slack / total_path_delay

Rounds repeat until the largest adjustment is small, with a lower and an
upper bound on the number of rounds per phase.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Hashable, List, Optional, Sequence

import numpy as np

from ..config import NS, PS, BudgetConfig
from ..core.netlist import Net, Netlist, PinLookup, default_pin_lookup
from ..core.tables import NetPinTable
from ..timing.oracle import TimingMode, TimingOracle, TimingSnapshot
from .report import format_table
from .store import DEFAULT_TARGET_OFFSET, BudgetStore


logger = logging.getLogger(__name__)


@dataclass
class NetAdjustment:
    """Budget changes computed for the sinks of one net in one round."""
    inet: int
    deltas: np.ndarray  # per sink, 0 where skipped
    zeroed: np.ndarray  # sinks whose budget is reset to 0

    @property
    def max_change(self) -> float:
        if self.deltas.size == 0:
            return 0.0
        return float(np.max(np.abs(self.deltas)))


@dataclass
class PertResult:
    """Iteration counts and final convergence signal of both phases."""
    setup_iterations: int
    hold_iterations: int
    setup_change: float
    hold_change: float


def node_path_delay(snapshot: TimingSnapshot, node: Hashable, mode: TimingMode) -> Optional[float]:
    """Delay of the most constraining path through a timing node.

    Earliest arrival at the node plus the remaining delay to the endpoint
    that owns the node's largest required time. Returns None if the node
    is not constrained in ``mode``.
    """
    arrival_tags = snapshot.arrival_tags(node, mode)
    required_tags = snapshot.required_tags(node, mode)
    if not arrival_tags or not required_tags:
        return None

    min_arrival = min(arrival_tags, key=lambda tag: tag.time)
    max_required = max(required_tags, key=lambda tag: tag.time)

    sink_node = max_required.origin
    if sink_node is None:
        return None

    sink_tags = snapshot.required_tags(sink_node, mode)
    if not sink_tags:
        return None

    final_required_time = min(tag.time for tag in sink_tags)
    future_path_delay = final_required_time - max_required.time
    past_path_delay = min_arrival.time
    return past_path_delay + future_path_delay


def total_path_delay(snapshot: TimingSnapshot, nodes: Sequence[Hashable], mode: TimingMode) -> float:
    """Largest path delay over the timing nodes of a block pin (0 if none)."""
    total = 0.0
    for node in nodes:
        delay = node_path_delay(snapshot, node, mode)
        if delay is None:
            continue
        total = max(total, delay)
    return total


def pin_slack(snapshot: TimingSnapshot, nodes: Sequence[Hashable], mode: TimingMode) -> float:
    """Smallest slack over the timed nodes of a block pin.

    Returns ``inf`` when every node is untimed.
    """
    slack = float('inf')
    for node in nodes:
        node_slack = snapshot.slack(node, mode)
        if node_slack == float('inf'):
            continue
        slack = min(slack, node_slack)
    return slack


class PertAllocator:
    """Iterative min-max PERT allocator (MINIMAX strategy)."""

    def __init__(
        self,
        oracle: TimingOracle,
        pin_lookup: Optional[PinLookup] = None,
        min_iterations: int = 3,
        max_iterations: int = 8,
        convergence_threshold: float = 800 * PS,
        min_budget_floor: float = -1 * NS,
        target_offset: float = DEFAULT_TARGET_OFFSET,
        num_workers: int = 1
    ):
        """Initialize allocator.

        Args:
            oracle: Timing analysis driven by delay tables
            pin_lookup: Block pin to timing node resolution
            min_iterations: Rounds always run per phase
            max_iterations: Hard cap on rounds per phase
            convergence_threshold: Largest adjustment (s) counted as converged
            min_budget_floor: Floor applied to min budgets after the hold phase
            target_offset: Offset above the min budget used for targets
            num_workers: Threads for the adjustment pass (1 = serial)
        """
        self.oracle = oracle
        self.pin_lookup = pin_lookup or default_pin_lookup
        self.min_iterations = min_iterations
        self.max_iterations = max_iterations
        self.convergence_threshold = convergence_threshold
        self.min_budget_floor = min_budget_floor
        self.target_offset = target_offset
        self.num_workers = num_workers

    @classmethod
    def from_config(
        cls,
        oracle: TimingOracle,
        config: BudgetConfig,
        pin_lookup: Optional[PinLookup] = None
    ) -> "PertAllocator":
        return cls(
            oracle,
            pin_lookup=pin_lookup,
            min_iterations=config.min_iterations,
            max_iterations=config.max_iterations,
            convergence_threshold=config.convergence_threshold,
            min_budget_floor=config.min_budget_floor,
            target_offset=config.target_offset,
            num_workers=config.num_workers
        )

    def allocate(self, store: BudgetStore, delay_estimates) -> PertResult:
        """Populate min, max and target budgets of an allocated store.

        Args:
            store: Active budget store
            delay_estimates: Router's current (net, pin) delay estimates

        Returns:
            PertResult
        """
        netlist = store.netlist
        tables = store.tables

        setup_iterations, setup_change = self._run_phase(
            store, tables.max_budget, netlist, delay_estimates, TimingMode.SETUP
        )

        tables.min_budget.copy_sinks_from(tables.max_budget)
        hold_iterations, hold_change = self._run_phase(
            store, tables.min_budget, netlist, delay_estimates, TimingMode.HOLD
        )

        # one extra hold pass, then keep mildly negative min budgets only
        store.floor(tables.min_budget, self.min_budget_floor)
        snapshot = self.oracle.refresh(tables.min_budget)
        self.apply_adjustments(snapshot, tables.min_budget, netlist, delay_estimates, TimingMode.HOLD)
        store.floor(tables.min_budget, self.min_budget_floor)
        store.clamp(tables.min_budget)
        store.enforce_min_le_max()

        store.calculate_targets(self.target_offset)
        store.check_invariants()

        logger.info(
            "PERT budgets: setup converged in %d iterations (max change %.3g s), "
            "hold in %d iterations (max change %.3g s)",
            setup_iterations, setup_change, hold_iterations, hold_change
        )
        return PertResult(
            setup_iterations=setup_iterations,
            hold_iterations=hold_iterations,
            setup_change=setup_change,
            hold_change=hold_change
        )

    def _run_phase(
        self,
        store: BudgetStore,
        budgets: NetPinTable,
        netlist: Netlist,
        delay_estimates,
        mode: TimingMode
    ):
        iteration = 0
        max_budget_change = float('inf')
        while True:
            snapshot = self.oracle.refresh(budgets)
            max_budget_change = self.apply_adjustments(snapshot, budgets, netlist, delay_estimates, mode)
            store.clamp(budgets)
            iteration += 1
            logger.debug("%s iteration %d: max budget change %.3g s", mode.value, iteration, max_budget_change)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s", format_table(budgets, f"{mode.value} budgets after iteration {iteration}"))

            if iteration >= self.min_iterations and max_budget_change <= self.convergence_threshold:
                break
            if iteration >= self.max_iterations:
                logger.debug("%s phase stopped at iteration cap %d", mode.value, self.max_iterations)
                break
        return iteration, max_budget_change

    def apply_adjustments(
        self,
        snapshot: TimingSnapshot,
        budgets: NetPinTable,
        netlist: Netlist,
        delay_estimates,
        mode: TimingMode
    ) -> float:
        """Run one slack-distribution round on ``budgets``.

        All adjustments are computed before any budget is written.

        Returns:
            Largest absolute adjustment of the round
        """
        adjustments = self.compute_adjustments(snapshot, netlist, delay_estimates, mode)

        max_budget_change = 0.0
        for adjustment in adjustments:
            values = budgets.sinks(adjustment.inet)
            values += adjustment.deltas
            values[adjustment.zeroed] = 0.0
            max_budget_change = max(max_budget_change, adjustment.max_change)
        return max_budget_change

    def compute_adjustments(
        self,
        snapshot: TimingSnapshot,
        netlist: Netlist,
        delay_estimates,
        mode: TimingMode
    ) -> List[NetAdjustment]:
        def net_adjustment(inet: int) -> NetAdjustment:
            return self._net_adjustment(snapshot, netlist.nets[inet], inet, delay_estimates, mode)

        if self.num_workers > 1 and len(netlist) > 1:
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                return list(executor.map(net_adjustment, range(len(netlist))))
        return [net_adjustment(inet) for inet in range(len(netlist))]

    def _net_adjustment(
        self,
        snapshot: TimingSnapshot,
        net: Net,
        inet: int,
        delay_estimates,
        mode: TimingMode
    ) -> NetAdjustment:
        num_sinks = net.num_pins - 1
        deltas = np.zeros(num_sinks, dtype=np.float64)
        zeroed = np.zeros(num_sinks, dtype=bool)

        for ipin in range(1, net.num_pins):
            nodes = self.pin_lookup(net, ipin)

            path_delay = total_path_delay(snapshot, nodes, mode)
            if path_delay == 0:
                zeroed[ipin - 1] = True
                continue

            slack = pin_slack(snapshot, nodes, mode)
            if np.isinf(slack):
                continue

            adjustment = float(delay_estimates[inet, ipin]) * slack / path_delay
            if mode is TimingMode.HOLD:
                adjustment = -adjustment
            deltas[ipin - 1] = adjustment

        return NetAdjustment(inet=inet, deltas=deltas, zeroed=zeroed)
