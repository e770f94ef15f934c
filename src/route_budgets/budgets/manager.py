"""Route budgets as seen by the router.

The router builds one ``RouteBudgets`` per routing run, calls ``load`` once
timing information is available, queries budgets while searching paths, and
reports congestion between routing iterations.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..config import BudgetAlgorithm, BudgetConfig
from ..core.netlist import Netlist, PinLookup
from ..exceptions import PreconditionViolation, ResourceError
from ..timing.oracle import TimingOracle
from .congestion import CongestionFeedback
from .criticality import CriticalityAllocator
from .pert import PertAllocator, PertResult
from .report import format_budgets, write_report
from .store import BudgetStore


logger = logging.getLogger(__name__)


class RouteBudgets:
    """Per-connection delay budgets for a timing-driven router."""

    def __init__(
        self,
        config: Optional[BudgetConfig] = None,
        oracle: Optional[TimingOracle] = None,
        pin_lookup: Optional[PinLookup] = None
    ):
        """Initialize budgets (inactive until ``load``).

        Args:
            config: Budget configuration
            oracle: Timing oracle, required by the MINIMAX strategy
            pin_lookup: Block pin to timing node resolution
        """
        self.config = config or BudgetConfig()
        self.oracle = oracle
        self.pin_lookup = pin_lookup
        self.store = BudgetStore()
        self.feedback = CongestionFeedback.from_config(self.store, self.config)
        self.last_pert_result: Optional[PertResult] = None

    def load(self, netlist: Netlist, delay_estimates, criticalities=None) -> bool:
        """Allocate and populate budgets with the configured strategy.

        Args:
            netlist: Netlist being routed
            delay_estimates: Router's current (net, pin) delay estimates
            criticalities: Per (net, pin) criticalities (SCALE_DELAY only)

        Returns:
            True if budgets are active afterwards
        """
        algorithm = self.config.algorithm
        if algorithm is BudgetAlgorithm.DISABLE:
            self.store.teardown()
            logger.info("Route budgets disabled")
            return False

        if algorithm is BudgetAlgorithm.MINIMAX and self.oracle is None:
            raise PreconditionViolation("MINIMAX budgets need a timing oracle")
        if algorithm is BudgetAlgorithm.SCALE_DELAY and criticalities is None:
            raise PreconditionViolation("SCALE_DELAY budgets need pin criticalities")

        logger.info("Allocating %s route budgets for %d nets", algorithm.value, len(netlist))
        self.store.allocate(netlist, self.config.lower_bound, self.config.upper_bound)

        if algorithm is BudgetAlgorithm.MINIMAX:
            allocator = PertAllocator.from_config(self.oracle, self.config, self.pin_lookup)
            self.last_pert_result = allocator.allocate(self.store, delay_estimates)
        else:
            CriticalityAllocator.from_config(self.config).allocate(
                self.store, delay_estimates, criticalities
            )
        return True

    def is_active(self) -> bool:
        return self.store.is_active()

    def teardown(self) -> None:
        self.store.teardown()

    def get_min(self, inet: int, ipin: int) -> float:
        return self.store.get_min(inet, ipin)

    def get_max(self, inet: int, ipin: int) -> float:
        return self.store.get_max(inet, ipin)

    def get_target(self, inet: int, ipin: int) -> float:
        return self.store.get_target(inet, ipin)

    def get_short_path_criticality(self, inet: int, ipin: int) -> float:
        """How tight the window below the target is, in [0, 1].

        Used by the router to weight short-path (hold) delay for the pin.
        """
        target = self.store.get_target(inet, ipin)
        if target == 0:
            return 0.0
        lower_bound = self.store.get_lower_bound(inet, ipin)
        return ((target - lower_bound) / target) ** self.config.short_path_exponent

    def update_congested(self, inet: int) -> None:
        self.feedback.update_congested(inet)

    def update_uncongested(self, inet: int) -> None:
        self.feedback.update_uncongested(inet)

    def relax(self) -> int:
        return self.feedback.relax()

    def dump(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Write the budget tables to a text file.

        Failure to write is logged and does not affect the budgets.

        Returns:
            True if the dump was written
        """
        path = path or self.config.dump_path
        try:
            write_report(format_budgets(self.store), path)
        except ResourceError as e:
            logger.error("Route budget dump failed: %s", e)
            return False
        logger.info("Wrote route budgets to %s", path)
        return True
