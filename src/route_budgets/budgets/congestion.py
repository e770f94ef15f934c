"""Congestion-driven relaxation of min budgets.

A net the router keeps reporting as congested has its min budgets lowered
a little on every ``relax`` call, which widens its window and gives the
router more freedom to pick a shorter (less contested) route.
"""

import logging

import numpy as np

from ..config import NS, PS, BudgetConfig
from ..exceptions import PreconditionViolation
from .store import BudgetStore


logger = logging.getLogger(__name__)


class CongestionFeedback:
    """Tracks consecutive congested iterations per net and relaxes budgets."""

    def __init__(
        self,
        store: BudgetStore,
        threshold: int = 3,
        margin: float = 1 * NS,
        decrement: float = 1 * PS
    ):
        """Initialize feedback.

        Args:
            store: Budget store whose counters and min budgets are updated
            threshold: Consecutive congested iterations before relaxing
            margin: Required headroom above the lower bound to relax a pin
            decrement: Amount subtracted from a min budget per relax
        """
        self.store = store
        self.threshold = threshold
        self.margin = margin
        self.decrement = decrement

    @classmethod
    def from_config(cls, store: BudgetStore, config: BudgetConfig) -> "CongestionFeedback":
        return cls(
            store,
            threshold=config.congestion_threshold,
            margin=config.relax_margin,
            decrement=config.relax_decrement
        )

    def _counters(self, inet: int) -> np.ndarray:
        congestion = self.store.tables.congestion
        if not 0 <= inet < len(congestion):
            raise PreconditionViolation(f"No congestion counter for net {inet}")
        return congestion

    def update_congested(self, inet: int) -> None:
        self._counters(inet)[inet] += 1

    def update_uncongested(self, inet: int) -> None:
        self._counters(inet)[inet] = 0

    def times_congested(self, inet: int) -> int:
        return int(self._counters(inet)[inet])

    def relax(self) -> int:
        """Lower the min budgets of chronically congested nets.

        Returns:
            Number of sink pins relaxed
        """
        tables = self.store.tables
        num_relaxed = 0

        for inet in np.flatnonzero(tables.congestion >= self.threshold):
            min_budget = tables.min_budget.sinks(inet)
            headroom = min_budget - tables.lower_bound.sinks(inet)
            relaxable = headroom >= self.margin
            min_budget[relaxable] -= self.decrement
            num_relaxed += int(np.count_nonzero(relaxable))

        self.store.check_invariants()
        if num_relaxed:
            logger.info("Relaxed min budgets of %d congested pins", num_relaxed)
        return num_relaxed
