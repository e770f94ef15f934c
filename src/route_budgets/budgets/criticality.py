"""Criticality-scaled budget allocation (SCALE_DELAY strategy)."""

import logging

from ..config import BudgetConfig
from .store import DEFAULT_LOWER_BOUND, DEFAULT_TARGET_OFFSET, DEFAULT_UPPER_BOUND, BudgetStore


logger = logging.getLogger(__name__)


def reshape_criticality(criticality: float, max_criticality: float, exponent: float) -> float:
    """Reshape a raw pin criticality in [0, 1].

    The criticality is shifted down by ``1 - max_criticality`` and cut off at
    0, so pins below that level are ignored entirely and everything else
    becomes a bit less critical. The result is raised to ``exponent`` and
    capped at ``max_criticality``.
    """
    shifted = max(criticality - (1.0 - max_criticality), 0.0)
    return min(shifted ** exponent, max_criticality)


class CriticalityAllocator:
    """One-shot allocator: max budget = delay estimate / criticality."""

    def __init__(
        self,
        max_criticality: float = 0.99,
        criticality_exponent: float = 1.0,
        lower_bound: float = DEFAULT_LOWER_BOUND,
        upper_bound: float = DEFAULT_UPPER_BOUND,
        target_offset: float = DEFAULT_TARGET_OFFSET
    ):
        self.max_criticality = max_criticality
        self.criticality_exponent = criticality_exponent
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.target_offset = target_offset

    @classmethod
    def from_config(cls, config: BudgetConfig) -> "CriticalityAllocator":
        return cls(
            max_criticality=config.max_criticality,
            criticality_exponent=config.criticality_exponent,
            lower_bound=config.lower_bound,
            upper_bound=config.upper_bound,
            target_offset=config.target_offset
        )

    def allocate(self, store: BudgetStore, delay_estimates, criticalities) -> int:
        """Populate the budgets of an allocated store.

        Args:
            store: Active budget store
            delay_estimates: Router's current (net, pin) delay estimates
            criticalities: Per (net, pin) timing criticality in [0, 1]

        Returns:
            Number of sink pins that received a finite (criticality-bound) max
        """
        tables = store.tables
        num_scaled = 0

        for inet, ipin in store.netlist.sink_pins():
            criticality = reshape_criticality(
                float(criticalities[inet, ipin]),
                self.max_criticality,
                self.criticality_exponent
            )

            tables.min_budget[inet, ipin] = self.lower_bound
            tables.lower_bound[inet, ipin] = self.lower_bound
            tables.upper_bound[inet, ipin] = self.upper_bound

            if criticality == 0:
                # prevent invalid division
                tables.max_budget[inet, ipin] = self.upper_bound
            else:
                tables.max_budget[inet, ipin] = min(
                    max(float(delay_estimates[inet, ipin]) / criticality, self.lower_bound),
                    self.upper_bound
                )
                num_scaled += 1

        store.calculate_targets(self.target_offset)
        store.check_invariants()

        logger.info(
            "Criticality budgets: %d of %d sink pins scaled by criticality",
            num_scaled, sum(n - 1 for n in store.netlist.pin_counts())
        )
        return num_scaled
