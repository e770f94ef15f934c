"""Budget tables and the invariants that hold over them.

Every sink pin carries a delay window::

    lower_bound <= min <= target <= max <= upper_bound

The store is either inactive (no tables, every query rejected) or active
with tables sized to one netlist.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..config import NS
from ..core.netlist import Netlist
from ..core.tables import NetPinTable
from ..exceptions import InvariantViolation, PreconditionViolation


logger = logging.getLogger(__name__)

DEFAULT_LOWER_BOUND = 0.0
DEFAULT_UPPER_BOUND = 100 * NS
DEFAULT_TARGET_OFFSET = 0.1 * NS


@dataclass
class BudgetTables:
    """The five per-pin budget tables plus per-net congestion counters."""
    lower_bound: NetPinTable
    upper_bound: NetPinTable
    min_budget: NetPinTable
    max_budget: NetPinTable
    target: NetPinTable
    congestion: np.ndarray


class BudgetStore:
    """Owns the budget tables of one routing run."""

    def __init__(self):
        self._netlist: Optional[Netlist] = None
        self._tables: Optional[BudgetTables] = None

    def allocate(
        self,
        netlist: Netlist,
        lower_bound: float = DEFAULT_LOWER_BOUND,
        upper_bound: float = DEFAULT_UPPER_BOUND
    ) -> BudgetTables:
        """Allocate zeroed tables for a netlist and activate the store.

        Sink pins get the given bounds and a max budget equal to the lower
        bound. Any previous tables are dropped.

        Args:
            netlist: Netlist to size the tables to
            lower_bound: Lower delay bound in seconds
            upper_bound: Upper delay bound in seconds

        Returns:
            The new tables
        """
        if upper_bound < lower_bound:
            raise ValueError("upper_bound must not be below lower_bound")

        tables = BudgetTables(
            lower_bound=NetPinTable.zeros(netlist),
            upper_bound=NetPinTable.zeros(netlist),
            min_budget=NetPinTable.zeros(netlist),
            max_budget=NetPinTable.zeros(netlist),
            target=NetPinTable.zeros(netlist),
            congestion=np.zeros(len(netlist), dtype=np.int64)
        )
        for inet in range(len(netlist)):
            tables.lower_bound.sinks(inet)[:] = lower_bound
            tables.upper_bound.sinks(inet)[:] = upper_bound
            tables.max_budget.sinks(inet)[:] = lower_bound

        self._netlist = netlist
        self._tables = tables
        logger.debug("Allocated budget tables for %d nets", len(netlist))
        return tables

    def teardown(self) -> None:
        """Drop the tables and return to the inactive state."""
        self._netlist = None
        self._tables = None

    def is_active(self) -> bool:
        return self._tables is not None

    @property
    def tables(self) -> BudgetTables:
        if self._tables is None:
            raise PreconditionViolation("Route budgets are not active")
        return self._tables

    @property
    def netlist(self) -> Netlist:
        if self._netlist is None:
            raise PreconditionViolation("Route budgets are not active")
        return self._netlist

    def clamp(self, table: NetPinTable) -> None:
        """Force every sink value of ``table`` into [lower_bound, upper_bound]."""
        tables = self.tables
        for inet in range(len(table)):
            values = table.sinks(inet)
            np.clip(
                values,
                tables.lower_bound.sinks(inet),
                tables.upper_bound.sinks(inet),
                out=values
            )

    def floor(self, table: NetPinTable, value: float) -> None:
        """Raise every sink value of ``table`` to at least ``value``."""
        for inet in range(len(table)):
            values = table.sinks(inet)
            np.maximum(values, value, out=values)

    def enforce_min_le_max(self) -> None:
        """Lower min budgets that exceed their max budget."""
        tables = self.tables
        for inet in range(len(tables.min_budget)):
            values = tables.min_budget.sinks(inet)
            np.minimum(values, tables.max_budget.sinks(inet), out=values)

    def calculate_targets(self, offset: float = DEFAULT_TARGET_OFFSET) -> None:
        """Set target = min(midpoint of the window, min + offset).

        The target leans towards the min budget so that short-path (hold)
        timing is favoured over an even split.
        """
        tables = self.tables
        for inet in range(len(tables.target)):
            low = tables.min_budget.sinks(inet)
            high = tables.max_budget.sinks(inet)
            tables.target.sinks(inet)[:] = np.minimum(0.5 * (low + high), low + offset)

    def check_invariants(self) -> None:
        """Verify the budget window of every sink pin.

        Raises:
            InvariantViolation: naming the first offending pin
        """
        tables = self.tables
        for inet in range(len(tables.min_budget)):
            lower = tables.lower_bound.sinks(inet)
            upper = tables.upper_bound.sinks(inet)
            low = tables.min_budget.sinks(inet)
            high = tables.max_budget.sinks(inet)
            target = tables.target.sinks(inet)

            ok = (lower <= low) & (low <= high) & (high <= upper) & (low <= target) & (target <= high)
            if not ok.all():
                ipin = int(np.argmin(ok)) + 1
                raise InvariantViolation(
                    f"Delay budgets do not fit in delay bounds for net {inet} pin {ipin}: "
                    f"lower={lower[ipin - 1]:g} min={low[ipin - 1]:g} target={target[ipin - 1]:g} "
                    f"max={high[ipin - 1]:g} upper={upper[ipin - 1]:g}"
                )

    def _check_pin(self, inet: int, ipin: int) -> BudgetTables:
        tables = self.tables
        # cannot get a delay budget for a driver
        if ipin == 0:
            raise PreconditionViolation(f"Net {inet} pin 0 is a driver and has no budget")
        if not 0 <= inet < len(tables.target) or not 0 < ipin < len(tables.target.row(inet)):
            raise PreconditionViolation(f"No budget for net {inet} pin {ipin}")
        return tables

    def get_min(self, inet: int, ipin: int) -> float:
        return self._check_pin(inet, ipin).min_budget[inet, ipin]

    def get_max(self, inet: int, ipin: int) -> float:
        return self._check_pin(inet, ipin).max_budget[inet, ipin]

    def get_target(self, inet: int, ipin: int) -> float:
        return self._check_pin(inet, ipin).target[inet, ipin]

    def get_lower_bound(self, inet: int, ipin: int) -> float:
        return self._check_pin(inet, ipin).lower_bound[inet, ipin]

    def get_upper_bound(self, inet: int, ipin: int) -> float:
        return self._check_pin(inet, ipin).upper_bound[inet, ipin]

    def __repr__(self) -> str:
        if self._tables is None:
            return "BudgetStore(inactive)"
        return f"BudgetStore(active, {len(self._netlist)} nets)"
