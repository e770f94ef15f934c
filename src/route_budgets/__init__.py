"""Delay budgets for timing-driven routing.

Gives every sink connection a delay window (lower bound, min, target, max,
upper bound) so the router can trade slack between connections instead of
minimizing every path.

Components:
- budgets/ - Budget store, minimax PERT and criticality allocators,
  congestion feedback, router-facing RouteBudgets
- timing/ - Timing oracle interface and a networkx reference STA
- core/ - Netlist and net/pin tables
- integration/ - JSON design reader
"""

__version__ = "0.1.0"

from .config import BudgetAlgorithm, BudgetConfig, load_config
from .core.netlist import Pin, Net, Netlist
from .core.tables import NetPinTable
from .budgets.manager import RouteBudgets
from .exceptions import BudgetError, PreconditionViolation, InvariantViolation, ResourceError

__all__ = [
    "BudgetAlgorithm",
    "BudgetConfig",
    "load_config",
    "Pin",
    "Net",
    "Netlist",
    "NetPinTable",
    "RouteBudgets",
    "BudgetError",
    "PreconditionViolation",
    "InvariantViolation",
    "ResourceError",
    "allocate_budgets"
]


def allocate_budgets(design_path: str, config_path: str = None, output_path: str = None, **kwargs):
    """High-level API to compute budgets for a design file.

    Args:
        design_path: Path to design JSON
        config_path: Optional YAML config
        output_path: Where to dump the budget tables (skipped if None)
        **kwargs: Config overrides

    Returns:
        RouteBudgets (inactive if the algorithm is disabled)
    """
    from .integration.design_reader import DesignReader
    from .timing.criticality import compute_pin_criticalities

    config = load_config(config_path) if config_path else BudgetConfig()
    if kwargs:
        merged = config.to_dict()
        merged.update(kwargs)
        config = BudgetConfig.from_dict(merged)

    design = DesignReader().read(design_path)

    criticalities = design.criticalities
    if criticalities is None and config.algorithm is BudgetAlgorithm.SCALE_DELAY:
        snapshot = design.oracle.refresh(design.delay_estimates)
        criticalities = compute_pin_criticalities(
            snapshot, design.netlist, snapshot.critical_path_delay
        )

    budgets = RouteBudgets(config=config, oracle=design.oracle)
    budgets.load(design.netlist, design.delay_estimates, criticalities)

    if output_path and budgets.is_active():
        budgets.dump(output_path)

    return budgets
