"""Budget allocation configuration.

Values are plain floats in seconds so that they line up with the delay
tables handed over by the router.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

import yaml


logger = logging.getLogger(__name__)

NS = 1e-9
PS = 1e-12


class BudgetAlgorithm(Enum):
    """Strategy used to populate the budget tables."""
    DISABLE = "disable"
    MINIMAX = "minimax"
    SCALE_DELAY = "scale_delay"

    @classmethod
    def parse(cls, value: Union[str, "BudgetAlgorithm"]) -> "BudgetAlgorithm":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown budget algorithm: {value}") from None


@dataclass
class BudgetConfig:
    """Configuration for route budget allocation."""
    algorithm: BudgetAlgorithm = BudgetAlgorithm.DISABLE
    # SCALE_DELAY reshaping of pin criticalities
    max_criticality: float = 0.99
    criticality_exponent: float = 1.0
    # Budget window bounds
    lower_bound: float = 0.0
    upper_bound: float = 100 * NS
    # PERT iteration control
    min_iterations: int = 3
    max_iterations: int = 8
    convergence_threshold: float = 800 * PS
    min_budget_floor: float = -1 * NS
    target_offset: float = 0.1 * NS
    # Congestion relaxation
    congestion_threshold: int = 3
    relax_margin: float = 1 * NS
    relax_decrement: float = 1 * PS
    short_path_exponent: float = 0.5
    # Threads used for the PERT adjustment pass (1 = serial)
    num_workers: int = 1
    dump_path: str = "route_budget.txt"

    def __post_init__(self):
        """Validate configuration."""
        self.algorithm = BudgetAlgorithm.parse(self.algorithm)
        if not 0.0 < self.max_criticality <= 1.0:
            raise ValueError("max_criticality must be in (0, 1]")
        if self.criticality_exponent <= 0.0:
            raise ValueError("criticality_exponent must be positive")
        if self.lower_bound < 0.0 or self.upper_bound <= self.lower_bound:
            raise ValueError("Budget bounds must satisfy 0 <= lower_bound < upper_bound")
        if self.min_iterations < 1 or self.max_iterations < self.min_iterations:
            raise ValueError("Iteration limits must satisfy 1 <= min_iterations <= max_iterations")
        if self.convergence_threshold < 0.0:
            raise ValueError("convergence_threshold must be non-negative")
        if self.congestion_threshold < 1:
            raise ValueError("congestion_threshold must be at least 1")
        if self.relax_decrement <= 0.0 or self.relax_margin < 0.0:
            raise ValueError("relax_decrement must be positive and relax_margin non-negative")
        if self.num_workers < 1:
            raise ValueError("num_workers must be at least 1")

    @property
    def enabled(self) -> bool:
        return self.algorithm is not BudgetAlgorithm.DISABLE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BudgetConfig":
        """Build a config from a parsed mapping.

        Unknown keys are logged and ignored.

        Args:
            data: Mapping of field name to value

        Returns:
            BudgetConfig
        """
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            if key not in known:
                logger.warning("Ignoring unknown budget config key: %s", key)
                continue
            if key == "algorithm":
                kwargs[key] = BudgetAlgorithm.parse(value)
            elif known[key].type is int:
                kwargs[key] = int(value)
            elif key == "dump_path":
                kwargs[key] = str(value)
            else:
                # YAML reads "800e-12" as a string, so coerce numeric fields
                kwargs[key] = float(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["algorithm"] = self.algorithm.value
        return data


def load_config(path: Union[str, Path]) -> BudgetConfig:
    """Load a budget config from YAML.

    The ``budgets`` section is used when present, otherwise the whole file.

    Args:
        path: Path to YAML file

    Returns:
        BudgetConfig
    """
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    section = data.get('budgets', data)
    config = BudgetConfig.from_dict(section)
    logger.info("Loaded budget config from %s (algorithm=%s)", path, config.algorithm.value)
    return config
