"""Timing oracle interface consumed by the budget allocators.

The oracle wraps a static timing analyzer. Each ``refresh`` runs a full
analysis with the given per-connection delays and returns an immutable
snapshot that may be read from several threads at once.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Hashable, Optional


class TimingMode(Enum):
    """Analysis mode: SETUP bounds maximum delay, HOLD bounds minimum delay."""
    SETUP = "setup"
    HOLD = "hold"


@dataclass(frozen=True)
class TimingTag:
    """Arrival or required time at a node, with the node it originates from.

    ``origin`` is the launching startpoint for arrival tags and the
    capturing endpoint for required tags. ``None`` marks an invalid origin.
    """
    time: float
    origin: Optional[Hashable] = None


class TimingSnapshot(ABC):
    """Read-only result of one timing analysis."""

    @abstractmethod
    def slack(self, node: Hashable, mode: TimingMode) -> float:
        """Slack at a timing node.

        Returns:
            Slack in seconds, or ``float('inf')`` if the node is untimed
        """
        pass

    @abstractmethod
    def arrival_tags(self, node: Hashable, mode: TimingMode) -> FrozenSet[TimingTag]:
        """Arrival tags at a node (empty if unconstrained in ``mode``)."""
        pass

    @abstractmethod
    def required_tags(self, node: Hashable, mode: TimingMode) -> FrozenSet[TimingTag]:
        """Required tags at a node (empty if unconstrained in ``mode``)."""
        pass


class TimingOracle(ABC):
    """Static timing analysis driven by a delay table."""

    @abstractmethod
    def refresh(self, delay_table) -> TimingSnapshot:
        """
        Run timing analysis with the given connection delays.

        Must not retain or mutate ``delay_table``; successive calls with
        different tables are independent.

        Args:
            delay_table: Per (net, pin) connection delays in seconds

        Returns:
            TimingSnapshot: Immutable analysis result
        """
        pass
