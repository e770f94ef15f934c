"""Timing analysis interface and reference oracle."""

from .oracle import TimingMode, TimingTag, TimingSnapshot, TimingOracle
from .graph_oracle import GraphTimingOracle, GraphTimingSnapshot
from .criticality import compute_pin_criticalities

__all__ = [
    'TimingMode',
    'TimingTag',
    'TimingSnapshot',
    'TimingOracle',
    'GraphTimingOracle',
    'GraphTimingSnapshot',
    'compute_pin_criticalities'
]
