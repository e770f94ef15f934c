"""Clustered netlist representation."""

from dataclasses import dataclass, field
from typing import Callable, Hashable, Iterator, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Pin:
    """Represents a net pin on a clustered block.

    A block pin may resolve to several fine-grained (atom) pins inside the
    block; ``timing_nodes`` holds their timing-graph node ids.
    """
    block: str = ""
    timing_nodes: Tuple[Hashable, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'timing_nodes', tuple(self.timing_nodes))

    def __repr__(self) -> str:
        return f"Pin({self.block!r}, nodes={len(self.timing_nodes)})"


@dataclass(frozen=True)
class Net:
    """Represents a net: one driver pin fanning out to sink pins."""
    net_id: int
    pins: Tuple[Pin, ...]
    name: str = ""

    def __post_init__(self):
        """Validate net has a driver and at least one sink."""
        if len(self.pins) < 2:
            raise ValueError(f"Net {self.net_id} must have at least 2 pins")
        object.__setattr__(self, 'pins', tuple(self.pins))

    @property
    def driver(self) -> Pin:
        """Get driver pin (first pin)."""
        return self.pins[0]

    @property
    def sinks(self) -> Tuple[Pin, ...]:
        """Get sink pins (all pins except driver)."""
        return self.pins[1:]

    @property
    def num_pins(self) -> int:
        return len(self.pins)

    def __repr__(self) -> str:
        return f"Net(id={self.net_id}, pins={len(self.pins)})"


@dataclass(frozen=True)
class Netlist:
    """Ordered collection of nets.

    Nets are addressed by position (``inet``), which is how budget tables
    are indexed.
    """
    nets: Tuple[Net, ...]

    def __post_init__(self):
        """Validate netlist."""
        object.__setattr__(self, 'nets', tuple(self.nets))
        net_ids = [net.net_id for net in self.nets]
        if len(net_ids) != len(set(net_ids)):
            raise ValueError("Duplicate net IDs found")

    def get_net(self, net_id: int) -> Optional[Net]:
        """Get net by ID."""
        for net in self.nets:
            if net.net_id == net_id:
                return net
        return None

    def pin_counts(self) -> List[int]:
        """Number of pins (driver included) of every net, in order."""
        return [net.num_pins for net in self.nets]

    def sink_pins(self) -> Iterator[Tuple[int, int]]:
        """Iterate over every budgeted (inet, ipin) pair."""
        for inet, net in enumerate(self.nets):
            for ipin in range(1, net.num_pins):
                yield inet, ipin

    def __len__(self) -> int:
        return len(self.nets)

    def __iter__(self) -> Iterator[Net]:
        return iter(self.nets)

    def __repr__(self) -> str:
        return f"Netlist({len(self.nets)} nets)"


PinLookup = Callable[[Net, int], Sequence[Hashable]]


def default_pin_lookup(net: Net, ipin: int) -> Sequence[Hashable]:
    """Resolve a net pin to the timing nodes recorded on the pin itself."""
    return net.pins[ipin].timing_nodes
