"""Pin criticalities derived from a timing snapshot."""

from typing import Optional

import numpy as np

from ..core.netlist import Netlist, PinLookup, default_pin_lookup
from ..core.tables import NetPinTable
from .oracle import TimingMode, TimingSnapshot


def compute_pin_criticalities(
    snapshot: TimingSnapshot,
    netlist: Netlist,
    critical_path_delay: float,
    pin_lookup: Optional[PinLookup] = None
) -> NetPinTable:
    """Compute setup criticality of every sink pin.

    A block pin takes the largest criticality of the timing nodes it
    resolves to; each node's criticality is ``1 - slack / critical_path_delay``
    clipped to [0, 1]. Untimed nodes count as 0.

    Args:
        snapshot: Timing analysis result
        netlist: Netlist
        critical_path_delay: Normalizing delay (usually the critical path)
        pin_lookup: Block pin to timing node resolution

    Returns:
        NetPinTable of criticalities (driver slots are 0)
    """
    lookup = pin_lookup or default_pin_lookup
    criticalities = NetPinTable.zeros(netlist)
    if critical_path_delay <= 0:
        return criticalities

    for inet, ipin in netlist.sink_pins():
        net = netlist.nets[inet]
        pin_criticality = 0.0
        for node in lookup(net, ipin):
            slack = snapshot.slack(node, TimingMode.SETUP)
            if np.isinf(slack):
                continue
            node_criticality = float(np.clip(1.0 - slack / critical_path_delay, 0.0, 1.0))
            pin_criticality = max(pin_criticality, node_criticality)
        criticalities[inet, ipin] = pin_criticality

    return criticalities
