"""Design reader: parse a JSON design → Netlist, timing oracle, delay tables.

Expected layout::

    {
      "clock_period": 1e-8,
      "hold_time": 0.0,
      "nets": [
        {"id": 0, "name": "n0",
         "pins": [{"block": "a", "timing_nodes": ["a.q"]},
                  {"block": "b", "timing_nodes": ["b.d"]}],
         "delays": [0.0, 1e-9],
         "criticalities": [0.0, 0.4]}
      ],
      "timing_nodes": [{"id": "x", "timed": false}],
      "timing_edges": [
        {"from": "a.q", "to": "b.d", "net": [0, 1]},
        {"from": "b.d", "to": "b.q", "delay": 2e-10}
      ]
    }

``delays`` and ``criticalities`` carry one value per pin, driver included.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import networkx as nx

from ..core.netlist import Net, Netlist, Pin
from ..core.tables import NetPinTable
from ..timing.graph_oracle import GraphTimingOracle


@dataclass
class Design:
    """Everything the budget engine needs from a placed design."""
    netlist: Netlist
    oracle: GraphTimingOracle
    delay_estimates: NetPinTable
    criticalities: Optional[NetPinTable] = None


class DesignReader:
    """Reader for JSON design files."""

    def read(self, file_path: str) -> Design:
        """Read a complete design.

        Args:
            file_path: Path to design JSON file

        Returns:
            Design
        """
        with open(file_path, 'r') as f:
            data = json.load(f)
        return self.parse(data)

    def parse(self, data: Dict[str, Any]) -> Design:
        nets_data = data.get('nets', [])
        netlist = self.parse_netlist(nets_data)
        delay_estimates = self._parse_pin_values(nets_data, netlist, 'delays', required=True)
        criticalities = self._parse_pin_values(nets_data, netlist, 'criticalities', required=False)
        oracle = self.parse_oracle(data, netlist)
        return Design(
            netlist=netlist,
            oracle=oracle,
            delay_estimates=delay_estimates,
            criticalities=criticalities
        )

    def parse_netlist(self, nets_data: List[Dict[str, Any]]) -> Netlist:
        nets = []
        for net_info in nets_data:
            net_id = net_info.get('id', len(nets))
            pins = [
                Pin(
                    block=pin_data.get('block', ''),
                    timing_nodes=tuple(pin_data.get('timing_nodes', []))
                )
                for pin_data in net_info.get('pins', [])
            ]
            nets.append(Net(net_id=net_id, pins=pins, name=net_info.get('name', f'net_{net_id}')))
        return Netlist(nets=nets)

    def parse_oracle(self, data: Dict[str, Any], netlist: Netlist) -> GraphTimingOracle:
        graph = nx.DiGraph()
        for node_info in data.get('timing_nodes', []):
            graph.add_node(node_info['id'], timed=node_info.get('timed', True))

        for edge in data.get('timing_edges', []):
            attrs = {}
            if 'net' in edge:
                inet, ipin = edge['net']
                if not 0 <= inet < len(netlist) or not 0 < ipin < netlist.nets[inet].num_pins:
                    raise ValueError(f"Timing edge {edge['from']} -> {edge['to']} references unknown net pin {edge['net']}")
                attrs['net'] = (inet, ipin)
            else:
                attrs['delay'] = float(edge.get('delay', 0.0))
            graph.add_edge(edge['from'], edge['to'], **attrs)

        return GraphTimingOracle(
            graph,
            clock_period=float(data['clock_period']),
            hold_time=float(data.get('hold_time', 0.0))
        )

    def _parse_pin_values(
        self,
        nets_data: List[Dict[str, Any]],
        netlist: Netlist,
        key: str,
        required: bool
    ) -> Optional[NetPinTable]:
        if not required and not any(key in net_info for net_info in nets_data):
            return None

        table = NetPinTable.zeros(netlist)
        for inet, net_info in enumerate(nets_data):
            values = net_info.get(key)
            if values is None:
                if required:
                    raise ValueError(f"Net {netlist.nets[inet].net_id} is missing '{key}'")
                continue
            if len(values) != netlist.nets[inet].num_pins:
                raise ValueError(
                    f"Net {netlist.nets[inet].net_id} has {len(values)} '{key}' "
                    f"for {netlist.nets[inet].num_pins} pins"
                )
            table.row(inet)[:] = [float(v) for v in values]
        return table
