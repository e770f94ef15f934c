"""Netlist and table primitives."""

from .netlist import Pin, Net, Netlist, PinLookup, default_pin_lookup
from .tables import NetPinTable

__all__ = [
    'Pin',
    'Net',
    'Netlist',
    'PinLookup',
    'default_pin_lookup',
    'NetPinTable'
]
