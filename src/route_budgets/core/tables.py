"""Net/pin indexed numeric tables.

Every table keeps one slot per pin, driver included, so that ``table[inet,
ipin]`` uses the same pin numbering as the netlist. Slot 0 of each net is
the driver and is never read as a budget.
"""

from typing import Iterable, Iterator, List, Sequence, Tuple
import numpy as np

from .netlist import Netlist


class NetPinTable:
    """Ragged table of per-pin float values, one numpy array per net."""

    def __init__(self, rows: Iterable[np.ndarray]):
        self._rows: List[np.ndarray] = [np.asarray(row, dtype=np.float64) for row in rows]

    @classmethod
    def zeros(cls, netlist: Netlist) -> "NetPinTable":
        """Zero-initialized table sized to the netlist."""
        return cls(np.zeros(n, dtype=np.float64) for n in netlist.pin_counts())

    @classmethod
    def full(cls, netlist: Netlist, value: float) -> "NetPinTable":
        return cls(np.full(n, value, dtype=np.float64) for n in netlist.pin_counts())

    @classmethod
    def from_nested(cls, values: Sequence[Sequence[float]]) -> "NetPinTable":
        """Build from nested per-net lists (slot 0 is the driver)."""
        return cls(np.array(row, dtype=np.float64) for row in values)

    def copy(self) -> "NetPinTable":
        return NetPinTable(row.copy() for row in self._rows)

    def row(self, inet: int) -> np.ndarray:
        """The writable per-pin array of one net."""
        return self._rows[inet]

    def sinks(self, inet: int) -> np.ndarray:
        """View of the sink slots (pins 1..n-1) of one net."""
        return self._rows[inet][1:]

    def copy_sinks_from(self, other: "NetPinTable") -> None:
        for mine, theirs in zip(self._rows, other._rows):
            mine[1:] = theirs[1:]

    def matches(self, netlist: Netlist) -> bool:
        """Check that the table shape matches the netlist."""
        return [len(row) for row in self._rows] == netlist.pin_counts()

    def to_nested(self) -> List[List[float]]:
        return [row.tolist() for row in self._rows]

    def __getitem__(self, key: Tuple[int, int]) -> float:
        inet, ipin = key
        return float(self._rows[inet][ipin])

    def __setitem__(self, key: Tuple[int, int], value: float) -> None:
        inet, ipin = key
        self._rows[inet][ipin] = value

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._rows)

    def __repr__(self) -> str:
        return f"NetPinTable({len(self._rows)} nets, {sum(len(r) for r in self._rows)} pins)"
