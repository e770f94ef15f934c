"""Human-readable budget dumps for debugging."""

from pathlib import Path
from typing import List, Tuple, Union

from ..core.tables import NetPinTable
from ..exceptions import ResourceError
from .store import BudgetStore


def _format_table(title: str, table: NetPinTable) -> List[str]:
    lines = [f"{title}:"]
    for inet, row in enumerate(table):
        values = " ".join(f"{value:g}" for value in row[1:])
        lines.append(f"Net: {inet:<12d}{values}")
    return lines


def format_budgets(store: BudgetStore) -> str:
    """Render all five budget tables, one line per net in sink-pin order."""
    tables = store.tables
    sections: List[Tuple[str, NetPinTable]] = [
        ("Minimum Delay Budgets", tables.min_budget),
        ("Maximum Delay Budgets", tables.max_budget),
        ("Target Delay Budgets", tables.target),
        ("Delay Lower Bound", tables.lower_bound),
        ("Delay Upper Bound", tables.upper_bound),
    ]

    lines: List[str] = []
    for title, table in sections:
        if lines:
            lines.append("")
        lines.extend(_format_table(title, table))
    return "\n".join(lines) + "\n"


def format_table(table: NetPinTable, title: str = "Temporary Budgets") -> str:
    """Render a single net/pin table (e.g. an in-flight PERT budget)."""
    return "\n".join(_format_table(title, table)) + "\n"


def write_report(text: str, path: Union[str, Path]) -> Path:
    """Write a rendered report.

    Raises:
        ResourceError: if the file cannot be written
    """
    path = Path(path)
    try:
        with open(path, 'w') as f:
            f.write(text)
    except OSError as e:
        raise ResourceError(f"could not open \"{path}\" for generating route budget file") from e
    return path
