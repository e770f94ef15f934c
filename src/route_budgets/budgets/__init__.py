"""Budget store, allocators and congestion feedback."""

from .store import BudgetStore, BudgetTables
from .pert import PertAllocator, PertResult
from .criticality import CriticalityAllocator, reshape_criticality
from .congestion import CongestionFeedback
from .manager import RouteBudgets

__all__ = [
    'BudgetStore',
    'BudgetTables',
    'PertAllocator',
    'PertResult',
    'CriticalityAllocator',
    'reshape_criticality',
    'CongestionFeedback',
    'RouteBudgets'
]
