"""Errors raised by the budget engine."""


class BudgetError(Exception):
    """Base class for route budget errors."""
    pass


class PreconditionViolation(BudgetError):
    """Raised when a caller queries budgets it is not allowed to see.

    Driver pins (index 0) are never budgeted, and no budget may be read
    while the budget set is inactive.
    """
    pass


class InvariantViolation(BudgetError):
    """Raised when lower_bound <= min <= target <= max <= upper_bound breaks."""
    pass


class ResourceError(BudgetError):
    """Raised when the debug dump cannot be written."""
    pass
