"""
Domain-specific exceptions for profit distribution.

The engine raises the first group; the payment workflow adds the second.
Views catch them and convert them to HTTP responses.
"""


class DistributionError(Exception):
    """Base exception for all distribution errors."""
    pass


# Engine

class InvalidTotalAmountError(DistributionError):
    """Raised when the amount to distribute is negative or not a number."""
    pass


class InvalidCrewCountError(DistributionError):
    """Raised for an empty roster or an impossible head-count override."""
    pass


class CrewCountMismatchError(DistributionError):
    """Raised when the active roster size differs from the box's crew count."""

    def __init__(self, actual: int, expected: int):
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"Crew count mismatch: {actual} active members, box expects {expected}"
        )


class DebtExceedsShareError(DistributionError):
    """Raised when an ad-hoc debt deduction breaks the deduction policy."""
    pass


class AlreadyCompletedError(DistributionError):
    """Raised when distributing a box that is already completed."""
    pass


# Payment workflow

class CycleNotFoundError(DistributionError):
    """Raised when a distribution cycle does not exist."""
    pass


class CycleClosedError(DistributionError):
    """Raised when changing payments of a closed cycle."""
    pass


class PaymentsOutstandingError(DistributionError):
    """Raised when final confirmation is attempted before every member is paid."""
    pass


class InvalidBoxStateError(DistributionError):
    """Raised when a box cannot be distributed in its current status."""
    pass


class MemberNotInCycleError(DistributionError):
    """Raised when a member has no payment in the cycle."""
    pass
