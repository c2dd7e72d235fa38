"""
Domain-specific exceptions for crew app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class CrewServiceError(Exception):
    """Base exception for all crew service errors."""
    pass


class CrewMemberNotFoundError(CrewServiceError):
    """Raised when a crew member does not exist."""
    pass


class DebtEntryNotFoundError(CrewServiceError):
    """Raised when a debt ledger entry does not exist."""
    pass


class InvalidDebtAmountError(CrewServiceError):
    """Raised when a debt amount is zero, negative or not a number."""
    pass


class InvalidCrewRoleError(CrewServiceError):
    """Raised when a role is not one of captain or crew."""
    pass
