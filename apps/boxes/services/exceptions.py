"""
Domain-specific exceptions for boxes app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class BoxesServiceError(Exception):
    """Base exception for all financial box and invoice errors."""
    pass


class BoxNotFoundError(BoxesServiceError):
    """Raised when a financial box does not exist."""
    pass


class InvoiceNotFoundError(BoxesServiceError):
    """Raised when an invoice does not exist."""
    pass


class InvalidBoxStatusError(BoxesServiceError):
    """Raised for an unknown status or a status change that is not allowed."""
    pass


class InvalidAmountError(BoxesServiceError):
    """Raised when an amount or crew count is out of range."""
    pass


class BoxClosedError(BoxesServiceError):
    """Raised when changing invoices of a completed box."""
    pass


class DuplicateInvoiceNumberError(BoxesServiceError):
    """Raised when an invoice number is already used."""
    pass
