"""Errors raised by operator account services; views map them to 400/401/403."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class UserRegistrationError(AccountsServiceError):
    """Email already belongs to an operator."""
    pass


class InvalidCredentialsError(AccountsServiceError):
    """Unknown email or wrong password."""
    pass


class InactiveAccountError(AccountsServiceError):
    """Operator account has been switched off."""
    pass
