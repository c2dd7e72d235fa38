"""Operator sign-in."""

import logging

from django.contrib.auth.models import update_last_login

from apps.accounts.models import User
from .exceptions import InvalidCredentialsError, InactiveAccountError

logger = logging.getLogger(__name__)


def authenticate_user(*, email: str, password: str) -> User:
    """
    Check an operator's credentials and stamp last_login.

    The email match ignores case.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: Credentials are right but the account is off
    """
    user = User.objects.filter(email__iexact=email).first()
    if user is None or not user.check_password(password):
        logger.warning("Failed sign-in for %s", email)
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("This operator account is deactivated")

    update_last_login(None, user)
    return user
