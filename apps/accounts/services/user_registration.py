"""Operator registration."""

import logging

from django.db import transaction, IntegrityError

from apps.accounts.models import User, OperatorRole
from .exceptions import UserRegistrationError

logger = logging.getLogger(__name__)


def register_user(
    *,
    email: str,
    password: str,
    display_name: str = "",
    role: str = OperatorRole.ACCOUNTANT
) -> User:
    """
    Create an operator account.

    Raises:
        UserRegistrationError: If the email is already registered
    """
    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError(f"An operator with email {email} already exists")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                display_name=display_name,
                role=role,
            )
    except IntegrityError:
        raise UserRegistrationError(f"An operator with email {email} already exists")

    logger.info("Registered %s operator %s", role, user.id)
    return user
