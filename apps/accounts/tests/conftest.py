import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, OperatorRole


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    """Accountant operator with a known password."""
    return User.objects.create_user(
        email='accountant@example.com',
        password='TestPass123!',
        display_name='Layla',
    )


@pytest.fixture
def owner(db):
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        role=OperatorRole.OWNER,
    )


@pytest.fixture
def user_inactive(db):
    return User.objects.create_user(
        email='former@example.com',
        password='TestPass123!',
        is_active=False,
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """API client carrying the accountant's access token."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client
