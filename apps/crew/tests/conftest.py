import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.crew.models import CrewMember, CrewRole, DebtLedgerEntry, DebtEntryType


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def operator(db):
    """Create and return a back-office operator."""
    return User.objects.create_user(
        email='operator@example.com',
        password='TestPass123!',
        display_name='Operator',
    )


@pytest.fixture
def authenticated_client(api_client, operator):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(operator)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def captain(db):
    """Create and return the vessel's captain."""
    return CrewMember.objects.create(name='Saeed', role=CrewRole.CAPTAIN)


@pytest.fixture
def sailor(db):
    """Create and return a regular crew member."""
    return CrewMember.objects.create(name='Khalid', role=CrewRole.CREW)


@pytest.fixture
def inactive_sailor(db):
    """Create and return an inactive crew member."""
    return CrewMember.objects.create(name='Omar', role=CrewRole.CREW, is_active=False)


@pytest.fixture
def sailor_with_debt(sailor):
    """Regular crew member owing 150.00 (200 advanced, 50 repaid)."""
    DebtLedgerEntry.objects.create(
        member=sailor,
        amount=Decimal('200.00'),
        entry_type=DebtEntryType.ADD,
        description='Advance',
    )
    DebtLedgerEntry.objects.create(
        member=sailor,
        amount=Decimal('50.00'),
        entry_type=DebtEntryType.SUBTRACT,
        description='Repayment',
    )
    return sailor
