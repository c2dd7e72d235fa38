import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, OperatorRole
from apps.boxes.models import FinancialBox, BoxStatus
from apps.crew.models import CrewMember, CrewRole, DebtLedgerEntry, DebtEntryType


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def operator(db):
    """Create and return an accountant (the default operator role)."""
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
def owner(db):
    """Create and return the boat owner."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        role=OperatorRole.OWNER,
    )


@pytest.fixture
def owner_client(owner):
    """API client authenticated as the boat owner."""
    client = APIClient()
    refresh = RefreshToken.for_user(owner)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def crew(db):
    """
    One captain and three crew members.

    Khalid owes 150.00, which is more than his 111.11 share of a 1000.00 box.
    """
    captain = CrewMember.objects.create(name='Saeed', role=CrewRole.CAPTAIN)
    khalid = CrewMember.objects.create(name='Khalid', role=CrewRole.CREW)
    nasser = CrewMember.objects.create(name='Nasser', role=CrewRole.CREW)
    yousef = CrewMember.objects.create(name='Yousef', role=CrewRole.CREW)

    DebtLedgerEntry.objects.create(
        member=khalid,
        amount=Decimal('150.00'),
        entry_type=DebtEntryType.ADD,
        description='Advance',
    )

    return {
        'captain': captain,
        'khalid': khalid,
        'nasser': nasser,
        'yousef': yousef,
    }


@pytest.fixture
def retired_sailor(db):
    """Inactive member; never part of a distribution."""
    return CrewMember.objects.create(name='Omar', role=CrewRole.CREW, is_active=False)


@pytest.fixture
def box(db, operator):
    """Draft box holding 1000.00 for a crew of four."""
    return FinancialBox.objects.create(
        name='Spring trip',
        crew_count=4,
        total_amount=Decimal('1000.00'),
        created_by=operator,
    )


@pytest.fixture
def completed_box(db):
    return FinancialBox.objects.create(
        name='Winter trip',
        crew_count=4,
        status=BoxStatus.COMPLETED,
        total_amount=Decimal('250.00'),
    )


@pytest.fixture
def cancelled_box(db):
    return FinancialBox.objects.create(
        name='Aborted trip',
        crew_count=4,
        status=BoxStatus.CANCELLED,
        total_amount=Decimal('300.00'),
    )
