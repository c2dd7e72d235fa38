import pytest
from datetime import date
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, OperatorRole
from apps.boxes.models import FinancialBox, Invoice, BoxStatus


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
def box(db, operator):
    """Create an empty draft box for a crew of four."""
    return FinancialBox.objects.create(
        name='Spring trip',
        crew_count=4,
        created_by=operator,
    )


@pytest.fixture
def completed_box(db):
    """Create a completed box holding 250.00."""
    return FinancialBox.objects.create(
        name='Winter trip',
        crew_count=4,
        status=BoxStatus.COMPLETED,
        total_amount=Decimal('250.00'),
    )


@pytest.fixture
def box_with_invoices(box):
    """Box with one paid (600) and one unpaid (400) invoice, total 1000."""
    Invoice.objects.create(
        box=box,
        invoice_number='INV-1',
        invoice_date=date(2024, 3, 1),
        amount=Decimal('600.00'),
        is_paid=True,
    )
    Invoice.objects.create(
        box=box,
        invoice_number='INV-2',
        invoice_date=date(2024, 3, 5),
        amount=Decimal('400.00'),
    )
    box.total_amount = Decimal('1000.00')
    box.last_bill_date = date(2024, 3, 5)
    box.save()
    return box
