"""
Service layer unit tests for boxes app.

Tests cover:
- Box totals following invoice create / edit / delete
- Completed boxes refusing invoice changes
- Floors at zero
- Status changes (completed and cancelled are final)
- Invoice statistics and owner balance
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from apps.boxes.models import FinancialBox, Invoice, BoxStatus
from apps.boxes.services import (
    create_box,
    get_box_by_id,
    list_boxes,
    update_box,
    delete_box,
    set_box_status,
    complete_box,
    decrement_box_total,
    get_owner_balance,
    create_invoice,
    update_invoice,
    delete_invoice,
    set_invoice_paid,
    list_invoices,
    get_invoice_stats,
)
from apps.boxes.services.exceptions import (
    BoxNotFoundError,
    InvoiceNotFoundError,
    InvalidBoxStatusError,
    InvalidAmountError,
    BoxClosedError,
    DuplicateInvoiceNumberError,
)


# =============================================================================
# Box Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestBoxManagement:
    """Tests for box_management.py service functions."""

    def test_create_box_is_draft(self, operator):
        """New boxes start in draft with a zero total."""
        box = create_box(name='Trip 7', crew_count=5, created_by=operator)

        assert box.status == BoxStatus.DRAFT
        assert box.total_amount == Decimal('0.00')
        assert box.crew_count == 5
        assert box.created_by == operator

    def test_create_box_rejects_zero_crew(self):
        """crew_count must be at least one."""
        with pytest.raises(InvalidAmountError):
            create_box(name='Empty', crew_count=0)

    def test_get_box_not_found(self):
        """Missing box raises BoxNotFoundError."""
        with pytest.raises(BoxNotFoundError):
            get_box_by_id(box_id=uuid4())

    def test_list_boxes_by_status(self, box, completed_box):
        """Status filter returns only matching boxes."""
        boxes = list(list_boxes(status=BoxStatus.COMPLETED))

        assert boxes == [completed_box]

    def test_list_boxes_invalid_status(self):
        """Unknown status filter is rejected."""
        with pytest.raises(InvalidBoxStatusError):
            list_boxes(status='archived')

    def test_update_box_crew_count(self, box):
        """crew_count can be changed; total is untouched."""
        updated = update_box(box_id=box.id, crew_count=6)

        assert updated.crew_count == 6
        assert updated.total_amount == Decimal('0.00')

    def test_set_box_status(self, box):
        """A draft box can be cancelled."""
        updated = set_box_status(box_id=box.id, status=BoxStatus.CANCELLED)

        assert updated.status == BoxStatus.CANCELLED

    def test_set_same_status_is_noop(self, completed_box):
        updated = set_box_status(box_id=completed_box.id, status=BoxStatus.COMPLETED)

        assert updated.status == BoxStatus.COMPLETED

    def test_set_box_status_invalid(self, box):
        """Unknown status is rejected."""
        with pytest.raises(InvalidBoxStatusError):
            set_box_status(box_id=box.id, status='closed')

    def test_cannot_complete_directly(self, box):
        """Completion only happens through the payment workflow."""
        with pytest.raises(InvalidBoxStatusError):
            set_box_status(box_id=box.id, status=BoxStatus.COMPLETED)

        box.refresh_from_db()
        assert box.status == BoxStatus.DRAFT

    @pytest.mark.parametrize('target', [BoxStatus.DRAFT, BoxStatus.CANCELLED])
    def test_completed_is_final(self, completed_box, target):
        with pytest.raises(InvalidBoxStatusError):
            set_box_status(box_id=completed_box.id, status=target)

        completed_box.refresh_from_db()
        assert completed_box.status == BoxStatus.COMPLETED

    @pytest.mark.parametrize('target', [BoxStatus.DRAFT, BoxStatus.COMPLETED])
    def test_cancelled_is_final(self, box, target):
        set_box_status(box_id=box.id, status=BoxStatus.CANCELLED)

        with pytest.raises(InvalidBoxStatusError):
            set_box_status(box_id=box.id, status=target)

        box.refresh_from_db()
        assert box.status == BoxStatus.CANCELLED

    def test_complete_box(self, box):
        updated = complete_box(box_id=box.id)

        assert updated.status == BoxStatus.COMPLETED

    def test_complete_box_requires_draft(self, completed_box):
        with pytest.raises(InvalidBoxStatusError):
            complete_box(box_id=completed_box.id)

    def test_decrement_floors_at_zero(self, completed_box):
        """Decrementing more than the total leaves zero."""
        updated = decrement_box_total(box_id=completed_box.id, amount='400')

        assert updated.total_amount == Decimal('0.00')

    def test_decrement_partial(self, completed_box):
        """Decrementing less than the total leaves the remainder."""
        updated = decrement_box_total(box_id=completed_box.id, amount='100.50')

        assert updated.total_amount == Decimal('149.50')

    def test_delete_box_removes_invoices(self, box_with_invoices):
        """Deleting a box deletes its invoices."""
        delete_box(box_id=box_with_invoices.id)

        assert not FinancialBox.objects.filter(id=box_with_invoices.id).exists()
        assert Invoice.objects.count() == 0

    def test_owner_balance_sums_box_totals(self, box_with_invoices, completed_box):
        """Owner balance is the sum of all box totals."""
        balance = get_owner_balance()

        assert balance['owner_balance'] == Decimal('1250.00')
        assert balance['box_count'] == 2
        assert balance['draft_total'] == Decimal('1000.00')
        assert balance['completed_total'] == Decimal('250.00')
        assert balance['cancelled_total'] == Decimal('0.00')

    def test_owner_balance_empty(self, db):
        """No boxes gives a zero balance."""
        assert get_owner_balance()['owner_balance'] == Decimal('0.00')


# =============================================================================
# Invoice Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestInvoiceManagement:
    """Tests for invoice_management.py service functions."""

    def test_create_invoice_raises_box_total(self, box):
        """Invoice amount is added to the box total."""
        create_invoice(box_id=box.id, amount='1000', invoice_date=date(2024, 4, 2))

        box.refresh_from_db()
        assert box.total_amount == Decimal('1000.00')
        assert box.last_bill_date == date(2024, 4, 2)

    def test_create_invoice_generates_number(self, box):
        """Invoice number defaults to INV-<timestamp>."""
        first = create_invoice(box_id=box.id, amount=10)
        second = create_invoice(box_id=box.id, amount=20)

        assert first.invoice_number.startswith('INV-')
        assert first.invoice_number != second.invoice_number

    def test_last_bill_date_does_not_move_back(self, box_with_invoices):
        """An older invoice keeps the latest bill date."""
        create_invoice(box_id=box_with_invoices.id, amount=5, invoice_date=date(2024, 1, 1))

        box_with_invoices.refresh_from_db()
        assert box_with_invoices.last_bill_date == date(2024, 3, 5)

    def test_create_invoice_duplicate_number(self, box_with_invoices):
        """Invoice numbers are unique."""
        with pytest.raises(DuplicateInvoiceNumberError):
            create_invoice(box_id=box_with_invoices.id, amount=5, invoice_number='INV-1')

    def test_create_invoice_non_positive(self, box):
        """Zero amount is rejected and the total is unchanged."""
        with pytest.raises(InvalidAmountError):
            create_invoice(box_id=box.id, amount=0)

        box.refresh_from_db()
        assert box.total_amount == Decimal('0.00')

    def test_create_invoice_on_completed_box(self, completed_box):
        """Completed boxes do not accept invoices."""
        with pytest.raises(BoxClosedError):
            create_invoice(box_id=completed_box.id, amount=50)

        completed_box.refresh_from_db()
        assert completed_box.total_amount == Decimal('250.00')

    def test_create_invoice_missing_box(self):
        """Unknown box raises BoxNotFoundError."""
        with pytest.raises(BoxNotFoundError):
            create_invoice(box_id=uuid4(), amount=50)

    def test_update_invoice_applies_delta(self, box_with_invoices):
        """Changing an amount adjusts the box by the difference."""
        invoice = Invoice.objects.get(invoice_number='INV-2')
        update_invoice(invoice_id=invoice.id, amount='450')

        box_with_invoices.refresh_from_db()
        assert box_with_invoices.total_amount == Decimal('1050.00')

    def test_update_invoice_description_only(self, box_with_invoices):
        """Non-amount edits leave the total alone."""
        invoice = Invoice.objects.get(invoice_number='INV-2')
        update_invoice(invoice_id=invoice.id, description='Shrimp')

        box_with_invoices.refresh_from_db()
        assert box_with_invoices.total_amount == Decimal('1000.00')

    def test_delete_invoice_lowers_total(self, box_with_invoices):
        """Deleting an invoice removes its amount from the box."""
        invoice = Invoice.objects.get(invoice_number='INV-1')
        delete_invoice(invoice_id=invoice.id)

        box_with_invoices.refresh_from_db()
        assert box_with_invoices.total_amount == Decimal('400.00')

    def test_delete_invoice_floors_at_zero(self, box_with_invoices):
        """Total never goes negative after a delete."""
        FinancialBox.objects.filter(id=box_with_invoices.id).update(total_amount=Decimal('100.00'))
        invoice = Invoice.objects.get(invoice_number='INV-1')
        delete_invoice(invoice_id=invoice.id)

        box_with_invoices.refresh_from_db()
        assert box_with_invoices.total_amount == Decimal('0.00')

    def test_delete_invoice_on_completed_box(self, completed_box):
        """Invoices of a completed box cannot be removed."""
        invoice = Invoice.objects.create(box=completed_box, amount=Decimal('250.00'))

        with pytest.raises(BoxClosedError):
            delete_invoice(invoice_id=invoice.id)
        assert Invoice.objects.filter(id=invoice.id).exists()

    def test_delete_missing_invoice(self):
        """Unknown invoice raises InvoiceNotFoundError."""
        with pytest.raises(InvoiceNotFoundError):
            delete_invoice(invoice_id=uuid4())

    def test_set_invoice_paid(self, box_with_invoices):
        """Marking paid sets paid_at; unmarking clears it."""
        invoice = Invoice.objects.get(invoice_number='INV-2')

        paid = set_invoice_paid(invoice_id=invoice.id)
        assert paid.is_paid is True
        assert paid.paid_at is not None

        unpaid = set_invoice_paid(invoice_id=invoice.id, is_paid=False)
        assert unpaid.is_paid is False
        assert unpaid.paid_at is None

    def test_list_invoices_by_date(self, box_with_invoices):
        """Date range filter is inclusive."""
        invoices = list(list_invoices(date_from=date(2024, 3, 2), date_to=date(2024, 3, 5)))

        assert [i.invoice_number for i in invoices] == ['INV-2']

    def test_invoice_stats(self, box_with_invoices):
        """Stats split amounts and counts by payment status."""
        stats = get_invoice_stats(box_id=box_with_invoices.id)

        assert stats['total_amount'] == Decimal('1000.00')
        assert stats['paid_amount'] == Decimal('600.00')
        assert stats['unpaid_amount'] == Decimal('400.00')
        assert stats['total_count'] == 2
        assert stats['paid_count'] == 1
        assert stats['unpaid_count'] == 1

    def test_invoice_stats_empty(self, db):
        """Stats with no invoices are zero."""
        stats = get_invoice_stats()

        assert stats['total_amount'] == Decimal('0.00')
        assert stats['total_count'] == 0
