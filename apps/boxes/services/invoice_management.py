"""
Invoice management service.

Every invoice change is mirrored onto its box total inside the same
transaction, with the box row locked:

- create: total += amount, last_bill_date moves forward
- amount edit: total += (new - old)
- delete: total -= amount (floored at zero)

Invoices of a completed box are frozen.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet, Sum, Count, Q
from django.utils import timezone

from apps.boxes.models import FinancialBox, Invoice

from .box_management import lock_box
from .exceptions import (
    InvoiceNotFoundError,
    InvalidAmountError,
    BoxClosedError,
    DuplicateInvoiceNumberError,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def _to_positive_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if amount <= 0:
        raise InvalidAmountError("Invoice amount must be greater than zero")
    return amount


def _ensure_open(box: FinancialBox) -> None:
    if box.is_completed:
        logger.warning("Refused invoice change on completed box %s", box.id)
        raise BoxClosedError(f"Financial box '{box.name}' is completed")


def _lock_invoice(invoice_id: UUID) -> Invoice:
    try:
        return Invoice.objects.select_for_update().get(id=invoice_id)
    except Invoice.DoesNotExist:
        raise InvoiceNotFoundError(f"Invoice with ID {invoice_id} not found")


@transaction.atomic
def create_invoice(
    *,
    box_id: UUID,
    amount,
    invoice_date: Optional[date] = None,
    description: str = '',
    invoice_number: Optional[str] = None,
    is_paid: bool = False
) -> Invoice:
    """
    Attach an invoice to a box and add its amount to the box total.

    Args:
        box_id: UUID of the financial box
        amount: Positive invoice amount
        invoice_date: Invoice date (defaults to today)
        description: Optional description
        invoice_number: Unique number (generated as INV-<timestamp> if omitted)
        is_paid: Whether the buyer has already paid

    Returns:
        Created Invoice

    Raises:
        BoxNotFoundError: If box doesn't exist
        BoxClosedError: If the box is completed
        InvalidAmountError: If amount is not positive
        DuplicateInvoiceNumberError: If invoice_number is taken
    """
    value = _to_positive_amount(amount)
    box = lock_box(box_id)
    _ensure_open(box)

    if invoice_number and Invoice.objects.filter(invoice_number=invoice_number).exists():
        raise DuplicateInvoiceNumberError(f"Invoice number '{invoice_number}' already exists")

    invoice_date = invoice_date or timezone.localdate()
    invoice = Invoice.objects.create(
        box=box,
        amount=value,
        invoice_date=invoice_date,
        description=description,
        invoice_number=invoice_number or '',
        is_paid=is_paid,
        paid_at=timezone.now() if is_paid else None,
    )

    box.total_amount += value
    if box.last_bill_date is None or invoice_date > box.last_bill_date:
        box.last_bill_date = invoice_date
    box.save(update_fields=['total_amount', 'last_bill_date', 'updated_at'])

    logger.info(
        "Invoice %s (%s) added to box %s, total now %s",
        invoice.invoice_number, value, box.id, box.total_amount
    )
    return invoice


def get_invoice_by_id(*, invoice_id: UUID) -> Invoice:
    """
    Get an invoice by ID.

    Raises:
        InvoiceNotFoundError: If invoice doesn't exist
    """
    try:
        return Invoice.objects.select_related('box').get(id=invoice_id)
    except Invoice.DoesNotExist:
        raise InvoiceNotFoundError(f"Invoice with ID {invoice_id} not found")


@transaction.atomic
def update_invoice(
    *,
    invoice_id: UUID,
    amount=None,
    invoice_date: Optional[date] = None,
    description: Optional[str] = None,
    invoice_number: Optional[str] = None
) -> Invoice:
    """
    Edit an invoice, applying any amount difference to the box total.

    Raises:
        InvoiceNotFoundError: If invoice doesn't exist
        BoxClosedError: If the box is completed
        InvalidAmountError: If amount is not positive
        DuplicateInvoiceNumberError: If invoice_number is taken
    """
    invoice = _lock_invoice(invoice_id)
    box = lock_box(invoice.box_id)
    _ensure_open(box)

    update_fields = []

    if amount is not None:
        value = _to_positive_amount(amount)
        delta = value - invoice.amount
        if delta:
            invoice.amount = value
            update_fields.append('amount')
            box.total_amount = max(ZERO, box.total_amount + delta)
            box.save(update_fields=['total_amount', 'updated_at'])

    if invoice_number is not None and invoice_number != invoice.invoice_number:
        if Invoice.objects.filter(invoice_number=invoice_number).exists():
            raise DuplicateInvoiceNumberError(f"Invoice number '{invoice_number}' already exists")
        invoice.invoice_number = invoice_number
        update_fields.append('invoice_number')

    if invoice_date is not None:
        invoice.invoice_date = invoice_date
        update_fields.append('invoice_date')
        if box.last_bill_date is None or invoice_date > box.last_bill_date:
            box.last_bill_date = invoice_date
            box.save(update_fields=['last_bill_date', 'updated_at'])

    if description is not None:
        invoice.description = description
        update_fields.append('description')

    if update_fields:
        update_fields.append('updated_at')
        invoice.save(update_fields=update_fields)

    return invoice


@transaction.atomic
def delete_invoice(*, invoice_id: UUID) -> None:
    """
    Remove an invoice and take its amount off the box total (floored at zero).

    Raises:
        InvoiceNotFoundError: If invoice doesn't exist
        BoxClosedError: If the box is completed
    """
    invoice = _lock_invoice(invoice_id)
    box = lock_box(invoice.box_id)
    _ensure_open(box)

    box.total_amount = max(ZERO, box.total_amount - invoice.amount)
    box.save(update_fields=['total_amount', 'updated_at'])
    invoice.delete()

    logger.info("Invoice %s removed from box %s", invoice_id, box.id)


@transaction.atomic
def set_invoice_paid(*, invoice_id: UUID, is_paid: bool = True) -> Invoice:
    """
    Mark an invoice as paid (or back to unpaid) by the buyer.

    Raises:
        InvoiceNotFoundError: If invoice doesn't exist
    """
    invoice = _lock_invoice(invoice_id)

    if invoice.is_paid != is_paid:
        invoice.is_paid = is_paid
        invoice.paid_at = timezone.now() if is_paid else None
        invoice.save(update_fields=['is_paid', 'paid_at', 'updated_at'])

    return invoice


def list_invoices(
    *,
    box_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    is_paid: Optional[bool] = None
) -> QuerySet[Invoice]:
    """Return invoices newest first, optionally filtered by box, date range and payment."""
    queryset = Invoice.objects.select_related('box')
    if box_id:
        queryset = queryset.filter(box_id=box_id)
    if date_from:
        queryset = queryset.filter(invoice_date__gte=date_from)
    if date_to:
        queryset = queryset.filter(invoice_date__lte=date_to)
    if is_paid is not None:
        queryset = queryset.filter(is_paid=is_paid)
    return queryset


def get_invoice_stats(*, box_id: Optional[UUID] = None) -> dict:
    """
    Invoice totals for one box or across all boxes.

    Returns:
        Dict with total/paid/unpaid amounts and counts
    """
    queryset = Invoice.objects.all()
    if box_id:
        queryset = queryset.filter(box_id=box_id)

    stats = queryset.aggregate(
        total_amount=Sum('amount'),
        paid_amount=Sum('amount', filter=Q(is_paid=True)),
        unpaid_amount=Sum('amount', filter=Q(is_paid=False)),
        total_count=Count('id'),
        paid_count=Count('id', filter=Q(is_paid=True)),
        unpaid_count=Count('id', filter=Q(is_paid=False)),
    )

    for key in ('total_amount', 'paid_amount', 'unpaid_amount'):
        stats[key] = stats[key] or ZERO
    return stats
