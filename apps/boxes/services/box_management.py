"""
Financial box management service.

Boxes collect invoice amounts for one trip. The running total is only
changed through the services in this package so that every change is
made under a row lock.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet, Sum, Count

from apps.accounts.models import User
from apps.boxes.models import FinancialBox, BoxStatus

from .exceptions import (
    BoxNotFoundError,
    InvalidBoxStatusError,
    InvalidAmountError,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0.00')

def _to_amount(value, *, field: str = 'amount') -> Decimal:
    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(f"Invalid {field}: {value!r}")
    if amount < 0:
        raise InvalidAmountError(f"{field} cannot be negative")
    return amount

def _validate_crew_count(crew_count: int) -> None:
    if crew_count < 1:
        raise InvalidAmountError("crew_count must be at least 1")

def lock_box(box_id: UUID) -> FinancialBox:
    """
    Fetch a box with a row lock. Must be called inside a transaction.

    Raises:
        BoxNotFoundError: If box doesn't exist
    """
    try:
        return FinancialBox.objects.select_for_update().get(id=box_id)
    except FinancialBox.DoesNotExist:
        raise BoxNotFoundError(f"Financial box with ID {box_id} not found")

@transaction.atomic
def create_box(
    *,
    name: str,
    crew_count: int = 1,
    description: str = '',
    total_amount=ZERO,
    created_by: Optional[User] = None
) -> FinancialBox:
    """
    Open a new financial box in draft status.

    Args:
        name: Box name (e.g. trip or season)
        crew_count: Number of crew expected to share this box
        description: Optional notes
        total_amount: Opening balance (normally zero, invoices add to it)
        created_by: Operator creating the box

    Returns:
        Created FinancialBox

    Raises:
        InvalidAmountError: If crew_count < 1 or total_amount is negative
    """
    _validate_crew_count(crew_count)

    box = FinancialBox.objects.create(
        name=name,
        crew_count=crew_count,
        description=description,
        total_amount=_to_amount(total_amount, field='total_amount'),
        created_by=created_by,
    )
    logger.info("Financial box %s created", box.id)
    return box

def get_box_by_id(*, box_id: UUID) -> FinancialBox:
    """
    Get a financial box by ID.

    Raises:
        BoxNotFoundError: If box doesn't exist
    """
    try:
        return FinancialBox.objects.get(id=box_id)
    except FinancialBox.DoesNotExist:
        raise BoxNotFoundError(f"Financial box with ID {box_id} not found")

def list_boxes(*, status: Optional[str] = None) -> QuerySet[FinancialBox]:
    """Return boxes newest first, with invoice counts annotated."""
    queryset = FinancialBox.objects.annotate(invoice_count=Count('invoices'))
    if status:
        if status not in BoxStatus.values:
            raise InvalidBoxStatusError(f"Invalid status '{status}'")
        queryset = queryset.filter(status=status)
    return queryset

@transaction.atomic
def update_box(
    *,
    box_id: UUID,
    name: Optional[str] = None,
    description: Optional[str] = None,
    crew_count: Optional[int] = None
) -> FinancialBox:
    """
    Update box details. Only provided fields are changed.

    The total is not editable here; it follows the attached invoices.

    Raises:
        BoxNotFoundError: If box doesn't exist
        InvalidAmountError: If crew_count < 1
    """
    box = lock_box(box_id)

    update_fields = []
    if name is not None:
        box.name = name
        update_fields.append('name')
    if description is not None:
        box.description = description
        update_fields.append('description')
    if crew_count is not None:
        _validate_crew_count(crew_count)
        box.crew_count = crew_count
        update_fields.append('crew_count')

    if update_fields:
        update_fields.append('updated_at')
        box.save(update_fields=update_fields)

    return box

@transaction.atomic
def delete_box(*, box_id: UUID) -> None:
    """
    Delete a box and its invoices.

    Raises:
        BoxNotFoundError: If box doesn't exist
    """
    box = lock_box(box_id)
    box.delete()
    logger.info("Financial box %s deleted", box_id)

@transaction.atomic
def set_box_status(*, box_id: UUID, status: str) -> FinancialBox:
    """
    Operator status change. The only allowed change is draft -> cancelled.

    Completed and cancelled are final, and a box becomes completed only
    through complete_box() at the end of a distribution. Setting the
    current status again does nothing.

    Raises:
        BoxNotFoundError: If box doesn't exist
        InvalidBoxStatusError: If status is unknown or the change is not allowed
    """
    if status not in BoxStatus.values:
        raise InvalidBoxStatusError(
            f"Invalid status '{status}'. Must be one of: {', '.join(BoxStatus.values)}"
        )

    box = lock_box(box_id)
    if box.status == status:
        return box

    if box.status != BoxStatus.DRAFT or status != BoxStatus.CANCELLED:
        logger.warning(
            "Refused status change of box %s from %s to %s", box.id, box.status, status
        )
        raise InvalidBoxStatusError(
            f"Cannot change status from '{box.status}' to '{status}'"
        )

    box.status = status
    box.save(update_fields=['status', 'updated_at'])
    logger.info("Financial box %s status set to %s", box.id, status)
    return box

@transaction.atomic
def complete_box(*, box_id: UUID) -> FinancialBox:
    """
    Mark a draft box as completed once its distribution is paid out.

    Raises:
        BoxNotFoundError: If box doesn't exist
        InvalidBoxStatusError: If the box is not a draft
    """
    box = lock_box(box_id)
    if box.status != BoxStatus.DRAFT:
        raise InvalidBoxStatusError(
            f"Only draft boxes can be completed, box is '{box.status}'"
        )

    box.status = BoxStatus.COMPLETED
    box.save(update_fields=['status', 'updated_at'])
    logger.info("Financial box %s completed", box.id)
    return box

@transaction.atomic
def decrement_box_total(*, box_id: UUID, amount) -> FinancialBox:
    """
    Subtract an amount from the box total, never going below zero.

    Raises:
        BoxNotFoundError: If box doesn't exist
        InvalidAmountError: If amount is negative or not a number
    """
    value = _to_amount(amount)
    box = lock_box(box_id)

    box.total_amount = max(ZERO, box.total_amount - value)
    box.save(update_fields=['total_amount', 'updated_at'])
    return box

def get_owner_balance() -> dict:
    """
    Owner balance shown on the dashboard: the sum of all box totals.

    Returns:
        Dict with owner_balance, box_count and per-status totals
    """
    overall = FinancialBox.objects.aggregate(
        total=Sum('total_amount'),
        count=Count('id'),
    )
    by_status = {
        row['status']: row['total'] or ZERO
        for row in FinancialBox.objects.order_by().values('status').annotate(total=Sum('total_amount'))
    }

    return {
        'owner_balance': overall['total'] or ZERO,
        'box_count': overall['count'],
        'draft_total': by_status.get(BoxStatus.DRAFT, ZERO),
        'completed_total': by_status.get(BoxStatus.COMPLETED, ZERO),
        'cancelled_total': by_status.get(BoxStatus.CANCELLED, ZERO),
    }
