"""
Debt ledger service.

A member's debt is never stored as a number; it is the sum of add entries
minus the sum of subtract entries in their ledger. Every change is a new
entry, so each movement can be edited or reversed on its own.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.crew.models import CrewMember, DebtLedgerEntry, DebtEntryType

from .exceptions import (
    CrewMemberNotFoundError,
    DebtEntryNotFoundError,
    InvalidDebtAmountError,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def _to_amount(amount, *, allow_zero: bool = False) -> Decimal:
    """Coerce to a 2-place Decimal, rejecting non-numbers and non-positive values."""
    try:
        value = Decimal(str(amount)).quantize(CENT)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidDebtAmountError(f"Invalid amount: {amount!r}")

    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidDebtAmountError("Amount must be greater than zero")
    return value


def _lock_member(member_id: UUID) -> CrewMember:
    try:
        return CrewMember.objects.select_for_update().get(id=member_id)
    except CrewMember.DoesNotExist:
        raise CrewMemberNotFoundError(f"Crew member with ID {member_id} not found")


def get_debt_total(*, member_id: UUID) -> Decimal:
    """
    Current outstanding debt of a member, floored at zero.

    Raises:
        CrewMemberNotFoundError: If member doesn't exist
    """
    try:
        member = CrewMember.objects.get(id=member_id)
    except CrewMember.DoesNotExist:
        raise CrewMemberNotFoundError(f"Crew member with ID {member_id} not found")
    return member.get_current_debt()


def get_debt_history(*, member_id: UUID) -> QuerySet[DebtLedgerEntry]:
    """
    Ledger entries for a member, newest first.

    Raises:
        CrewMemberNotFoundError: If member doesn't exist
    """
    if not CrewMember.objects.filter(id=member_id).exists():
        raise CrewMemberNotFoundError(f"Crew member with ID {member_id} not found")

    return (
        DebtLedgerEntry.objects
        .filter(member_id=member_id)
        .order_by('-entry_date', '-created_at')
    )


@transaction.atomic
def append_debt_entry(
    *,
    member_id: UUID,
    amount,
    entry_type: str = DebtEntryType.ADD,
    description: str = '',
    entry_date: Optional[date] = None
) -> DebtLedgerEntry:
    """
    Record a debt movement for a member.

    Locks the member row so concurrent entries serialize.

    Args:
        member_id: UUID of the crew member
        amount: Positive amount of the movement
        entry_type: 'add' (new debt) or 'subtract' (repayment/deduction)
        description: Free-text reason
        entry_date: Date of the movement (defaults to today)

    Returns:
        Created DebtLedgerEntry

    Raises:
        CrewMemberNotFoundError: If member doesn't exist
        InvalidDebtAmountError: If amount is not positive or entry_type is unknown
    """
    if entry_type not in DebtEntryType.values:
        raise InvalidDebtAmountError(f"Invalid entry type '{entry_type}'")

    value = _to_amount(amount)
    member = _lock_member(member_id)

    fields = {
        'member': member,
        'amount': value,
        'entry_type': entry_type,
        'description': description,
    }
    if entry_date is not None:
        fields['entry_date'] = entry_date

    entry = DebtLedgerEntry.objects.create(**fields)
    logger.info(
        "Debt entry %s for member %s: %s %s",
        entry.id, member.id, entry_type, value
    )
    return entry


@transaction.atomic
def set_debt(
    *,
    member_id: UUID,
    amount,
    description: str = ''
) -> Optional[DebtLedgerEntry]:
    """
    Bring a member's ledger balance to an exact amount.

    Stored as one add or subtract entry carrying the difference, so the
    history keeps showing how the balance moved.

    Returns:
        The created entry, or None when the balance already matches

    Raises:
        CrewMemberNotFoundError: If member doesn't exist
        InvalidDebtAmountError: If amount is negative or not a number
    """
    target = _to_amount(amount, allow_zero=True)
    member = _lock_member(member_id)

    delta = target - member.get_raw_debt_balance()
    if delta == 0:
        return None

    entry = DebtLedgerEntry.objects.create(
        member=member,
        amount=abs(delta),
        entry_type=DebtEntryType.ADD if delta > 0 else DebtEntryType.SUBTRACT,
        description=description or f"Debt set to {target}",
    )
    logger.info("Debt for member %s set to %s", member.id, target)
    return entry


@transaction.atomic
def update_debt_entry(
    *,
    entry_id: UUID,
    amount=None,
    entry_type: Optional[str] = None,
    description: Optional[str] = None,
    entry_date: Optional[date] = None
) -> DebtLedgerEntry:
    """
    Edit a single ledger entry. Only provided fields are changed.

    Raises:
        DebtEntryNotFoundError: If entry doesn't exist
        InvalidDebtAmountError: If amount or entry_type is invalid
    """
    try:
        entry = (
            DebtLedgerEntry.objects
            .select_for_update()
            .select_related('member')
            .get(id=entry_id)
        )
    except DebtLedgerEntry.DoesNotExist:
        raise DebtEntryNotFoundError(f"Debt entry with ID {entry_id} not found")

    update_fields = []
    if amount is not None:
        entry.amount = _to_amount(amount)
        update_fields.append('amount')
    if entry_type is not None:
        if entry_type not in DebtEntryType.values:
            raise InvalidDebtAmountError(f"Invalid entry type '{entry_type}'")
        entry.entry_type = entry_type
        update_fields.append('entry_type')
    if description is not None:
        entry.description = description
        update_fields.append('description')
    if entry_date is not None:
        entry.entry_date = entry_date
        update_fields.append('entry_date')

    if update_fields:
        update_fields.append('updated_at')
        entry.save(update_fields=update_fields)

    return entry


@transaction.atomic
def delete_debt_entry(*, entry_id: UUID) -> None:
    """
    Remove a ledger entry, reversing its effect on the balance.

    Raises:
        DebtEntryNotFoundError: If entry doesn't exist
    """
    deleted, _ = DebtLedgerEntry.objects.filter(id=entry_id).delete()
    if not deleted:
        raise DebtEntryNotFoundError(f"Debt entry with ID {entry_id} not found")
    logger.info("Debt entry %s deleted", entry_id)
