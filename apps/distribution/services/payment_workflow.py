"""
Payment workflow service.

Turns an engine result into a persisted distribution cycle and walks it
through the payment states:

    open_cycle            box draft -> cycle with one unpaid payment per member
    deduct_member_debt    payment -> pending, debt recorded on the ledger once
    mark_pending          unpaid -> pending (batch selection)
    confirm_payments      unpaid|pending -> paid
    confirm_final_payment all paid -> box total decremented, box completed,
                          cycle closed

All state changes run in a transaction with the cycle, payment and box
rows locked. Repeating a step that already happened changes nothing.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.boxes.models import BoxStatus
from apps.boxes.services import (
    lock_box,
    get_box_by_id,
    decrement_box_total,
    complete_box,
)
from apps.crew.models import CrewMember, DebtEntryType
from apps.crew.services import append_debt_entry
from apps.distribution.models import DistributionCycle, MemberPayment, PaymentStatus

from .distribution_engine import (
    RosterEntry,
    DistributionResult,
    compute_distribution,
    recalculate_distribution,
    validate_debt_deduction,
    to_cents,
    ZERO,
)
from .exceptions import (
    AlreadyCompletedError,
    InvalidBoxStateError,
    InvalidTotalAmountError,
    CycleNotFoundError,
    CycleClosedError,
    PaymentsOutstandingError,
    MemberNotInCycleError,
    DebtExceedsShareError,
)

logger = logging.getLogger(__name__)

DEDUCTION_DESCRIPTION = 'Debt deducted from profit distribution'


def _min_deduction() -> Decimal:
    return Decimal(str(getattr(settings, 'DISTRIBUTION_MIN_DEDUCTION', '1')))


def build_roster() -> List[RosterEntry]:
    """Active crew members with their current debt, captains first."""
    members = CrewMember.objects.filter(is_active=True).order_by('role', 'name', 'created_at')
    return [
        RosterEntry(
            member_id=member.id,
            role=member.role,
            current_debt=member.get_current_debt(),
            name=member.name,
        )
        for member in members
    ]


def _ensure_distributable(box) -> None:
    if box.status == BoxStatus.COMPLETED:
        logger.warning("Refused distribution of completed box %s", box.id)
        raise AlreadyCompletedError(f"Financial box '{box.name}' is already completed")
    if box.status == BoxStatus.CANCELLED:
        logger.warning("Refused distribution of cancelled box %s", box.id)
        raise InvalidBoxStateError(f"Financial box '{box.name}' is cancelled")


def _lock_cycle(cycle_id: UUID) -> DistributionCycle:
    try:
        return DistributionCycle.objects.select_for_update().get(id=cycle_id)
    except DistributionCycle.DoesNotExist:
        raise CycleNotFoundError(f"Distribution cycle with ID {cycle_id} not found")


def _lock_open_cycle(cycle_id: UUID) -> DistributionCycle:
    cycle = _lock_cycle(cycle_id)
    if cycle.is_closed:
        raise CycleClosedError("Distribution cycle is already closed")
    return cycle


def _lock_payments(cycle: DistributionCycle, member_ids: Optional[Iterable[UUID]]) -> List[MemberPayment]:
    """Lock the payments for the given members (all when member_ids is None)."""
    queryset = (
        MemberPayment.objects
        .select_for_update()
        .filter(cycle=cycle)
        .order_by('role', 'member_name')
    )
    if member_ids is None:
        return list(queryset)

    wanted = {str(member_id) for member_id in member_ids}
    payments = list(queryset.filter(member_id__in=wanted))
    found = {str(payment.member_id) for payment in payments}
    missing = wanted - found
    if missing:
        raise MemberNotInCycleError(
            f"Members not in this distribution: {', '.join(sorted(missing))}"
        )
    return payments


def _record_deduction(payment: MemberPayment, amount: Decimal) -> None:
    """Write the subtract entry for a deduction, at most once per payment."""
    if payment.debt_entry_id is not None or amount <= 0 or payment.member_id is None:
        return

    payment.debt_entry = append_debt_entry(
        member_id=payment.member_id,
        amount=amount,
        entry_type=DebtEntryType.SUBTRACT,
        description=DEDUCTION_DESCRIPTION,
    )
    logger.info(
        "Deducted %s debt from member %s in cycle %s",
        amount, payment.member_id, payment.cycle_id
    )


def preview_distribution(*, box_id: UUID, crew_count: Optional[int] = None) -> DistributionResult:
    """
    Compute the split for a box without saving anything.

    Without crew_count the active roster must match the box's crew count;
    with crew_count the shares are sized for that head count instead.

    Raises:
        BoxNotFoundError: If box doesn't exist
        AlreadyCompletedError: If the box is completed
        InvalidBoxStateError: If the box is cancelled
        CrewCountMismatchError: If roster size != box.crew_count (no override)
        InvalidCrewCountError: If roster is empty or override is impossible
    """
    box = get_box_by_id(box_id=box_id)
    _ensure_distributable(box)
    roster = build_roster()

    if crew_count is None:
        return compute_distribution(
            box.total_amount,
            roster,
            expected_crew_count=box.crew_count,
            min_deduction=_min_deduction(),
        )
    return recalculate_distribution(
        box.total_amount,
        roster,
        crew_count,
        min_deduction=_min_deduction(),
    )


@transaction.atomic
def open_cycle(*, box_id: UUID, user: Optional[User] = None) -> DistributionCycle:
    """
    Start distributing a box.

    Snapshots the active roster, checks it against the box's crew count,
    runs the engine and creates one unpaid payment per member. If the box
    already has an open cycle, that cycle is returned unchanged.

    Args:
        box_id: UUID of the financial box
        user: Operator opening the cycle

    Returns:
        The open DistributionCycle

    Raises:
        BoxNotFoundError: If box doesn't exist
        AlreadyCompletedError: If the box is completed
        InvalidBoxStateError: If the box is cancelled
        CrewCountMismatchError: If roster size != box.crew_count
        InvalidCrewCountError: If there are no active members
    """
    box = lock_box(box_id)
    _ensure_distributable(box)

    existing = box.distribution_cycles.filter(is_closed=False).first()
    if existing is not None:
        return existing

    roster = build_roster()
    result = compute_distribution(
        box.total_amount,
        roster,
        expected_crew_count=box.crew_count,
        min_deduction=_min_deduction(),
    )

    cycle = DistributionCycle.objects.create(
        box=box,
        opened_by=user,
        total_amount=result.total_amount,
        owner_share=result.owner_share,
        total_crew_share=result.total_crew_share,
        individual_share=result.individual_share,
        captain_share=result.captain_share,
        captain_extra_share=result.captain_extra_share,
        total_captain_extra=result.total_captain_extra,
        crew_count=result.crew_count,
        captain_count=result.captain_count,
        share_units=result.share_units,
    )

    names = {entry.member_id: entry.name for entry in roster}
    MemberPayment.objects.bulk_create([
        MemberPayment(
            cycle=cycle,
            member_id=allocation.member_id,
            member_name=names[allocation.member_id],
            role=allocation.role,
            base_share=allocation.base_share,
            debt_deduction=allocation.debt_deduction,
            net_payout=allocation.net_payout,
            forgiven_amount=allocation.forgiven_amount,
        )
        for allocation in result.allocations
    ])

    logger.info(
        "Opened distribution cycle %s for box %s: total %s, owner %s, crew %s",
        cycle.id, box.id, result.total_amount, result.owner_share, result.total_crew_share
    )
    return cycle


@transaction.atomic
def deduct_member_debt(
    *,
    cycle_id: UUID,
    member_id: UUID,
    amount=None
) -> MemberPayment:
    """
    Net a member's debt against their share and record it on the ledger.

    Without an amount the member's full current debt is deducted. With an
    amount it is treated as an ad-hoc deduction and checked against the
    deduction policy. The payment moves to pending. Calling this again for
    a payment whose deduction is already recorded (or which is paid) does
    nothing.

    Raises:
        CycleNotFoundError: If cycle doesn't exist
        CycleClosedError: If cycle is closed
        MemberNotInCycleError: If member has no payment in the cycle
        DebtExceedsShareError: If an ad-hoc amount breaks the policy
    """
    cycle = _lock_open_cycle(cycle_id)
    payment = _lock_payments(cycle, [member_id])[0]

    if payment.debt_entry_id is not None or payment.is_paid:
        return payment

    current_debt = payment.member.get_current_debt() if payment.member_id else ZERO
    if amount is None:
        deduction = to_cents(current_debt)
    else:
        try:
            deduction = validate_debt_deduction(
                payment.base_share,
                current_debt,
                amount,
                minimum=_min_deduction(),
            )
        except DebtExceedsShareError:
            logger.warning(
                "Refused deduction of %s for member %s in cycle %s",
                amount, member_id, cycle.id
            )
            raise

    _record_deduction(payment, deduction)
    payment.apply_deduction(deduction)
    payment.status = PaymentStatus.PENDING
    payment.save(update_fields=[
        'debt_deduction', 'net_payout', 'forgiven_amount',
        'debt_entry', 'status', 'updated_at',
    ])
    return payment


@transaction.atomic
def mark_pending(*, cycle_id: UUID, member_ids: Optional[Iterable[UUID]] = None) -> List[MemberPayment]:
    """
    Select members for payment: unpaid -> pending. Paid members stay paid.

    Raises:
        CycleNotFoundError: If cycle doesn't exist
        CycleClosedError: If cycle is closed
        MemberNotInCycleError: If a member has no payment in the cycle
    """
    cycle = _lock_open_cycle(cycle_id)
    payments = _lock_payments(cycle, member_ids)

    for payment in payments:
        if payment.status == PaymentStatus.UNPAID:
            payment.status = PaymentStatus.PENDING
            payment.save(update_fields=['status', 'updated_at'])

    return payments


@transaction.atomic
def confirm_payments(*, cycle_id: UUID, member_ids: Optional[Iterable[UUID]] = None) -> List[MemberPayment]:
    """
    Confirm members as paid.

    A deduction not yet on the ledger is recomputed from the member's
    current debt and recorded now, so debt settled after the cycle opened
    is not deducted twice. Members already paid are left untouched.

    Raises:
        CycleNotFoundError: If cycle doesn't exist
        CycleClosedError: If cycle is closed
        MemberNotInCycleError: If a member has no payment in the cycle
    """
    cycle = _lock_open_cycle(cycle_id)
    payments = _lock_payments(cycle, member_ids)
    now = timezone.now()

    for payment in payments:
        if payment.is_paid:
            continue
        if payment.debt_entry_id is None:
            current_debt = payment.member.get_current_debt() if payment.member_id else ZERO
            payment.apply_deduction(to_cents(current_debt))
            _record_deduction(payment, payment.debt_deduction)
        payment.status = PaymentStatus.PAID
        payment.paid_at = now
        payment.save(update_fields=[
            'debt_deduction', 'net_payout', 'forgiven_amount',
            'debt_entry', 'status', 'paid_at', 'updated_at',
        ])

    logger.info("Confirmed %d payment(s) in cycle %s", len(payments), cycle.id)
    return payments


@transaction.atomic
def confirm_final_payment(*, cycle_id: UUID, total_amount=None) -> DistributionCycle:
    """
    Close a fully paid cycle and complete its box.

    Decrements the box total by total_amount (default: owner share plus
    crew shares) floored at zero. A closed cycle is returned as is,
    without a second decrement.

    Raises:
        CycleNotFoundError: If cycle doesn't exist
        AlreadyCompletedError: If the box was completed in the meantime
        InvalidBoxStateError: If the box was cancelled in the meantime
        PaymentsOutstandingError: If any member is not paid
        InvalidTotalAmountError: If total_amount is negative
    """
    cycle = _lock_cycle(cycle_id)
    if cycle.is_closed:
        return cycle

    box = lock_box(cycle.box_id)
    _ensure_distributable(box)

    outstanding = cycle.outstanding_payments().count()
    if outstanding:
        logger.warning(
            "Refused final confirmation of cycle %s: %d payment(s) outstanding",
            cycle.id, outstanding
        )
        raise PaymentsOutstandingError(
            f"{outstanding} member payment(s) are not confirmed yet"
        )

    if total_amount is None:
        amount = cycle.grand_total
    else:
        amount = to_cents(Decimal(str(total_amount)))
        if amount < ZERO:
            raise InvalidTotalAmountError("Total amount cannot be negative")

    decrement_box_total(box_id=cycle.box_id, amount=amount)
    complete_box(box_id=cycle.box_id)

    cycle.is_closed = True
    cycle.closed_at = timezone.now()
    cycle.total_distributed = amount
    cycle.save(update_fields=['is_closed', 'closed_at', 'total_distributed'])

    logger.info(
        "Closed distribution cycle %s: %s taken from box %s, box completed",
        cycle.id, amount, cycle.box_id
    )
    return cycle


def get_cycle_by_id(*, cycle_id: UUID) -> DistributionCycle:
    """
    Get a distribution cycle with its payments.

    Raises:
        CycleNotFoundError: If cycle doesn't exist
    """
    try:
        return (
            DistributionCycle.objects
            .select_related('box', 'opened_by')
            .prefetch_related('payments')
            .get(id=cycle_id)
        )
    except DistributionCycle.DoesNotExist:
        raise CycleNotFoundError(f"Distribution cycle with ID {cycle_id} not found")


def list_cycles(*, box_id: Optional[UUID] = None, open_only: bool = False) -> QuerySet[DistributionCycle]:
    """Return cycles newest first."""
    queryset = DistributionCycle.objects.select_related('box').prefetch_related('payments')
    if box_id:
        queryset = queryset.filter(box_id=box_id)
    if open_only:
        queryset = queryset.filter(is_closed=False)
    return queryset
