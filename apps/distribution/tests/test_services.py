"""
Service layer tests for the payment workflow.

Tests cover:
- Opening a cycle (snapshot, payments, idempotency, refusals)
- Debt deductions and their ledger entries
- Member selection and confirmation
- Final confirmation (box decrement, completion, idempotency)
- Preview without persistence
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from apps.boxes.models import FinancialBox, BoxStatus
from apps.boxes.services import BoxNotFoundError, InvalidBoxStatusError, set_box_status
from apps.crew.models import DebtLedgerEntry, DebtEntryType
from apps.distribution.models import DistributionCycle, MemberPayment, PaymentStatus
from apps.distribution.services import (
    build_roster,
    preview_distribution,
    open_cycle,
    deduct_member_debt,
    mark_pending,
    confirm_payments,
    confirm_final_payment,
    get_cycle_by_id,
    list_cycles,
)
from apps.distribution.services.exceptions import (
    AlreadyCompletedError,
    InvalidBoxStateError,
    InvalidCrewCountError,
    CrewCountMismatchError,
    DebtExceedsShareError,
    CycleNotFoundError,
    CycleClosedError,
    PaymentsOutstandingError,
    MemberNotInCycleError,
)
from apps.distribution.services.payment_workflow import DEDUCTION_DESCRIPTION


def _deduction_entries(member):
    return DebtLedgerEntry.objects.filter(
        member=member,
        entry_type=DebtEntryType.SUBTRACT,
        description=DEDUCTION_DESCRIPTION,
    )


# =============================================================================
# Roster Tests
# =============================================================================

@pytest.mark.django_db
class TestBuildRoster:
    """Tests for build_roster()."""

    def test_active_members_captain_first(self, crew, retired_sailor):
        roster = build_roster()

        assert [entry.name for entry in roster] == ['Saeed', 'Khalid', 'Nasser', 'Yousef']
        assert roster[0].is_captain

    def test_carries_current_debt(self, crew):
        roster = {entry.name: entry for entry in build_roster()}

        assert roster['Khalid'].current_debt == Decimal('150.00')
        assert roster['Nasser'].current_debt == Decimal('0')


# =============================================================================
# Open Cycle Tests
# =============================================================================

@pytest.mark.django_db
class TestOpenCycle:
    """Tests for open_cycle()."""

    def test_snapshot_and_payments(self, box, crew, operator):
        """Opening a cycle stores the split and one unpaid payment per member."""
        cycle = open_cycle(box_id=box.id, user=operator)

        assert cycle.total_amount == Decimal('1000.00')
        assert cycle.owner_share == Decimal('444.44')
        assert cycle.total_crew_share == Decimal('500.00')
        assert cycle.total_captain_extra == Decimal('55.56')
        assert cycle.grand_total == Decimal('944.44')
        assert cycle.opened_by == operator
        assert cycle.is_closed is False

        payments = MemberPayment.objects.filter(cycle=cycle)
        assert payments.count() == 4
        assert all(p.status == PaymentStatus.UNPAID for p in payments)

        captain_payment = payments.get(member=crew['captain'])
        assert captain_payment.base_share == Decimal('166.67')
        assert captain_payment.net_payout == Decimal('166.67')

    def test_planned_deduction_not_yet_recorded(self, box, crew):
        """The debt is netted in the plan but not written to the ledger."""
        cycle = open_cycle(box_id=box.id)
        payment = cycle.payments.get(member=crew['khalid'])

        assert payment.debt_deduction == Decimal('150.00')
        assert payment.net_payout == Decimal('0.00')
        assert payment.forgiven_amount == Decimal('38.89')
        assert payment.debt_entry is None
        assert crew['khalid'].get_current_debt() == Decimal('150.00')

    def test_open_twice_returns_same_cycle(self, box, crew):
        first = open_cycle(box_id=box.id)
        second = open_cycle(box_id=box.id)

        assert first.id == second.id
        assert DistributionCycle.objects.filter(box=box).count() == 1
        assert MemberPayment.objects.count() == 4

    def test_does_not_touch_box(self, box, crew):
        open_cycle(box_id=box.id)

        box.refresh_from_db()
        assert box.total_amount == Decimal('1000.00')
        assert box.status == BoxStatus.DRAFT

    def test_completed_box(self, completed_box, crew):
        with pytest.raises(AlreadyCompletedError):
            open_cycle(box_id=completed_box.id)

    def test_cancelled_box(self, cancelled_box, crew):
        with pytest.raises(InvalidBoxStateError):
            open_cycle(box_id=cancelled_box.id)

    def test_missing_box(self, crew):
        with pytest.raises(BoxNotFoundError):
            open_cycle(box_id=uuid4())

    def test_crew_count_mismatch(self, box, crew):
        box.crew_count = 5
        box.save()

        with pytest.raises(CrewCountMismatchError):
            open_cycle(box_id=box.id)
        assert not DistributionCycle.objects.exists()

    def test_no_active_crew(self, box):
        with pytest.raises(InvalidCrewCountError):
            open_cycle(box_id=box.id)


# =============================================================================
# Deduction Tests
# =============================================================================

@pytest.mark.django_db
class TestDeductMemberDebt:
    """Tests for deduct_member_debt()."""

    def test_full_debt_recorded(self, box, crew):
        """Without an amount the whole current debt goes on the ledger."""
        cycle = open_cycle(box_id=box.id)

        payment = deduct_member_debt(cycle_id=cycle.id, member_id=crew['khalid'].id)

        assert payment.status == PaymentStatus.PENDING
        assert payment.debt_entry is not None
        assert payment.debt_entry.amount == Decimal('150.00')
        assert crew['khalid'].get_current_debt() == Decimal('0.00')

    def test_deduction_applied_once(self, box, crew):
        """A second deduction for the same payment writes nothing."""
        cycle = open_cycle(box_id=box.id)

        deduct_member_debt(cycle_id=cycle.id, member_id=crew['khalid'].id)
        deduct_member_debt(cycle_id=cycle.id, member_id=crew['khalid'].id)

        assert _deduction_entries(crew['khalid']).count() == 1

    def test_ad_hoc_amount(self, box, crew):
        """An explicit amount replaces the planned deduction."""
        DebtLedgerEntry.objects.create(
            member=crew['nasser'],
            amount=Decimal('30.00'),
            entry_type=DebtEntryType.ADD,
        )
        cycle = open_cycle(box_id=box.id)

        payment = deduct_member_debt(
            cycle_id=cycle.id,
            member_id=crew['nasser'].id,
            amount=Decimal('50.00'),
        )

        assert payment.debt_deduction == Decimal('50.00')
        assert payment.net_payout == Decimal('61.11')
        assert _deduction_entries(crew['nasser']).get().amount == Decimal('50.00')

    def test_ad_hoc_amount_at_minimum_rejected(self, box, crew):
        cycle = open_cycle(box_id=box.id)

        with pytest.raises(DebtExceedsShareError):
            deduct_member_debt(cycle_id=cycle.id, member_id=crew['nasser'].id, amount=Decimal('1.00'))

        assert not _deduction_entries(crew['nasser']).exists()

    def test_ad_hoc_amount_when_debt_exceeds_share(self, box, crew):
        """Khalid's 150.00 debt already covers his 111.11 share."""
        cycle = open_cycle(box_id=box.id)

        with pytest.raises(DebtExceedsShareError):
            deduct_member_debt(cycle_id=cycle.id, member_id=crew['khalid'].id, amount=Decimal('20.00'))

    def test_member_without_debt(self, box, crew):
        """Nothing to deduct: no ledger entry, payment still moves to pending."""
        cycle = open_cycle(box_id=box.id)

        payment = deduct_member_debt(cycle_id=cycle.id, member_id=crew['yousef'].id)

        assert payment.status == PaymentStatus.PENDING
        assert payment.debt_entry is None
        assert payment.net_payout == Decimal('111.11')

    def test_member_not_in_cycle(self, box, crew, retired_sailor):
        cycle = open_cycle(box_id=box.id)

        with pytest.raises(MemberNotInCycleError):
            deduct_member_debt(cycle_id=cycle.id, member_id=retired_sailor.id)

    def test_missing_cycle(self, crew):
        with pytest.raises(CycleNotFoundError):
            deduct_member_debt(cycle_id=uuid4(), member_id=crew['khalid'].id)


# =============================================================================
# Selection and Confirmation Tests
# =============================================================================

@pytest.mark.django_db
class TestConfirmPayments:
    """Tests for mark_pending() and confirm_payments()."""

    def test_mark_pending_selected(self, box, crew):
        cycle = open_cycle(box_id=box.id)

        mark_pending(cycle_id=cycle.id, member_ids=[crew['nasser'].id])

        assert cycle.payments.get(member=crew['nasser']).status == PaymentStatus.PENDING
        assert cycle.payments.get(member=crew['yousef']).status == PaymentStatus.UNPAID

    def test_mark_pending_keeps_paid(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id, member_ids=[crew['nasser'].id])

        mark_pending(cycle_id=cycle.id)

        assert cycle.payments.get(member=crew['nasser']).status == PaymentStatus.PAID
        assert cycle.payments.get(member=crew['yousef']).status == PaymentStatus.PENDING

    def test_confirm_all(self, box, crew):
        cycle = open_cycle(box_id=box.id)

        confirm_payments(cycle_id=cycle.id)

        assert not cycle.outstanding_payments().exists()
        assert all(p.paid_at is not None for p in cycle.payments.all())

    def test_confirm_records_planned_deduction(self, box, crew):
        """Confirming a debtor writes the planned deduction to the ledger."""
        cycle = open_cycle(box_id=box.id)

        confirm_payments(cycle_id=cycle.id, member_ids=[crew['khalid'].id])

        payment = cycle.payments.get(member=crew['khalid'])
        assert payment.debt_entry is not None
        assert crew['khalid'].get_current_debt() == Decimal('0.00')

    def test_confirm_uses_debt_at_confirmation_time(self, box, crew):
        """Debt repaid after the cycle opened is not deducted again."""
        nasser = crew['nasser']
        DebtLedgerEntry.objects.create(
            member=nasser, amount=Decimal('50.00'), entry_type=DebtEntryType.ADD
        )
        cycle = open_cycle(box_id=box.id)
        assert cycle.payments.get(member=nasser).debt_deduction == Decimal('50.00')

        DebtLedgerEntry.objects.create(
            member=nasser, amount=Decimal('50.00'), entry_type=DebtEntryType.SUBTRACT
        )
        confirm_payments(cycle_id=cycle.id, member_ids=[nasser.id])

        payment = cycle.payments.get(member=nasser)
        assert payment.status == PaymentStatus.PAID
        assert payment.debt_deduction == Decimal('0.00')
        assert payment.net_payout == Decimal('111.11')
        assert payment.debt_entry is None
        assert not _deduction_entries(nasser).exists()
        assert nasser.get_current_debt() == Decimal('0.00')

    def test_confirm_twice_is_noop(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)
        first_paid_at = cycle.payments.get(member=crew['khalid']).paid_at

        confirm_payments(cycle_id=cycle.id)

        assert _deduction_entries(crew['khalid']).count() == 1
        assert cycle.payments.get(member=crew['khalid']).paid_at == first_paid_at

    def test_confirm_after_deduction_does_not_deduct_again(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        deduct_member_debt(cycle_id=cycle.id, member_id=crew['khalid'].id)

        confirm_payments(cycle_id=cycle.id)

        assert _deduction_entries(crew['khalid']).count() == 1

    def test_unknown_member(self, box, crew):
        cycle = open_cycle(box_id=box.id)

        with pytest.raises(MemberNotInCycleError):
            confirm_payments(cycle_id=cycle.id, member_ids=[uuid4()])


# =============================================================================
# Final Confirmation Tests
# =============================================================================

@pytest.mark.django_db
class TestConfirmFinalPayment:
    """Tests for confirm_final_payment()."""

    def test_requires_all_paid(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id, member_ids=[crew['captain'].id])

        with pytest.raises(PaymentsOutstandingError):
            confirm_final_payment(cycle_id=cycle.id)

        box.refresh_from_db()
        assert box.total_amount == Decimal('1000.00')

    def test_completes_box(self, box, crew):
        """Box total drops by owner plus crew shares and the box completes."""
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)

        cycle = confirm_final_payment(cycle_id=cycle.id)

        box.refresh_from_db()
        assert box.total_amount == Decimal('55.56')
        assert box.status == BoxStatus.COMPLETED
        assert cycle.is_closed is True
        assert cycle.closed_at is not None
        assert cycle.total_distributed == Decimal('944.44')

    def test_second_call_does_not_decrement(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)

        confirm_final_payment(cycle_id=cycle.id)
        confirm_final_payment(cycle_id=cycle.id)

        box.refresh_from_db()
        assert box.total_amount == Decimal('55.56')

    def test_explicit_total_floored_at_zero(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)

        confirm_final_payment(cycle_id=cycle.id, total_amount=Decimal('2000.00'))

        box.refresh_from_db()
        assert box.total_amount == Decimal('0.00')

    def test_closed_cycle_rejects_changes(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)
        confirm_final_payment(cycle_id=cycle.id)

        with pytest.raises(CycleClosedError):
            mark_pending(cycle_id=cycle.id)

    def test_completed_box_cannot_be_redistributed(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)
        confirm_final_payment(cycle_id=cycle.id)

        with pytest.raises(AlreadyCompletedError):
            open_cycle(box_id=box.id)

    def test_completed_box_cannot_be_reopened(self, box, crew):
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)
        confirm_final_payment(cycle_id=cycle.id)

        with pytest.raises(InvalidBoxStatusError):
            set_box_status(box_id=box.id, status=BoxStatus.DRAFT)

        box.refresh_from_db()
        assert box.status == BoxStatus.COMPLETED
        assert box.distribution_cycles.count() == 1

    def test_cancelled_box_is_not_paid_out(self, box, crew):
        """A box cancelled while its cycle is open keeps its total and status."""
        cycle = open_cycle(box_id=box.id)
        set_box_status(box_id=box.id, status=BoxStatus.CANCELLED)
        confirm_payments(cycle_id=cycle.id)

        with pytest.raises(InvalidBoxStateError):
            confirm_final_payment(cycle_id=cycle.id)

        box.refresh_from_db()
        cycle.refresh_from_db()
        assert box.status == BoxStatus.CANCELLED
        assert box.total_amount == Decimal('1000.00')
        assert cycle.is_closed is False

    def test_new_cycle_starts_unpaid(self, box, crew):
        """Payment status is per cycle: the next box starts fresh."""
        cycle = open_cycle(box_id=box.id)
        confirm_payments(cycle_id=cycle.id)
        confirm_final_payment(cycle_id=cycle.id)

        next_box = FinancialBox.objects.create(
            name='Autumn trip',
            crew_count=4,
            total_amount=Decimal('400.00'),
        )
        new_cycle = open_cycle(box_id=next_box.id)

        assert new_cycle.id != cycle.id
        assert all(p.status == PaymentStatus.UNPAID for p in new_cycle.payments.all())


# =============================================================================
# Preview and Query Tests
# =============================================================================

@pytest.mark.django_db
class TestPreviewDistribution:
    """Tests for preview_distribution()."""

    def test_preview_saves_nothing(self, box, crew):
        result = preview_distribution(box_id=box.id)

        assert result.owner_share == Decimal('444.44')
        assert not DistributionCycle.objects.exists()
        assert not _deduction_entries(crew['khalid']).exists()

    def test_preview_mismatch(self, box, crew):
        box.crew_count = 6
        box.save()

        with pytest.raises(CrewCountMismatchError):
            preview_distribution(box_id=box.id)

    def test_preview_with_crew_count(self, box, crew):
        box.crew_count = 6
        box.save()

        result = preview_distribution(box_id=box.id, crew_count=5)

        assert result.crew_count == 5
        assert result.owner_share == Decimal('454.55')

    def test_preview_completed_box(self, completed_box, crew):
        with pytest.raises(AlreadyCompletedError):
            preview_distribution(box_id=completed_box.id)


@pytest.mark.django_db
class TestCycleQueries:
    """Tests for get_cycle_by_id() and list_cycles()."""

    def test_get_cycle(self, box, crew):
        cycle = open_cycle(box_id=box.id)

        assert get_cycle_by_id(cycle_id=cycle.id).id == cycle.id

    def test_get_missing_cycle(self, db):
        with pytest.raises(CycleNotFoundError):
            get_cycle_by_id(cycle_id=uuid4())

    def test_list_filters(self, box, crew):
        other = FinancialBox.objects.create(
            name='Autumn trip',
            crew_count=4,
            total_amount=Decimal('200.00'),
        )
        open_cycle(box_id=box.id)
        closed = open_cycle(box_id=other.id)
        confirm_payments(cycle_id=closed.id)
        confirm_final_payment(cycle_id=closed.id)

        assert list_cycles().count() == 2
        assert list_cycles(box_id=box.id).count() == 1
        assert list_cycles(open_only=True).get().box_id == box.id
