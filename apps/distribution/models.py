from django.db import models
from django.db.models import Q
from decimal import Decimal
import uuid

from apps.crew.models import CrewRole


class PaymentStatus(models.TextChoices):
    UNPAID = 'unpaid', 'Unpaid'
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'


class DistributionCycle(models.Model):
    """One run of the payment workflow for a financial box."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    box = models.ForeignKey(
        'boxes.FinancialBox',
        on_delete=models.CASCADE,
        related_name='distribution_cycles'
    )
    opened_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='distribution_cycles_opened'
    )

    # Snapshot of the engine result at opening time
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)
    owner_share = models.DecimalField(max_digits=14, decimal_places=2)
    total_crew_share = models.DecimalField(max_digits=14, decimal_places=2)
    individual_share = models.DecimalField(max_digits=14, decimal_places=2)
    captain_share = models.DecimalField(max_digits=14, decimal_places=2)
    captain_extra_share = models.DecimalField(max_digits=14, decimal_places=2)
    total_captain_extra = models.DecimalField(max_digits=14, decimal_places=2)
    crew_count = models.PositiveIntegerField()
    captain_count = models.PositiveIntegerField()
    share_units = models.DecimalField(max_digits=8, decimal_places=2)

    # Closing
    is_closed = models.BooleanField(default=False)
    total_distributed = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True
    )

    # Timestamps
    opened_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'distribution_cycles'
        constraints = [
            models.UniqueConstraint(
                fields=['box'],
                condition=Q(is_closed=False),
                name='unique_open_cycle_per_box'
            ),
        ]
        indexes = [
            models.Index(fields=['box', 'is_closed'], name='cycle_box_closed_idx'),
        ]
        ordering = ['-opened_at']

    def __str__(self):
        state = 'closed' if self.is_closed else 'open'
        return f"{self.box.name} distribution ({state})"

    @property
    def grand_total(self):
        """Owner share plus crew shares."""
        return self.owner_share + self.total_crew_share

    def outstanding_payments(self):
        """Payments not yet confirmed as paid."""
        return self.payments.exclude(status=PaymentStatus.PAID)


class MemberPayment(models.Model):
    """A crew member's share within a distribution cycle."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cycle = models.ForeignKey(
        DistributionCycle,
        on_delete=models.CASCADE,
        related_name='payments'
    )
    member = models.ForeignKey(
        'crew.CrewMember',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='distribution_payments'
    )

    # Snapshot so history survives member deletion
    member_name = models.CharField(max_length=150)
    role = models.CharField(max_length=20, choices=CrewRole.choices)

    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID
    )

    base_share = models.DecimalField(max_digits=14, decimal_places=2)
    debt_deduction = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00')
    )
    net_payout = models.DecimalField(max_digits=14, decimal_places=2)
    forgiven_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00')
    )

    # Ledger entry written when the deduction was recorded; set at most once
    debt_entry = models.ForeignKey(
        'crew.DebtLedgerEntry',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='distribution_payments'
    )

    paid_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'member_payments'
        unique_together = [['cycle', 'member']]
        indexes = [
            models.Index(fields=['cycle', 'status'], name='payment_cycle_status_idx'),
        ]
        ordering = ['role', 'member_name']

    def __str__(self):
        return f"{self.member_name}: {self.net_payout} ({self.status})"

    @property
    def is_paid(self):
        return self.status == PaymentStatus.PAID

    def apply_deduction(self, amount):
        """Set the deduction and recompute net payout and forgiven amount."""
        self.debt_deduction = amount
        self.net_payout = max(Decimal('0.00'), self.base_share - amount)
        self.forgiven_amount = max(Decimal('0.00'), amount - self.base_share)
