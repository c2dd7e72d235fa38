from django.db import models
from django.db.models import Q, Sum
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid


class CrewRole(models.TextChoices):
    CAPTAIN = 'captain', 'Captain'
    CREW = 'crew', 'Crew'


class DebtEntryType(models.TextChoices):
    ADD = 'add', 'Add'
    SUBTRACT = 'subtract', 'Subtract'


class CrewMember(models.Model):
    """A person sailing on the vessel and sharing in trip profits."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=150)
    role = models.CharField(
        max_length=20,
        choices=CrewRole.choices,
        default=CrewRole.CREW
    )

    # Contact
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)

    join_date = models.DateField(default=timezone.localdate)
    is_active = models.BooleanField(default=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'crew_members'
        indexes = [
            models.Index(fields=['is_active', 'role'], name='crew_active_role_idx'),
            models.Index(fields=['name'], name='crew_name_idx'),
        ]
        ordering = ['name', 'created_at']

    def __str__(self):
        return f"{self.name} ({self.role})"

    @property
    def is_captain(self):
        return self.role == CrewRole.CAPTAIN

    def get_raw_debt_balance(self):
        """Return sum of added debt minus sum of subtracted debt (may be negative)."""
        totals = self.debt_entries.aggregate(
            added=Sum('amount', filter=Q(entry_type=DebtEntryType.ADD)),
            subtracted=Sum('amount', filter=Q(entry_type=DebtEntryType.SUBTRACT)),
        )
        added = totals['added'] or Decimal('0.00')
        subtracted = totals['subtracted'] or Decimal('0.00')
        return added - subtracted

    def get_current_debt(self):
        """Return outstanding debt, never below zero."""
        return max(Decimal('0.00'), self.get_raw_debt_balance())


class DebtLedgerEntry(models.Model):
    """One debt movement for a crew member (advance given or amount recovered)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    member = models.ForeignKey(
        CrewMember,
        on_delete=models.CASCADE,
        related_name='debt_entries'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    entry_type = models.CharField(
        max_length=10,
        choices=DebtEntryType.choices,
        default=DebtEntryType.ADD
    )
    description = models.CharField(max_length=255, blank=True)
    entry_date = models.DateField(default=timezone.localdate)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'crew_debt_entries'
        indexes = [
            models.Index(fields=['member', 'entry_date'], name='debt_member_date_idx'),
            models.Index(fields=['entry_type'], name='debt_entry_type_idx'),
        ]
        ordering = ['-entry_date', '-created_at']

    def __str__(self):
        sign = '+' if self.entry_type == DebtEntryType.ADD else '-'
        return f"{self.member.name}: {sign}{self.amount}"

    @property
    def signed_amount(self):
        """Amount as it contributes to the member's balance."""
        if self.entry_type == DebtEntryType.SUBTRACT:
            return -self.amount
        return self.amount
