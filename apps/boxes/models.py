from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import secrets
import uuid


class BoxStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class FinancialBox(models.Model):
    """Named pool aggregating invoices for one trip, distributed once."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=BoxStatus.choices,
        default=BoxStatus.DRAFT
    )

    # Running total of attached invoices, reduced on distribution
    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    # Administrative head count, must match the active roster at distribution
    crew_count = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)]
    )

    last_bill_date = models.DateField(null=True, blank=True)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='boxes_created'
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'financial_boxes'
        verbose_name_plural = 'financial boxes'
        indexes = [
            models.Index(fields=['status', 'created_at'], name='box_status_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} - {self.total_amount} ({self.status})"

    @property
    def is_completed(self):
        return self.status == BoxStatus.COMPLETED


class Invoice(models.Model):
    """A sale/catch invoice whose amount feeds a financial box."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    box = models.ForeignKey(
        FinancialBox,
        on_delete=models.CASCADE,
        related_name='invoices'
    )

    invoice_number = models.CharField(max_length=64, unique=True, db_index=True)
    invoice_date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    description = models.TextField(blank=True)

    is_paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'invoices'
        indexes = [
            models.Index(fields=['box', 'invoice_date'], name='invoice_box_date_idx'),
            models.Index(fields=['is_paid'], name='invoice_is_paid_idx'),
        ]
        ordering = ['-invoice_date', '-created_at']

    def __str__(self):
        return f"{self.invoice_number} - {self.amount}"

    def save(self, *args, **kwargs):
        """Generate invoice number if not set."""
        if not self.invoice_number:
            self.invoice_number = self._generate_invoice_number()
        super().save(*args, **kwargs)

    def _generate_invoice_number(self):
        """Generate invoice number from the current timestamp."""
        # Format: INV-<epoch-millis>-<4-digit-random>
        millis = int(timezone.now().timestamp() * 1000)
        random_suffix = secrets.randbelow(10000)
        return f"INV-{millis}-{random_suffix:04d}"
