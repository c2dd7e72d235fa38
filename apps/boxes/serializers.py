from decimal import Decimal
from rest_framework import serializers
from .models import FinancialBox, Invoice, BoxStatus


class FinancialBoxSerializer(serializers.ModelSerializer):
    """Main serializer for financial boxes."""

    invoice_count = serializers.SerializerMethodField()

    class Meta:
        model = FinancialBox
        fields = [
            'id',
            'name',
            'description',
            'status',
            'total_amount',
            'crew_count',
            'last_bill_date',
            'invoice_count',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_invoice_count(self, obj):
        """Use the annotated count when the queryset provides it."""
        count = getattr(obj, 'invoice_count', None)
        if count is None:
            count = obj.invoices.count()
        return count


class FinancialBoxCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating and updating boxes."""

    crew_count = serializers.IntegerField(min_value=1, default=1)

    class Meta:
        model = FinancialBox
        fields = ['name', 'description', 'crew_count']


class BoxStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BoxStatus.choices)


class InvoiceSerializer(serializers.ModelSerializer):
    """Main serializer for invoices."""

    box_name = serializers.CharField(source='box.name', read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id',
            'box',
            'box_name',
            'invoice_number',
            'invoice_date',
            'amount',
            'description',
            'is_paid',
            'paid_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class InvoiceCreateSerializer(serializers.Serializer):
    """Input for creating an invoice."""

    box = serializers.UUIDField()
    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal('0.01')
    )
    invoice_date = serializers.DateField(required=False)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    invoice_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    is_paid = serializers.BooleanField(default=False)


class InvoiceUpdateSerializer(serializers.Serializer):
    """Input for editing an invoice."""

    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False
    )
    invoice_date = serializers.DateField(required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    invoice_number = serializers.CharField(max_length=64, required=False)


class InvoicePaidSerializer(serializers.Serializer):
    is_paid = serializers.BooleanField(default=True)


class InvoiceStatsSerializer(serializers.Serializer):
    total_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    paid_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    unpaid_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_count = serializers.IntegerField()
    paid_count = serializers.IntegerField()
    unpaid_count = serializers.IntegerField()


class OwnerBalanceSerializer(serializers.Serializer):
    owner_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    box_count = serializers.IntegerField()
    draft_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    completed_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    cancelled_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    currency = serializers.CharField()


class InvoiceFilterSerializer(serializers.Serializer):
    """Query parameters for invoice listings."""

    box = serializers.UUIDField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    is_paid = serializers.BooleanField(required=False, allow_null=True, default=None)
