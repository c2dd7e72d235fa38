from decimal import Decimal
from rest_framework import serializers
from .models import CrewMember, DebtLedgerEntry, DebtEntryType


class CrewMemberSerializer(serializers.ModelSerializer):
    """Main serializer for crew members, with derived debt figures."""

    current_debt = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        read_only=True,
        source='get_current_debt'
    )
    raw_debt_balance = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        read_only=True,
        source='get_raw_debt_balance'
    )

    class Meta:
        model = CrewMember
        fields = [
            'id',
            'name',
            'role',
            'phone',
            'email',
            'join_date',
            'is_active',
            'current_debt',
            'raw_debt_balance',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class CrewMemberCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating and updating crew members."""

    class Meta:
        model = CrewMember
        fields = ['name', 'role', 'phone', 'email', 'join_date', 'is_active']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name cannot be blank")
        return value


class DebtEntrySerializer(serializers.ModelSerializer):
    """Serializer for debt ledger entries."""

    member_name = serializers.CharField(source='member.name', read_only=True)

    class Meta:
        model = DebtLedgerEntry
        fields = [
            'id',
            'member',
            'member_name',
            'amount',
            'entry_type',
            'description',
            'entry_date',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class DebtAdjustmentSerializer(serializers.Serializer):
    """Input for POST /api/crew/{id}/debts/."""

    ACTION_ADD = 'add'
    ACTION_SUBTRACT = 'subtract'
    ACTION_SET = 'set'

    action = serializers.ChoiceField(
        choices=[ACTION_ADD, ACTION_SUBTRACT, ACTION_SET],
        default=ACTION_ADD
    )
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.00')
    )
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    entry_date = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs['action'] != self.ACTION_SET and attrs['amount'] <= 0:
            raise serializers.ValidationError({
                'amount': 'Amount must be greater than zero'
            })
        return attrs


class DebtEntryUpdateSerializer(serializers.Serializer):
    """Input for PATCH /api/crew/debts/{entry_id}/."""

    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False
    )
    entry_type = serializers.ChoiceField(choices=DebtEntryType.choices, required=False)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    entry_date = serializers.DateField(required=False)


class CrewSummarySerializer(serializers.Serializer):
    member_count = serializers.IntegerField()
    active_count = serializers.IntegerField()
    captain_count = serializers.IntegerField()
    crew_count = serializers.IntegerField()
    members_with_debt = serializers.IntegerField()
    total_debt = serializers.DecimalField(max_digits=14, decimal_places=2)
