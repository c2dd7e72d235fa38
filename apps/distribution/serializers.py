from decimal import Decimal
from rest_framework import serializers
from .models import DistributionCycle, MemberPayment


def _money():
    return serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)


class MemberAllocationSerializer(serializers.Serializer):
    """One member's line in a computed distribution."""

    member_id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    role = serializers.CharField(read_only=True)
    base_share = _money()
    debt_deduction = _money()
    net_payout = _money()
    forgiven_amount = _money()


class DistributionResultSerializer(serializers.Serializer):
    """Serializes a DistributionResult (via its to_dict())."""

    total_amount = _money()
    owner_share = _money()
    total_crew_share = _money()
    individual_share = _money()
    captain_share = _money()
    captain_extra_share = _money()
    total_captain_extra = _money()
    total_distributed = _money()
    total_net_payout = _money()
    total_debt_deduction = _money()
    crew_count = serializers.IntegerField(read_only=True)
    captain_count = serializers.IntegerField(read_only=True)
    share_units = serializers.DecimalField(max_digits=8, decimal_places=2, read_only=True)
    allocations = MemberAllocationSerializer(many=True, read_only=True)


class MemberPaymentSerializer(serializers.ModelSerializer):
    """A member's payment within a cycle."""

    class Meta:
        model = MemberPayment
        fields = [
            'id',
            'member',
            'member_name',
            'role',
            'status',
            'base_share',
            'debt_deduction',
            'net_payout',
            'forgiven_amount',
            'debt_entry',
            'paid_at',
            'updated_at',
        ]
        read_only_fields = fields


class DistributionCycleSerializer(serializers.ModelSerializer):
    """Cycle with its snapshot and payments."""

    box_name = serializers.CharField(source='box.name', read_only=True)
    grand_total = _money()
    payments = MemberPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = DistributionCycle
        fields = [
            'id',
            'box',
            'box_name',
            'opened_by',
            'total_amount',
            'owner_share',
            'total_crew_share',
            'individual_share',
            'captain_share',
            'captain_extra_share',
            'total_captain_extra',
            'grand_total',
            'crew_count',
            'captain_count',
            'share_units',
            'is_closed',
            'total_distributed',
            'opened_at',
            'closed_at',
            'payments',
        ]
        read_only_fields = fields


class PreviewQuerySerializer(serializers.Serializer):
    """Query parameters for the distribution preview."""

    box = serializers.UUIDField()
    crew_count = serializers.IntegerField(required=False, min_value=1)


class OpenCycleSerializer(serializers.Serializer):
    box = serializers.UUIDField()


class DeductDebtSerializer(serializers.Serializer):
    """Deduct a member's debt; without amount the full current debt is used."""

    member = serializers.UUIDField()
    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        required=False,
        allow_null=True,
        min_value=Decimal('0.01')
    )


class MemberSelectionSerializer(serializers.Serializer):
    """Members to act on; omitted means every member in the cycle."""

    member_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=False
    )


class ConfirmFinalSerializer(serializers.Serializer):
    total_amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        required=False,
        allow_null=True,
        min_value=Decimal('0.00')
    )


class CycleFilterSerializer(serializers.Serializer):
    """Query parameters for listing cycles."""

    box = serializers.UUIDField(required=False)
    open = serializers.BooleanField(required=False, default=False)
