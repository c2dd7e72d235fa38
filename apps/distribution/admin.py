# ==========================================
# apps/distribution/admin.py
# ==========================================

from django.contrib import admin
from .models import DistributionCycle, MemberPayment


class MemberPaymentInline(admin.TabularInline):
    """Payments of a cycle; state changes go through the API."""
    model = MemberPayment
    extra = 0
    fields = ['member_name', 'role', 'status', 'base_share', 'debt_deduction', 'net_payout', 'paid_at']
    readonly_fields = fields
    can_delete = False


@admin.register(DistributionCycle)
class DistributionCycleAdmin(admin.ModelAdmin):
    """Admin interface for distribution cycles."""

    list_display = [
        'box',
        'total_amount',
        'owner_share',
        'total_crew_share',
        'crew_count',
        'is_closed',
        'opened_at',
        'closed_at',
    ]
    list_filter = ['is_closed', 'opened_at']
    search_fields = ['box__name']
    date_hierarchy = 'opened_at'
    readonly_fields = [
        'id', 'box', 'opened_by', 'total_amount', 'owner_share', 'total_crew_share',
        'individual_share', 'captain_share', 'captain_extra_share', 'total_captain_extra',
        'crew_count', 'captain_count', 'share_units', 'is_closed', 'total_distributed',
        'opened_at', 'closed_at',
    ]
    inlines = [MemberPaymentInline]


@admin.register(MemberPayment)
class MemberPaymentAdmin(admin.ModelAdmin):
    """Admin interface for member payments."""

    list_display = ['member_name', 'cycle', 'role', 'status', 'net_payout', 'paid_at']
    list_filter = ['status', 'role']
    search_fields = ['member_name', 'cycle__box__name']
    readonly_fields = [
        'id', 'cycle', 'member', 'member_name', 'role', 'status', 'base_share',
        'debt_deduction', 'net_payout', 'forgiven_amount', 'debt_entry', 'paid_at',
        'created_at', 'updated_at',
    ]
