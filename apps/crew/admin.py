# ==========================================
# apps/crew/admin.py
# ==========================================

from django.contrib import admin
from .models import CrewMember, DebtLedgerEntry


class DebtLedgerEntryInline(admin.TabularInline):
    """Inline debt entries on the member page."""
    model = DebtLedgerEntry
    extra = 0
    fields = ['entry_date', 'entry_type', 'amount', 'description']
    ordering = ['-entry_date', '-created_at']


@admin.register(CrewMember)
class CrewMemberAdmin(admin.ModelAdmin):
    """Admin interface for crew members."""

    list_display = [
        'name',
        'role',
        'phone',
        'is_active',
        'join_date',
        'current_debt_display',
    ]
    list_filter = ['role', 'is_active', 'join_date']
    search_fields = ['name', 'phone', 'email']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [DebtLedgerEntryInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'name', 'role', 'is_active', 'join_date')
        }),
        ('Contact', {
            'fields': ('phone', 'email')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def current_debt_display(self, obj):
        return obj.get_current_debt()
    current_debt_display.short_description = 'Current debt'


@admin.register(DebtLedgerEntry)
class DebtLedgerEntryAdmin(admin.ModelAdmin):
    """Admin interface for debt ledger entries."""

    list_display = ['member', 'entry_type', 'amount', 'entry_date', 'description']
    list_filter = ['entry_type', 'entry_date']
    search_fields = ['member__name', 'description']
    date_hierarchy = 'entry_date'
    readonly_fields = ['id', 'created_at', 'updated_at']
