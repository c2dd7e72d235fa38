# ==========================================
# apps/boxes/admin.py
# ==========================================

from django.contrib import admin
from .models import FinancialBox, Invoice


class InvoiceInline(admin.TabularInline):
    """Read-only invoice list on the box page; edits go through the API."""
    model = Invoice
    extra = 0
    fields = ['invoice_number', 'invoice_date', 'amount', 'is_paid']
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(FinancialBox)
class FinancialBoxAdmin(admin.ModelAdmin):
    """Admin interface for financial boxes."""

    list_display = [
        'name',
        'status',
        'total_amount',
        'crew_count',
        'last_bill_date',
        'created_at',
    ]
    list_filter = ['status', 'created_at']
    search_fields = ['name', 'description']
    date_hierarchy = 'created_at'
    # Totals and status only move through the box, invoice and distribution services
    readonly_fields = ['id', 'status', 'total_amount', 'last_bill_date', 'created_by', 'created_at', 'updated_at']
    inlines = [InvoiceInline]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Admin interface for invoices."""

    list_display = ['invoice_number', 'box', 'invoice_date', 'amount', 'is_paid']
    list_filter = ['is_paid', 'invoice_date']
    search_fields = ['invoice_number', 'description', 'box__name']
    date_hierarchy = 'invoice_date'
    readonly_fields = ['id', 'box', 'amount', 'paid_at', 'created_at', 'updated_at']
