"""Services for financial boxes and invoices."""

from .exceptions import (
    BoxesServiceError,
    BoxNotFoundError,
    InvoiceNotFoundError,
    InvalidBoxStatusError,
    InvalidAmountError,
    BoxClosedError,
    DuplicateInvoiceNumberError,
)
from .box_management import (
    lock_box,
    create_box,
    get_box_by_id,
    list_boxes,
    update_box,
    delete_box,
    set_box_status,
    complete_box,
    decrement_box_total,
    get_owner_balance,
)
from .invoice_management import (
    create_invoice,
    get_invoice_by_id,
    update_invoice,
    delete_invoice,
    set_invoice_paid,
    list_invoices,
    get_invoice_stats,
)

__all__ = [
    # Exceptions
    'BoxesServiceError',
    'BoxNotFoundError',
    'InvoiceNotFoundError',
    'InvalidBoxStatusError',
    'InvalidAmountError',
    'BoxClosedError',
    'DuplicateInvoiceNumberError',
    # Boxes
    'lock_box',
    'create_box',
    'get_box_by_id',
    'list_boxes',
    'update_box',
    'delete_box',
    'set_box_status',
    'complete_box',
    'decrement_box_total',
    'get_owner_balance',
    # Invoices
    'create_invoice',
    'get_invoice_by_id',
    'update_invoice',
    'delete_invoice',
    'set_invoice_paid',
    'list_invoices',
    'get_invoice_stats',
]
