from django.contrib import admin

from books_core.models import BillItem, ChatMessage, InvoiceItem

# ---------- Helpful inline admin classes ----------


class _ItemInline(admin.TabularInline):
    # item totals feed the document total, so rows are view-only here
    extra = 0  # don't show "empty" rows by default (prevents clutter)
    fields = ("description", "quantity", "unit_price", "total")
    readonly_fields = fields
    can_delete = False
    ordering = ("id",)  # lines appear in creation order

    def has_add_permission(self, request, obj=None):
        return False


class InvoiceItemInline(_ItemInline):
    """Show InvoiceItem rows on the Invoice page"""

    model = InvoiceItem


class BillItemInline(_ItemInline):
    model = BillItem


class ChatMessageInline(admin.TabularInline):
    model = ChatMessage
    extra = 0
    fields = ("role", "content", "created_at")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False
