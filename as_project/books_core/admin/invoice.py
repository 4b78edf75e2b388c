from django.contrib import admin

from books_core.models import Debtor, Invoice, PaymentReceipt

from .actions import mark_inv_as_paid
from .inlines import InvoiceItemInline
from .mixins import PartyAdminMixin, TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `Debtor` model
@admin.register(Debtor)
class DebtorAdmin(PartyAdminMixin, TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "business", "name", "email", "phone", "outstanding_amount")
    search_fields = ("name", "email")
    list_filter = ("business",)
    # maintained by the balance services
    readonly_fields = ("outstanding_amount", "version")


# Register `Invoice` model
@admin.register(Invoice)
class InvoiceAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "business",
        "invoice_number",
        "debtor",
        "issue_date",
        "due_date",
        "status",
        "total_amount",
    )
    inlines = [InvoiceItemInline]
    actions = [mark_inv_as_paid]

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("business", "debtor")


# Register `PaymentReceipt` model
@admin.register(PaymentReceipt)
class PaymentReceiptAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("id", "business", "receipt_number", "debtor", "invoice",
                    "amount", "payment_date", "payment_method", "bank_account")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("business", "debtor", "invoice", "bank_account")
