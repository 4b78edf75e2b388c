from django.contrib import admin

from books_core.models import Bill, Creditor, Payment, Purchase

from .actions import mark_bill_as_paid
from .inlines import BillItemInline
from .mixins import PartyAdminMixin, TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `Creditor` model
@admin.register(Creditor)
class CreditorAdmin(PartyAdminMixin, TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "business", "name", "email", "phone", "outstanding_amount")
    search_fields = ("name", "email")
    list_filter = ("business",)
    readonly_fields = ("outstanding_amount", "version")


# Register `Bill` model
@admin.register(Bill)
class BillAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "business",
        "bill_number",
        "creditor",
        "issue_date",
        "due_date",
        "status",
        "total_amount",
    )
    inlines = [BillItemInline]
    actions = [mark_bill_as_paid]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("business", "creditor")


# Register `Payment` model
@admin.register(Payment)
class PaymentAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("id", "business", "payment_number", "creditor", "bill",
                    "amount", "payment_date", "payment_method", "bank_account")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("business", "creditor", "bill", "bank_account")


# Register `Purchase` model
@admin.register(Purchase)
class PurchaseAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("id", "business", "purchase_number", "creditor", "item_name",
                    "quantity", "unit_price", "total_price", "purchase_date")
