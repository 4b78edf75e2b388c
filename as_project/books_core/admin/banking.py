from django.contrib import admin

from books_core.models import BankAccount, Transaction

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `BankAccount` model
@admin.register(BankAccount)
class BankAccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "business", "name", "account_number_masked",
                    "account_type", "current_balance", "last_reconciled_at")
    list_filter = ("business", "account_type")
    # derived from transactions / set by reconciliation
    readonly_fields = ("current_balance", "last_reconciled_at", "version")

    @admin.display(description="Account number")
    def account_number_masked(self, obj):
        # show only the last 4 digits
        if not obj.account_number:
            return ""
        return f"****{obj.account_number[-4:]}"

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        # opening balance feeds current_balance
        if not change or "opening_balance" in form.changed_data:
            obj.recalc_balance()


# Register `Transaction` model
@admin.register(Transaction)
class TransactionAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("id", "business", "account", "transaction_number", "date",
                    "type", "amount", "reference_type", "reference_id", "reconciled")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("business", "account")
