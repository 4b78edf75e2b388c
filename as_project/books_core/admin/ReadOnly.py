from django.contrib import admin
from django.core.exceptions import PermissionDenied

"""
Base admin for ledger rows: payments, documents and bank transactions
change balances, so they are only created/edited through the services.
"""
class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50  # page size (adjust for performance)

    # make every model field readonly
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # Allow the user to view the instance page;
    # actual edits are prevented because fields are readonly.
    def has_change_permission(self, request, obj=None):
        return True

    # Prevent any attempt to save via the admin UI
    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Ledger rows cannot be changed via the admin.")

    # Only explicitly listed actions (no delete_selected)
    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    # Common useful filters if present
    def get_list_filter(self, request):
        possible = {f.name for f in self.model._meta.fields}
        filters = []
        for candidate in ("business", "status", "type", "payment_method", "reconciled"):
            if candidate in possible:
                filters.append(candidate)
        return tuple(filters)

    # Useful searchable text fields if present
    def get_search_fields(self, request):
        possible = {f.name for f in self.model._meta.fields}
        search = []
        for candidate in ("invoice_number", "bill_number", "payment_number",
                          "receipt_number", "purchase_number",
                          "transaction_number", "description"):
            if candidate in possible:
                search.append(candidate)
        return tuple(search)
