from django.contrib import admin

from books_core.models import AuditLog

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Audit entries are written by services.audit_helper only
@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "created_at",
        "business",
        "user",
        "action",
        "object_type",
        "object_id",
        "changed_fields",
    )
    list_filter = ("business", "action", "object_type")
    search_fields = ("object_type", "object_id", "user__username")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)
    list_select_related = ("business", "user")

    @admin.display(description="changed")
    def changed_fields(self, obj):
        # balance updates carry a "reason" next to the real field diffs
        if not obj.changes:
            return "-"
        return ", ".join(sorted(k for k in obj.changes if k != "reason"))

    # keep our own filters instead of the ledger defaults
    def get_list_filter(self, request):
        return self.list_filter

    def get_search_fields(self, request):
        return self.search_fields
