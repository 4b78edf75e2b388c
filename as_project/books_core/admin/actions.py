from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from ..services.documents import mark_paid

# ---------- Admin actions ----------

""" call services.mark_paid so the transition rules and audit log apply """


def _mark_selected_paid(modeladmin, request, queryset):
    done = 0
    for doc in queryset:
        try:
            mark_paid(doc.business, doc.__class__, doc.pk, user=request.user)
            done += 1
        except ValidationError as e:
            modeladmin.message_user(
                request, f"{doc}: {' '.join(e.messages)}", level=messages.ERROR)
    if done:
        modeladmin.message_user(request, f"Marked {done} as paid.")


@admin.action(description="Mark selected invoices as Paid")
def mark_inv_as_paid(modeladmin, request, queryset):
    _mark_selected_paid(modeladmin, request, queryset)


@admin.action(description="Mark selected bills as Paid")
def mark_bill_as_paid(modeladmin, request, queryset):
    _mark_selected_paid(modeladmin, request, queryset)
