class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.business (set by CurrentBusinessMiddleware).
    """

    def _get_request_business(self, request):
        return getattr(request, "business", None)

    def get_queryset(self, request):
        qs = super().get_queryset(request)

        # If superuser, show everything;
        # otherwise restrict to the current business
        if request.user.is_superuser:
            return qs
        business = self._get_request_business(request)
        if business is None:
            return qs.none()
        if hasattr(self.model, "business"):
            return qs.filter(business=business)
        # child rows (e.g. chat messages) have no business column
        return qs.none()

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreignkey dropdowns to the current business:
        the business field itself, and any business-scoped related model
        (debtor, creditor, bank account...).
        """
        business = self._get_request_business(request)

        if db_field.name == "business" and not request.user.is_superuser:
            kwargs["queryset"] = (
                db_field.related_model.objects.filter(pk=business.pk)
                if business is not None
                else db_field.related_model.objects.none()
            )
            return super().formfield_for_foreignkey(db_field, request, **kwargs)

        rel_model = getattr(db_field, "related_model", None)
        if (
            rel_model is not None
            and hasattr(rel_model, "business")
            and not request.user.is_superuser
        ):
            kwargs["queryset"] = (
                rel_model.objects.filter(business=business)
                if business is not None
                else rel_model.objects.none()
            )

        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Ensure object is always owned by business on save (unless superuser)
        if not request.user.is_superuser:
            business = self._get_request_business(request)
            if business is not None:
                obj.business = business
        super().save_model(request, obj, form, change)


class PartyAdminMixin:
    """Opening balance is set once, on the add form."""

    def get_readonly_fields(self, request, obj=None):
        fields = tuple(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields += ("opening_outstanding",)
        return fields
