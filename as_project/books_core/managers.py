from django.db import models

# -----------------------------------------
# Enforce business scoping across all models
# that belong to a business
# -----------------------------------------
# Define subclass of Django's QuerySet
class TenantQuerySet(models.QuerySet):
    def for_business(self, business):         # Add queryset helper
        return self.filter(business=business)  # Apply filter


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    # every model using TenantManager can call:
    # Payment.objects.for_business(business)
    use_in_migrations = True
