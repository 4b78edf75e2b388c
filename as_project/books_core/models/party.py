from django.db import models

from ..managers import TenantManager
from .base import ZERO, VersionedModel
from .business import Business


class PartyBase(VersionedModel):
    """Contact fields plus the running balance owed by or to the party."""

    # Multi-tenant: every party belongs to a single business
    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    address = models.TextField(blank=True, default="")

    # Balance carried over from before the books were opened here
    opening_outstanding = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO
    )
    # Stored redundantly; only services.balances writes it
    outstanding_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        # A new party starts at its opening balance
        if self._state.adding and self.opening_outstanding:
            self.outstanding_amount = self.opening_outstanding
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


# ---------- Debtor ----------
# Party who owes the business money (receivable side)
class Debtor(PartyBase):
    class Meta:
        indexes = [models.Index(fields=["business", "name"], name="debtor_business_name_idx")]


# ---------- Creditor ----------
# Party the business owes money to (payable side)
class Creditor(PartyBase):
    class Meta:
        indexes = [models.Index(fields=["business", "name"], name="creditor_business_name_idx")]
