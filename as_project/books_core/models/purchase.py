from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .base import ZERO, BalanceEffectMixin, VersionedModel
from .business import Business
from .party import Creditor


# ---------- Purchase ----------
# Single-item purchase from a creditor: quantity × unit_price = total_price
class Purchase(BalanceEffectMixin, VersionedModel):
    # Purchases increase what the business owes the creditor
    party_field = "creditor"
    amount_field = "total_price"
    balance_sign = 1

    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    creditor = models.ForeignKey(
        Creditor,
        null=True,
        blank=True,
        on_delete=models.RESTRICT,
        related_name="purchases",
    )
    purchase_number = models.CharField(max_length=64)
    item_name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    quantity = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("1"))
    unit_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO)
    total_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO)
    purchase_date = models.DateField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["business", "creditor"], name="purchase_business_creditor_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "purchase_number"],
                name="uq_purchase_business_number",
            )
        ]

    def __str__(self):
        return f"Purchase {self.purchase_number}: {self.item_name}"

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("Quantity must be a positive number")
        if self.unit_price is None or self.unit_price < 0:
            raise ValidationError("Unit price must be >= 0")
        if self.creditor_id and self.creditor.business_id != self.business_id:
            raise ValidationError("Creditor must belong to the same business.")

    def save(self, *args, **kwargs):
        # total_price is always derived from quantity and unit_price
        self.total_price = (
            (self.quantity or 0) * (self.unit_price or 0)
        ).quantize(Decimal("0.01"))
        self.full_clean()
        return super().save(*args, **kwargs)
