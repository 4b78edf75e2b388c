from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .base import (DOCUMENT_STATUS_CHOICES, ZERO, BalanceEffectMixin,
                   DocumentStatusMixin, LineItemBase, VersionedModel)
from .business import Business
from .party import Creditor


# ---------- Bills / BillItems ----------
# Header represents a document received from a creditor (payable side)
class Bill(BalanceEffectMixin, DocumentStatusMixin, VersionedModel):
    # Bills increase what the business owes the creditor
    party_field = "creditor"
    amount_field = "total_amount"
    balance_sign = 1

    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    creditor = models.ForeignKey(
        Creditor,
        null=True,
        blank=True,
        # prevent deleting creditor who has a bill
        on_delete=models.RESTRICT,
        related_name="bills",
    )
    bill_number = models.CharField(max_length=64)
    issue_date = models.DateField()
    due_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=DOCUMENT_STATUS_CHOICES, default="PENDING"
    )
    # Sum of all item totals
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["business", "creditor"], name="bill_business_creditor_idx"),
            models.Index(fields=["business", "status", "due_date"], name="bill_business_status_due_idx"),
        ]
        constraints = [
            # Within one business, each bill number must be unique
            models.UniqueConstraint(
                fields=["business", "bill_number"],
                name="uq_bill_business_number",
            )
        ]

    def __str__(self):
        return f"Bill {self.bill_number}"

    def clean(self):
        # Ensure creditor chosen belongs to the same business
        if self.creditor_id and self.creditor.business_id != self.business_id:
            raise ValidationError("Creditor must belong to the same business.")
        if self.due_date and self.issue_date and self.due_date < self.issue_date:
            raise ValidationError("Due date cannot be before the issue date.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class BillItem(LineItemBase):
    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    bill = models.ForeignKey(
        Bill, on_delete=models.CASCADE, related_name="items")

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["business", "bill"], name="billitem_business_bill_idx")]

    def __str__(self):
        return f"{self.description} x {self.quantity}"

    def clean(self):
        super().clean()
        # Tenant safety check
        if self.bill_id and self.bill.business_id != self.business_id:
            raise ValidationError(
                "BillItem.business must match Bill.business")
