from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .base import (DOCUMENT_STATUS_CHOICES, ZERO, BalanceEffectMixin,
                   DocumentStatusMixin, LineItemBase, VersionedModel)
from .business import Business
from .party import Debtor


# ---------- Invoices / InvoiceItems ----------
# Header represents a document issued to a debtor (receivable side)
class Invoice(BalanceEffectMixin, DocumentStatusMixin, VersionedModel):
    # Invoices increase what the debtor owes
    party_field = "debtor"
    amount_field = "total_amount"
    balance_sign = 1

    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    debtor = models.ForeignKey(
        Debtor,
        null=True,
        blank=True,
        # prevent deleting debtor who has an invoice
        on_delete=models.RESTRICT,
        related_name="invoices",
    )
    invoice_number = models.CharField(max_length=64)
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
            models.Index(fields=["business", "debtor"], name="inv_business_debtor_idx"),
            models.Index(fields=["business", "status", "due_date"], name="inv_business_status_due_idx"),
        ]
        constraints = [
            # Within one business, each invoice number must be unique
            models.UniqueConstraint(
                fields=["business", "invoice_number"],
                name="uq_invoice_business_number",
            )
        ]

    def __str__(self):
        return f"Invoice {self.invoice_number}"

    def clean(self):
        # Ensure debtor chosen belongs to the same business
        if self.debtor_id and self.debtor.business_id != self.business_id:
            raise ValidationError("Debtor must belong to the same business.")
        if self.due_date and self.issue_date and self.due_date < self.issue_date:
            raise ValidationError("Due date cannot be before the issue date.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class InvoiceItem(LineItemBase):
    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="items")

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["business", "invoice"], name="invitem_business_invoice_idx")]

    def __str__(self):
        return f"{self.description} x {self.quantity}"

    def clean(self):
        super().clean()
        # Tenant safety check
        if self.invoice_id and self.invoice.business_id != self.business_id:
            raise ValidationError(
                "InvoiceItem.business must match Invoice.business")
