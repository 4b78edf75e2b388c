from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..exceptions import ConcurrentUpdateError

ZERO = Decimal("0.00")

DOCUMENT_STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("PAID", "Paid"),
    ("OVERDUE", "Overdue"),
]


class VersionedModel(models.Model):
    """Row with a version counter for optimistic concurrency checks.

    Every read-modify-write through the services bumps `version`;
    a caller holding a stale number gets ConcurrentUpdateError.
    """

    version = models.PositiveIntegerField(default=1)

    class Meta:
        abstract = True

    def check_version(self, expected_version):
        # None means the caller did not ask for a check
        if expected_version is not None and int(expected_version) != self.version:
            raise ConcurrentUpdateError(
                self.__class__.__name__, self.pk, expected_version)


class BalanceEffectMixin:
    """Describe how a document moves its counterparty's outstanding amount.

    party_field  - FK name of the debtor/creditor
    amount_field - field holding the document amount
    balance_sign - +1 increases what is owed, -1 decreases it
    """

    party_field = None
    amount_field = None
    balance_sign = 1

    @property
    def party_id(self):
        return getattr(self, f"{self.party_field}_id")

    @property
    def effect_amount(self):
        return getattr(self, self.amount_field) or ZERO


class DocumentStatusMixin:
    # Current state vs. allowed next states
    ALLOWED_TRANSITIONS = {
        "PENDING": ["PAID", "OVERDUE"],
        "OVERDUE": ["PAID"],
        "PAID": [],  # "PAID" → (no further transitions)
    }

    def transition_to(self, new_status):
        # Look up what states are allowed from current self.status
        if new_status not in self.ALLOWED_TRANSITIONS.get(self.status, []):
            # If requested new_status isn't allowed → block it
            raise ValidationError(
                f"Cannot go from {self.status} to {new_status}")

        # If valid, update self.status and persist
        self.status = new_status
        self.version += 1
        self.save(update_fields=["status", "version"])
        return self

    def recalc_totals(self):
        """Sum item totals into total_amount (items use related_name="items")."""
        if not getattr(self, "pk", None):
            self.total_amount = ZERO
            return
        self.total_amount = sum(
            (item.total for item in self.items.all()), ZERO)


class LineItemBase(models.Model):
    """Shared columns of invoice and bill items: quantity × unit_price = total."""

    description = models.TextField()
    quantity = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("1"))
    unit_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)

    class Meta:
        abstract = True

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("Quantity must be a positive number")
        if self.unit_price is None or self.unit_price < 0:
            raise ValidationError("Unit price must be >= 0")

    def save(self, *args, **kwargs):
        # Force total to be recomputed before save, regardless of input
        self.total = ((self.quantity or 0) * (self.unit_price or 0)).quantize(
            Decimal("0.01"))
        self.full_clean()
        return super().save(*args, **kwargs)
