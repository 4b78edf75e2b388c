from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .banking import PAYMENT_METHODS, BankAccount
from .base import ZERO, BalanceEffectMixin, VersionedModel
from .bill import Bill
from .business import Business
from .invoice import Invoice
from .party import Creditor, Debtor


class PaymentBase(BalanceEffectMixin, VersionedModel):
    """Money moving between the business and a party.

    When paid by bank transfer from a named bank account, a mirrored
    Transaction of type `mirror_type` exists with reference_id = pk.
    """

    # Settlements reduce what is owed
    amount_field = "amount"
    balance_sign = -1

    # Mirrored transaction shape, set per subclass
    reference_type = None
    mirror_type = None
    mirror_prefix = None
    mirror_category = None
    number_prefix = None

    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_date = models.DateField()
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHODS, default="other"
    )
    bank_account = models.ForeignKey(
        BankAccount,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="%(class)ss",
    )
    reference = models.CharField(max_length=200, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        abstract = True

    @property
    def uses_bank_transfer(self):
        return self.payment_method == "bank_transfer" and bool(self.bank_account_id)

    @property
    def number(self):
        raise NotImplementedError

    @property
    def party(self):
        return getattr(self, self.party_field)

    @property
    def document(self):
        """Bill or Invoice this settlement refers to (may be None)."""
        raise NotImplementedError

    def clean(self):
        if self.amount is None or self.amount <= ZERO:
            raise ValidationError("Amount must be a positive number")

        party = self.party
        if party is not None and party.business_id != self.business_id:
            raise ValidationError(
                f"{party.__class__.__name__} must belong to the same business.")

        doc = self.document
        if doc is not None:
            if doc.business_id != self.business_id:
                raise ValidationError(
                    f"{doc.__class__.__name__} must belong to the same business.")
            # the settled document has to be issued to the same party
            doc_party_id = getattr(doc, f"{self.party_field}_id")
            if party is not None and doc_party_id not in (None, party.pk):
                raise ValidationError(
                    f"{doc.__class__.__name__} belongs to a different "
                    f"{self.party_field}.")

        if self.bank_account_id and self.bank_account.business_id != self.business_id:
            raise ValidationError("Bank account must belong to the same business.")
        if self.payment_method == "bank_transfer" and not self.bank_account_id:
            raise ValidationError("Select a bank account for a bank transfer.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


# ---------- Payment ----------
# Money paid out to a creditor, optionally settling a bill
class Payment(PaymentBase):
    party_field = "creditor"
    reference_type = "payment"
    mirror_type = "withdrawal"
    mirror_prefix = "WIT"
    mirror_category = "Payment"
    number_prefix = "PAY"

    payment_number = models.CharField(max_length=64)
    creditor = models.ForeignKey(
        Creditor,
        null=True,
        blank=True,
        on_delete=models.RESTRICT,
        related_name="payments",
    )
    bill = models.ForeignKey(
        Bill,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payments",
    )

    class Meta:
        indexes = [
            models.Index(fields=["business", "creditor"], name="payment_business_creditor_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "payment_number"],
                name="uq_payment_business_number",
            )
        ]

    def __str__(self):
        return f"Payment {self.payment_number} ({self.amount})"

    @property
    def number(self):
        return self.payment_number

    @property
    def document(self):
        return self.bill

    def mirror_description(self):
        description = "Payment made"
        if self.creditor_id:
            description = f"Payment to {self.creditor.name}"
        if self.bill_id:
            description += f" for bill {self.bill.bill_number}"
        return description


# ---------- PaymentReceipt ----------
# Money received from a debtor, optionally settling an invoice
class PaymentReceipt(PaymentBase):
    party_field = "debtor"
    reference_type = "receipt"
    mirror_type = "deposit"
    mirror_prefix = "DEP"
    mirror_category = "Payment Receipt"
    number_prefix = "REC"

    receipt_number = models.CharField(max_length=64)
    debtor = models.ForeignKey(
        Debtor,
        null=True,
        blank=True,
        on_delete=models.RESTRICT,
        related_name="receipts",
    )
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="receipts",
    )

    class Meta:
        indexes = [
            models.Index(fields=["business", "debtor"], name="receipt_business_debtor_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "receipt_number"],
                name="uq_receipt_business_number",
            )
        ]

    def __str__(self):
        return f"Receipt {self.receipt_number} ({self.amount})"

    @property
    def number(self):
        return self.receipt_number

    @property
    def document(self):
        return self.invoice

    def mirror_description(self):
        description = "Payment received"
        if self.debtor_id:
            description = f"Payment from {self.debtor.name}"
        if self.invoice_id:
            description += f" for invoice {self.invoice.invoice_number}"
        return description
