from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Sum

from ..managers import TenantManager
from .base import ZERO, VersionedModel
from .business import Business

PAYMENT_METHODS = [
    # Used in Payment and PaymentReceipt entities
    # Keeps payment method standardized across records
    ("cash", "Cash"),
    ("cheque", "Cheque"),
    ("bank_transfer", "Bank Transfer"),
    ("card", "Card"),
    ("other", "Other"),
]

ACCOUNT_TYPES = [
    ("checking", "Checking"),
    ("savings", "Savings"),
    ("current", "Current"),
    ("credit_card", "Credit Card"),
    ("cash", "Cash"),
    ("other", "Other"),
]

TRANSACTION_TYPES = [
    ("deposit", "Deposit"),
    ("withdrawal", "Withdrawal"),
    ("transfer", "Transfer"),  # outflow side of a transfer between accounts
]

# How each type moves the account balance
TRANSACTION_SIGNS = {"deposit": 1, "withdrawal": -1, "transfer": -1}

REFERENCE_TYPES = [
    ("payment", "Payment"),
    ("receipt", "Payment receipt"),
    ("transaction", "Transfer source"),
]


# ---------- Banking ----------


class BankAccount(VersionedModel):  # Bank account the business maintains
    # Belongs to a Business (multi-tenant)
    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    name = models.CharField(
        max_length=200
    )  # e.g. "Checking Account", "Savings Account"
    account_number = models.CharField(max_length=50, blank=True, default="")
    account_type = models.CharField(
        max_length=20, choices=ACCOUNT_TYPES, default="checking")
    opening_balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO)
    # Derived: opening_balance + signed sum of transactions
    current_balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO)
    last_reconciled_at = models.DateField(
        null=True, blank=True
    )  # For reconciliation workflows

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # A business cannot have two accounts with the same name
        constraints = [
            models.UniqueConstraint(
                fields=["business", "name"], name="uq_business_bankaccount_name"
            ),
        ]

    def __str__(self):
        if self.account_number:
            return f"{self.name} ({self.account_number})"
        return self.name

    def derived_balance(self):
        """opening_balance plus the signed sum of every transaction."""
        totals = {
            row["type"]: row["total"]
            for row in Transaction.objects.filter(account=self)
            .values("type")
            .annotate(total=Sum("amount"))
        }
        balance = self.opening_balance or ZERO
        for tx_type, sign in TRANSACTION_SIGNS.items():
            balance += sign * (totals.get(tx_type) or ZERO)
        return balance

    def recalc_balance(self):
        """Write derived_balance() to current_balance without re-running save()."""
        self.current_balance = self.derived_balance()
        BankAccount.objects.filter(pk=self.pk).update(
            current_balance=self.current_balance, version=F("version") + 1
        )
        self.version += 1
        return self.current_balance


class Transaction(models.Model):  # Single inflow/outflow in a bank account
    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    # prevent BankAccount deletion if transactions exist
    # (deleting the whole business still cascades)
    account = models.ForeignKey(
        BankAccount, on_delete=models.RESTRICT, related_name="transactions"
    )
    transaction_number = models.CharField(max_length=64)
    type = models.CharField(max_length=20, choices=TRANSACTION_TYPES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField()
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")

    # Back-link to the record that generated this row
    # (a Payment, a PaymentReceipt, or the source side of a transfer)
    reference_type = models.CharField(
        max_length=20, choices=REFERENCE_TYPES, blank=True, default=""
    )
    reference_id = models.PositiveBigIntegerField(null=True, blank=True)

    reconciled = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # Optimizes queries for reconciliation
        # (find all txns for an account or for a date)
        indexes = [
            models.Index(fields=["business", "account"], name="tx_business_account_idx"),
            models.Index(fields=["business", "date"], name="tx_business_date_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="tx_reference_idx"),
        ]
        constraints = [
            # A generating record has at most one mirrored transaction
            models.UniqueConstraint(
                fields=["business", "reference_type", "reference_id"],
                condition=models.Q(reference_id__isnull=False),
                name="uq_tx_business_reference",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="tx_positive_amount",
            ),
        ]

    def __str__(self):
        return f"{self.account.name} - {self.date} - {self.type} {self.amount}"

    @property
    def signed_amount(self):
        return TRANSACTION_SIGNS[self.type] * self.amount

    def clean(self):
        if self.amount is None or self.amount <= ZERO:
            raise ValidationError("Amount must be a positive number")
        # Ensure bank account chosen belongs to the same business
        if self.account_id and self.account.business_id != self.business_id:
            raise ValidationError(
                "Bank account must belong to the same business.")
        if bool(self.reference_type) != (self.reference_id is not None):
            raise ValidationError(
                "reference_type and reference_id must be set together.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
