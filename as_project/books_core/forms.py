from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError

from .models import BankAccount, Bill, Creditor, Debtor, Invoice
from .models.assistant import AVAILABLE_MODELS
from .models.banking import ACCOUNT_TYPES, PAYMENT_METHODS, TRANSACTION_TYPES

# ------------------------------------------------
# Input forms for the JSON views.
# Every related-object dropdown is limited to the current business.
# ------------------------------------------------


class ScopedForm(forms.Form):
    """
    Form bound to one business.
    partial=True (edits): nothing is required and only the keys the
    client actually sent end up in `values()`.
    """

    def __init__(self, data, *, business, partial=False):
        super().__init__(data)
        self.business = business
        self.partial = partial
        for field in self.fields.values():
            if isinstance(field, forms.ModelChoiceField):
                field.queryset = field.queryset.model.objects.for_business(business)
            if partial:
                field.required = False

    def values(self):
        if self.partial:
            return {k: v for k, v in self.cleaned_data.items() if k in self.data}
        # on create, leave unset optional fields to the model defaults
        return {k: v for k, v in self.cleaned_data.items() if v not in (None, "")}


class SettlementForm(ScopedForm):
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    payment_date = forms.DateField()
    payment_method = forms.ChoiceField(choices=PAYMENT_METHODS, required=False)
    bank_account = forms.ModelChoiceField(
        queryset=BankAccount.objects.none(), required=False)
    reference = forms.CharField(max_length=200, required=False)
    notes = forms.CharField(required=False)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("payment_method") == "bank_transfer" and not cleaned.get(
                "bank_account") and not self.partial:
            raise ValidationError("Select a bank account for a bank transfer.")
        return cleaned


class PaymentForm(SettlementForm):
    payment_number = forms.CharField(max_length=64, required=False)
    creditor = forms.ModelChoiceField(queryset=Creditor.objects.none())
    bill = forms.ModelChoiceField(queryset=Bill.objects.none(), required=False)


class ReceiptForm(SettlementForm):
    receipt_number = forms.CharField(max_length=64, required=False)
    debtor = forms.ModelChoiceField(queryset=Debtor.objects.none())
    invoice = forms.ModelChoiceField(queryset=Invoice.objects.none(), required=False)


class PurchaseForm(ScopedForm):
    purchase_number = forms.CharField(max_length=64, required=False)
    creditor = forms.ModelChoiceField(queryset=Creditor.objects.none())
    item_name = forms.CharField(max_length=200)
    description = forms.CharField(required=False)
    quantity = forms.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.01"))
    unit_price = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    purchase_date = forms.DateField()


class ItemForm(forms.Form):
    description = forms.CharField()
    quantity = forms.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.01"))
    unit_price = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))


class DocumentForm(ScopedForm):
    """Header fields of an invoice or bill; items are validated separately."""

    issue_date = forms.DateField()
    due_date = forms.DateField()
    notes = forms.CharField(required=False)

    def clean(self):
        cleaned = super().clean()
        issue, due = cleaned.get("issue_date"), cleaned.get("due_date")
        if issue and due and due < issue:
            raise ValidationError("Due date cannot be before the issue date.")
        return cleaned


class InvoiceForm(DocumentForm):
    invoice_number = forms.CharField(max_length=64, required=False)
    debtor = forms.ModelChoiceField(queryset=Debtor.objects.none())


class BillForm(DocumentForm):
    bill_number = forms.CharField(max_length=64, required=False)
    creditor = forms.ModelChoiceField(queryset=Creditor.objects.none())


def clean_items(raw_items):
    """Validate a list of item dicts; returns cleaned dicts or raises."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")
    cleaned = []
    for index, raw in enumerate(raw_items, start=1):
        form = ItemForm(raw)
        if not form.is_valid():
            raise ValidationError(f"Item {index}: {form.errors.as_text()}")
        cleaned.append(form.cleaned_data)
    return cleaned


class BankAccountForm(ScopedForm):
    name = forms.CharField(max_length=200)
    account_number = forms.CharField(max_length=50, required=False)
    account_type = forms.ChoiceField(choices=ACCOUNT_TYPES, required=False)
    opening_balance = forms.DecimalField(
        max_digits=12, decimal_places=2, required=False)


class TransactionForm(ScopedForm):
    account = forms.ModelChoiceField(queryset=BankAccount.objects.none())
    type = forms.ChoiceField(choices=TRANSACTION_TYPES)
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    date = forms.DateField()
    description = forms.CharField()
    category = forms.CharField(max_length=100, required=False)
    reconciled = forms.BooleanField(required=False)
    notes = forms.CharField(required=False)
    transaction_number = forms.CharField(max_length=64, required=False)
    # transfers only
    to_account = forms.ModelChoiceField(
        queryset=BankAccount.objects.none(), required=False)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("type") == "transfer" and not self.partial:
            to_account = cleaned.get("to_account")
            if to_account is None:
                raise ValidationError("Destination account is required")
            if to_account == cleaned.get("account"):
                raise ValidationError(
                    "Source and destination accounts must be different")
        return cleaned


class ReconciliationForm(forms.Form):
    statement_balance = forms.DecimalField(
        max_digits=14, decimal_places=2, required=False)

    def selected_ids(self):
        """[1, 2, 5] or '1,2,5' -> [1, 2, 5]; None when nothing was sent."""
        if "selected" not in self.data:
            return None
        raw = self.data["selected"]
        if isinstance(raw, (list, tuple)):
            parts = raw
        else:
            parts = [part for part in str(raw).split(",") if part.strip()]
        try:
            return [int(part) for part in parts]
        except (TypeError, ValueError):
            raise ValidationError("selected must be a list of transaction ids")


class AssistantSettingsForm(forms.Form):
    api_key = forms.CharField(max_length=255, required=False)
    model = forms.ChoiceField(choices=AVAILABLE_MODELS, required=False)
    temperature = forms.FloatField(min_value=0, max_value=1, required=False)
    max_tokens = forms.IntegerField(min_value=100, max_value=4000, required=False)


class ChatMessageForm(forms.Form):
    content = forms.CharField(max_length=4000)
