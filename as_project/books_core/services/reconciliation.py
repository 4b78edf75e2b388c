"""
Reconciliation: compare a statement balance against a chosen set of
bank transactions and persist which of them are reconciled.
"""
from collections import namedtuple
from datetime import date
from decimal import Decimal

import structlog
from django.conf import settings
from django.db import transaction

from ..models import BankAccount, Transaction
from ..models.base import ZERO
from .audit_helper import log_action

logger = structlog.get_logger(__name__)

ReconciliationResult = namedtuple(
    "ReconciliationResult",
    ["statement_balance", "selected_total", "difference", "is_balanced"],
)


def get_tolerance():
    return Decimal(str(getattr(settings, "RECONCILIATION_TOLERANCE", "0.01")))


def compute_difference(statement_balance, transactions, selected_ids, tolerance=None):
    """
    difference = statement − Σ selected deposits + Σ selected withdrawals/transfers
    Balanced when |difference| < tolerance.
    """
    tolerance = get_tolerance() if tolerance is None else Decimal(str(tolerance))
    selected = set(selected_ids)

    selected_total = ZERO
    for tx in transactions:
        if tx.pk in selected:
            selected_total += tx.signed_amount

    statement_balance = Decimal(str(statement_balance))
    difference = statement_balance - selected_total
    return ReconciliationResult(
        statement_balance=statement_balance,
        selected_total=selected_total,
        difference=difference,
        is_balanced=abs(difference) < tolerance,
    )


def reconciliation_preview(business, account_id, *, statement_balance=None,
                           selected_ids=None):
    """
    Defaults: statement balance = account's current balance,
    selection = transactions already reconciled.
    """
    account = BankAccount.objects.for_business(business).get(pk=account_id)
    transactions = list(
        Transaction.objects.for_business(business).filter(account=account)
        .order_by("date", "pk")
    )
    if statement_balance is None:
        statement_balance = account.current_balance
    if selected_ids is None:
        selected_ids = [tx.pk for tx in transactions if tx.reconciled]
    return account, transactions, compute_difference(
        statement_balance, transactions, selected_ids)


def save_reconciliation(business, account_id, selected_ids, *, user=None, on_date=None):
    """
    Flag selected transactions reconciled and the rest unreconciled
    (two batched updates) and stamp the account's last_reconciled_at.
    Returns (newly_reconciled, newly_unreconciled).
    """
    selected = set(selected_ids)
    with transaction.atomic():
        account = BankAccount.objects.for_business(business).select_for_update().get(
            pk=account_id)
        rows = Transaction.objects.for_business(business).filter(account=account)

        unknown = selected - set(rows.values_list("pk", flat=True))
        if unknown:
            raise Transaction.DoesNotExist(
                f"Transactions {sorted(unknown)} are not in account {account.pk}")

        newly_reconciled = rows.filter(pk__in=selected, reconciled=False).update(
            reconciled=True)
        newly_unreconciled = rows.filter(reconciled=True).exclude(
            pk__in=selected).update(reconciled=False)

        account.last_reconciled_at = on_date or date.today()
        account.save(update_fields=["last_reconciled_at"])

        log_action(
            action="reconcile",
            instance=account,
            user=user,
            changes={
                "reconciled": newly_reconciled,
                "unreconciled": newly_unreconciled,
                "selected": sorted(selected),
            },
        )
        logger.info(
            "reconciliation_saved",
            business_id=business.pk,
            account_id=account.pk,
            reconciled=newly_reconciled,
            unreconciled=newly_unreconciled,
        )
        return newly_reconciled, newly_unreconciled
