"""
Keep a party's outstanding_amount consistent with the documents
and settlements that reference it.

Bills and Purchases increase a creditor's balance, Payments decrease it.
Invoices increase a debtor's balance, Receipts decrease it.
Every write is clamped at zero and checked against the party's version.
"""
from collections import namedtuple
from decimal import Decimal

import structlog
from django.db import models, transaction
from django.db.models import F

from ..exceptions import ConcurrentUpdateError
from ..models import (Bill, Creditor, Debtor, Invoice, Payment,
                      PaymentReceipt, Purchase)
from ..models.base import ZERO
from .audit_helper import log_action

logger = structlog.get_logger(__name__)

# What a document contributes to its party's balance at one point in time
BalanceState = namedtuple("BalanceState", ["party_id", "amount"])

# Documents that move each party type's balance
BALANCE_SOURCES = {
    Creditor: (Bill, Purchase, Payment),
    Debtor: (Invoice, PaymentReceipt),
}


def balance_state(document):
    """Capture (party_id, amount) of a balance-affecting record."""
    if document is None:
        return None
    return BalanceState(document.party_id, Decimal(document.effect_amount))


def party_model_for(document_model):
    return document_model._meta.get_field(document_model.party_field).related_model


def apply_outstanding_delta(party_model, party_id, delta, *, user=None, reason=""):
    """
    Add `delta` to the party's outstanding_amount, clamped at zero.
    Locks the party row and writes with a version compare-and-swap.
    Returns the updated party (or None when there is nothing to do).
    """
    if party_id is None or not delta:
        return None

    with transaction.atomic():
        party = party_model.objects.select_for_update().get(pk=party_id)
        old_amount = party.outstanding_amount
        new_amount = max(ZERO, old_amount + delta)

        # Compare-and-swap on version: zero rows means someone else wrote first
        updated = party_model.objects.filter(
            pk=party.pk, version=party.version
        ).update(outstanding_amount=new_amount, version=F("version") + 1)
        if not updated:
            raise ConcurrentUpdateError(
                party_model.__name__, party.pk, party.version)

        party.outstanding_amount = new_amount
        party.version += 1

        log_action(
            action="balance_update",
            instance=party,
            user=user,
            changes={
                "outstanding_amount": [str(old_amount), str(new_amount)],
                "delta": str(delta),
                "reason": reason,
            },
        )
        logger.info(
            "outstanding_updated",
            business_id=party.business_id,
            party=party_model.__name__,
            party_id=party.pk,
            delta=str(delta),
            old=str(old_amount),
            new=str(new_amount),
            clamped=(old_amount + delta) < ZERO,
            reason=reason,
        )
        return party


def sync_outstanding(document_model, old, new, *, user=None):
    """
    Move the party balance from the `old` BalanceState to the `new` one.

    create: old is None        -> apply the full new amount
    delete: new is None        -> reverse the full old amount
    edit, same party           -> apply the signed difference
    edit, party changed        -> reverse on the old party, apply on the new
    """
    party_model = party_model_for(document_model)
    sign = document_model.balance_sign
    reason = document_model.__name__

    old_party = old.party_id if old else None
    new_party = new.party_id if new else None

    with transaction.atomic():
        if old_party == new_party:
            if old_party is None:
                return
            difference = (new.amount if new else ZERO) - (old.amount if old else ZERO)
            apply_outstanding_delta(
                party_model, old_party, sign * difference, user=user, reason=reason)
            return

        if old_party is not None:
            apply_outstanding_delta(
                party_model, old_party, -sign * old.amount, user=user, reason=reason)
        if new_party is not None:
            apply_outstanding_delta(
                party_model, new_party, sign * new.amount, user=user, reason=reason)


def derived_outstanding(party):
    """
    Balance implied by the party's records:
    opening balance plus the signed sum of every document and settlement,
    floored at zero.
    """
    total = party.opening_outstanding
    for document_model in BALANCE_SOURCES[party.__class__]:
        amount = document_model.objects.filter(
            **{document_model.party_field: party}
        ).aggregate(total=models.Sum(document_model.amount_field))["total"]
        total += document_model.balance_sign * (amount or ZERO)
    return max(ZERO, total)
