"""
Bank-side consistency: mirrored transactions for bank-transfer
settlements, transfer pairs, and derived account balances.
"""
from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import BusinessScopeError
from ..models import BankAccount, Transaction
from .audit_helper import log_action
from .numbering import next_number

logger = structlog.get_logger(__name__)

TRANSACTION_PREFIXES = {"deposit": "DEP", "withdrawal": "WIT", "transfer": "TRF"}

# Fields a user may still change on a row generated by a payment/receipt
MIRROR_EDITABLE_FIELDS = {"description", "category", "reconciled", "notes"}


def recalc_account_balances(*account_ids):
    """Recompute current_balance for every given account id."""
    for account in BankAccount.objects.filter(pk__in=[a for a in account_ids if a]):
        account.recalc_balance()


def mirrored_transaction_for(settlement, *, lock=False):
    qs = Transaction.objects.for_business(settlement.business_id).filter(
        reference_type=settlement.reference_type, reference_id=settlement.pk
    )
    if lock:
        qs = qs.select_for_update()
    return qs.first()


# ----------------------------------------
# Mirrored transactions (payments / receipts)
# ----------------------------------------
def sync_mirrored_transaction(settlement, *, user=None):
    """
    Make the bank ledger reflect `settlement` (a Payment or PaymentReceipt):
    exactly one mirrored Transaction while it is a bank transfer from a
    named account, none otherwise. Returns the mirror or None.
    """
    with transaction.atomic():
        existing = mirrored_transaction_for(settlement, lock=True)

        if not settlement.uses_bank_transfer:
            if existing is not None:
                remove_mirrored_transaction(settlement, user=user)
            return None

        fields = {
            "account": settlement.bank_account,
            "amount": settlement.amount,
            "date": settlement.payment_date,
            "description": settlement.mirror_description(),
            "notes": settlement.notes,
        }

        if existing is not None:
            old_account_id = existing.account_id
            for name, value in fields.items():
                setattr(existing, name, value)
            existing.save()
            if old_account_id != existing.account_id:
                recalc_account_balances(old_account_id)
            logger.info(
                "mirror_updated",
                business_id=settlement.business_id,
                reference_type=settlement.reference_type,
                reference_id=settlement.pk,
                transaction_id=existing.pk,
            )
            return existing

        mirror = Transaction.objects.create(
            business=settlement.business,
            transaction_number=next_number(
                Transaction.objects.for_business(settlement.business_id),
                "transaction_number", settlement.mirror_prefix),
            type=settlement.mirror_type,
            category=settlement.mirror_category,
            reference_type=settlement.reference_type,
            reference_id=settlement.pk,
            reconciled=False,
            **fields,
        )
        log_action(
            action="create",
            instance=mirror,
            user=user,
            changes={
                "reference_type": settlement.reference_type,
                "reference_id": settlement.pk,
                "amount": str(mirror.amount),
            },
        )
        logger.info(
            "mirror_created",
            business_id=settlement.business_id,
            reference_type=settlement.reference_type,
            reference_id=settlement.pk,
            transaction_id=mirror.pk,
        )
        return mirror


def remove_mirrored_transaction(settlement, *, user=None):
    """Delete the mirror of `settlement`, if any. Returns rows deleted."""
    with transaction.atomic():
        mirrors = list(
            Transaction.objects.filter(
                business_id=settlement.business_id,
                reference_type=settlement.reference_type,
                reference_id=settlement.pk,
            )
        )
        for mirror in mirrors:
            log_action(
                action="delete",
                instance=mirror,
                user=user,
                business=settlement.business,
                changes={"reference_id": settlement.pk},
            )
            # post_delete signal recomputes the account balance
            mirror.delete()
        if mirrors:
            logger.info(
                "mirror_deleted",
                business_id=settlement.business_id,
                reference_type=settlement.reference_type,
                reference_id=settlement.pk,
                count=len(mirrors),
            )
        return len(mirrors)


# ----------------------------------------
# Bank accounts
# ----------------------------------------
def create_bank_account(business, *, name, opening_balance=Decimal("0.00"),
                        account_number="", account_type="checking", user=None):
    with transaction.atomic():
        account = BankAccount(
            business=business,
            name=name,
            account_number=account_number,
            account_type=account_type,
            opening_balance=opening_balance,
            # nothing posted yet: current starts at opening
            current_balance=opening_balance,
        )
        account.full_clean()
        account.save()
        log_action(action="create", instance=account, user=user,
                   changes={"opening_balance": str(opening_balance)})
        return account


def update_bank_account(business, account_id, *, expected_version=None,
                        user=None, **fields):
    """Edit account details; an opening-balance change recomputes current_balance."""
    with transaction.atomic():
        account = BankAccount.objects.for_business(business).select_for_update().get(
            pk=account_id)
        account.check_version(expected_version)

        old_opening = account.opening_balance
        for name in ("name", "account_number", "account_type", "opening_balance"):
            if name in fields:
                setattr(account, name, fields[name])
        account.version += 1
        account.full_clean()
        account.save()

        if account.opening_balance != old_opening:
            account.recalc_balance()
            log_action(
                action="update",
                instance=account,
                user=user,
                changes={
                    "opening_balance": [str(old_opening), str(account.opening_balance)],
                    "current_balance": str(account.current_balance),
                },
            )
        return account


# ----------------------------------------
# Manual transactions and transfers
# ----------------------------------------
def record_transaction(business, *, account, type, amount, date, description,
                       category="", reconciled=False, notes="",
                       transaction_number=None, to_account=None, user=None):
    """
    Record a manual deposit/withdrawal, or a transfer: the source row
    (type "transfer") plus a paired deposit in `to_account`.
    """
    if account.business_id != business.pk:
        raise BusinessScopeError(f"Bank account {account.pk} is not in business {business.pk}")
    if type == "transfer":
        if to_account is None:
            raise ValidationError("Destination account is required")
        if to_account.pk == account.pk:
            raise ValidationError(
                "Source and destination accounts must be different")
        if to_account.business_id != business.pk:
            raise BusinessScopeError(
                f"Bank account {to_account.pk} is not in business {business.pk}")

    scoped = Transaction.objects.for_business(business)
    with transaction.atomic():
        number = transaction_number or next_number(
            scoped, "transaction_number", TRANSACTION_PREFIXES[type])
        source = Transaction.objects.create(
            business=business,
            account=account,
            transaction_number=number,
            type=type,
            amount=amount,
            date=date,
            description=description,
            category=category,
            reconciled=reconciled,
            notes=notes,
        )
        log_action(action="create", instance=source, user=user,
                   changes={"type": type, "amount": str(amount)})

        if type == "transfer":
            Transaction.objects.create(
                business=business,
                account=to_account,
                transaction_number=f"TRF-TO-{number.replace('TRF-', '', 1)}",
                type="deposit",
                amount=amount,
                date=date,
                description=f"Transfer from {account.name}",
                category=category,
                reconciled=reconciled,
                notes=notes,
                reference_type="transaction",
                reference_id=source.pk,
            )
        logger.info("transaction_recorded", business_id=business.pk,
                    transaction_id=source.pk, type=type, amount=str(amount))
        return source


def transfer_pair_of(tx, *, lock=False):
    """The other side of a transfer (source <-> paired deposit), or None."""
    if tx.reference_type == "transaction":
        qs = Transaction.objects.filter(business_id=tx.business_id, pk=tx.reference_id)
    else:
        qs = Transaction.objects.filter(
            business_id=tx.business_id, reference_type="transaction",
            reference_id=tx.pk)
    if lock:
        qs = qs.select_for_update()
    return qs.first()


def update_transaction(business, transaction_id, *, user=None, **fields):
    """
    Edit a transaction and keep its transfer pair in step.
    Rows generated by a payment or receipt only accept
    description/category/reconciled/notes; edit the settlement instead.
    """
    with transaction.atomic():
        tx = Transaction.objects.for_business(business).select_for_update().get(
            pk=transaction_id)

        if tx.reference_type in ("payment", "receipt"):
            blocked = set(fields) - MIRROR_EDITABLE_FIELDS
            if blocked:
                raise ValidationError(
                    f"Cannot change {sorted(blocked)} on a transaction generated "
                    f"by a {tx.reference_type}; edit the {tx.reference_type} instead."
                )

        pair = transfer_pair_of(tx, lock=True)

        # a transfer is two rows; its shape is fixed at creation
        new_type = fields.get("type", tx.type)
        if new_type != tx.type and (
            pair is not None or "transfer" in (tx.type, new_type)
        ):
            raise ValidationError(
                "Cannot change the type of a transfer; delete it and record a new one.")

        if "account" in fields:
            account = fields["account"]
            if account.business_id != business.pk:
                raise BusinessScopeError(
                    f"Bank account {account.pk} is not in business {business.pk}")
            if pair is not None and account.pk == pair.account_id:
                raise ValidationError(
                    "Source and destination accounts must be different")

        old_account_id = tx.account_id
        for name, value in fields.items():
            setattr(tx, name, value)
        tx.save()
        if old_account_id != tx.account_id:
            recalc_account_balances(old_account_id)

        if pair is not None:
            for name in ("amount", "date", "category", "reconciled", "notes"):
                setattr(pair, name, getattr(tx, name))
            pair.save()

        log_action(action="update", instance=tx, user=user,
                   changes={name: str(value) for name, value in fields.items()})
        return tx


def delete_transaction(business, transaction_id, *, user=None):
    """Delete a manual transaction; either side of a transfer removes the pair."""
    with transaction.atomic():
        tx = Transaction.objects.for_business(business).select_for_update().get(
            pk=transaction_id)
        if tx.reference_type in ("payment", "receipt"):
            raise ValidationError(
                f"Transaction was generated by a {tx.reference_type}; "
                f"delete or edit the {tx.reference_type} instead."
            )

        doomed = [tx]
        if tx.reference_type == "transaction":
            doomed += list(Transaction.objects.filter(
                business=business, pk=tx.reference_id))
        doomed += list(Transaction.objects.filter(
            business=business, reference_type="transaction", reference_id=tx.pk))

        doomed_ids = [row.pk for row in doomed]
        for row in doomed:
            log_action(action="delete", instance=row, user=user,
                       changes={"amount": str(row.amount), "type": row.type})
            row.delete()
        logger.info("transaction_deleted", business_id=business.pk,
                    transaction_ids=doomed_ids)
        return len(doomed)
