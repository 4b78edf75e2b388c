import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

# Import models
from ..models import Payment, PaymentReceipt
from .audit_helper import log_action
from .balances import balance_state, sync_outstanding
from .banking import remove_mirrored_transaction, sync_mirrored_transaction
from .numbering import next_number

logger = structlog.get_logger(__name__)

# Fields a caller may set on a Payment / PaymentReceipt
SETTLEMENT_FIELDS = {
    Payment: {"creditor", "bill", "amount", "payment_date", "payment_method",
              "bank_account", "reference", "notes", "payment_number"},
    PaymentReceipt: {"debtor", "invoice", "amount", "payment_date",
                     "payment_method", "bank_account", "reference", "notes",
                     "receipt_number"},
}


def _number_field(model):
    return "payment_number" if model is Payment else "receipt_number"


def _check_fields(model, fields):
    unknown = set(fields) - SETTLEMENT_FIELDS[model]
    if unknown:
        raise ValidationError(f"Unknown {model.__name__} fields: {sorted(unknown)}")


def settle_document(settlement, *, user=None):
    """
    Mark the linked bill/invoice PAID once a single settlement covers it.
    """
    doc = settlement.document
    if doc is None or doc.status == "PAID":
        return None
    if settlement.amount < doc.total_amount:
        return None

    doc = doc.__class__.objects.select_for_update().get(pk=doc.pk)
    doc.transition_to("PAID")
    log_action(
        action="status_change",
        instance=doc,
        user=user,
        changes={"status": "PAID", "settled_by": settlement.number},
    )
    return doc


# ----------------------------
# Payment / receipt workflows
# ----------------------------
def _create_settlement(model, business, *, user=None, **fields):
    _check_fields(model, fields)
    number_field = _number_field(model)

    # Record + party balance + bank mirror + document status: one unit
    with transaction.atomic():
        if not fields.get(number_field):
            fields[number_field] = next_number(
                model.objects.for_business(business), number_field,
                model.number_prefix)
        settlement = model(business=business, **fields)
        settlement.save()

        sync_outstanding(model, None, balance_state(settlement), user=user)
        sync_mirrored_transaction(settlement, user=user)
        settle_document(settlement, user=user)

        log_action(
            action="create",
            instance=settlement,
            user=user,
            changes={"amount": str(settlement.amount),
                     "payment_method": settlement.payment_method},
        )
        logger.info(
            "settlement_created",
            business_id=business.pk,
            model=model.__name__,
            number=settlement.number,
            amount=str(settlement.amount),
        )
        return settlement


def _update_settlement(model, business, pk, *, expected_version=None,
                       user=None, **fields):
    _check_fields(model, fields)

    with transaction.atomic():
        settlement = model.objects.for_business(business).select_for_update().get(pk=pk)
        settlement.check_version(expected_version)

        old_state = balance_state(settlement)
        for name, value in fields.items():
            setattr(settlement, name, value)
        settlement.version += 1
        settlement.save()

        sync_outstanding(model, old_state, balance_state(settlement), user=user)
        sync_mirrored_transaction(settlement, user=user)
        settle_document(settlement, user=user)

        log_action(
            action="update",
            instance=settlement,
            user=user,
            changes={name: str(value) for name, value in fields.items()},
        )
        return settlement


def _delete_settlement(model, business, pk, *, expected_version=None, user=None):
    with transaction.atomic():
        settlement = model.objects.for_business(business).select_for_update().get(pk=pk)
        settlement.check_version(expected_version)

        old_state = balance_state(settlement)
        remove_mirrored_transaction(settlement, user=user)
        log_action(
            action="delete",
            instance=settlement,
            user=user,
            changes={"amount": str(settlement.amount), "number": settlement.number},
        )
        settlement.delete()

        sync_outstanding(model, old_state, None, user=user)
        logger.info(
            "settlement_deleted",
            business_id=business.pk,
            model=model.__name__,
            pk=pk,
        )


def create_payment(business, *, user=None, **fields):
    """Pay a creditor (optionally against a bill)."""
    return _create_settlement(Payment, business, user=user, **fields)


def update_payment(business, payment_id, *, expected_version=None, user=None, **fields):
    return _update_settlement(Payment, business, payment_id,
                              expected_version=expected_version, user=user, **fields)


def delete_payment(business, payment_id, *, expected_version=None, user=None):
    return _delete_settlement(Payment, business, payment_id,
                              expected_version=expected_version, user=user)


def create_receipt(business, *, user=None, **fields):
    """Receive money from a debtor (optionally against an invoice)."""
    return _create_settlement(PaymentReceipt, business, user=user, **fields)


def update_receipt(business, receipt_id, *, expected_version=None, user=None, **fields):
    return _update_settlement(PaymentReceipt, business, receipt_id,
                              expected_version=expected_version, user=user, **fields)


def delete_receipt(business, receipt_id, *, expected_version=None, user=None):
    return _delete_settlement(PaymentReceipt, business, receipt_id,
                              expected_version=expected_version, user=user)
