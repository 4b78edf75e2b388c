"""
Invoices, bills and purchases: create/edit/delete with item replacement,
total recomputation and party-balance updates, plus status workflows.
"""
from datetime import date

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

# Import models
from ..models import Bill, BillItem, Invoice, InvoiceItem, Purchase
from .audit_helper import log_action
from .balances import balance_state, sync_outstanding
from .numbering import next_number

logger = structlog.get_logger(__name__)

# model -> (number field, prefix, item model, item FK name)
DOCUMENT_KINDS = {
    Invoice: ("invoice_number", "INV", InvoiceItem, "invoice"),
    Bill: ("bill_number", "BILL", BillItem, "bill"),
}

HEADER_FIELDS = {
    Invoice: {"debtor", "invoice_number", "issue_date", "due_date", "notes"},
    Bill: {"creditor", "bill_number", "issue_date", "due_date", "notes"},
}

PURCHASE_FIELDS = {"creditor", "purchase_number", "item_name", "description",
                   "quantity", "unit_price", "purchase_date"}


def _check_fields(allowed, fields, label):
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Unknown {label} fields: {sorted(unknown)}")


def _replace_items(document, items):
    """Drop existing lines and insert `items` (dicts of description/quantity/unit_price)."""
    _, _, item_model, fk_name = DOCUMENT_KINDS[document.__class__]
    document.items.all().delete()
    for item in items:
        item_model.objects.create(
            business=document.business,
            **{fk_name: document},
            description=item["description"],
            quantity=item.get("quantity", 1),
            unit_price=item.get("unit_price", 0),
        )
    document.recalc_totals()


# ------------------------------------
# Invoice / bill workflows
# ------------------------------------
def _create_document(model, business, *, items, user=None, **fields):
    _check_fields(HEADER_FIELDS[model], fields, model.__name__)
    number_field, prefix, _, _ = DOCUMENT_KINDS[model]
    if not items:
        raise ValidationError("At least one item is required")

    with transaction.atomic():
        if not fields.get(number_field):
            fields[number_field] = next_number(
                model.objects.for_business(business), number_field, prefix)
        document = model(business=business, **fields)
        document.save()

        _replace_items(document, items)
        document.save(update_fields=["total_amount"])

        sync_outstanding(model, None, balance_state(document), user=user)
        log_action(
            action="create",
            instance=document,
            user=user,
            changes={"total_amount": str(document.total_amount)},
        )
        logger.info(
            "document_created",
            business_id=business.pk,
            model=model.__name__,
            number=getattr(document, number_field),
            total=str(document.total_amount),
        )
        return document


def _update_document(model, business, pk, *, items=None, expected_version=None,
                     user=None, **fields):
    _check_fields(HEADER_FIELDS[model], fields, model.__name__)
    if items is not None and not items:
        raise ValidationError("At least one item is required")

    with transaction.atomic():
        document = model.objects.for_business(business).select_for_update().get(pk=pk)
        document.check_version(expected_version)

        old_state = balance_state(document)
        for name, value in fields.items():
            setattr(document, name, value)
        if items is not None:
            _replace_items(document, items)
        document.version += 1
        document.save()

        sync_outstanding(model, old_state, balance_state(document), user=user)
        log_action(
            action="update",
            instance=document,
            user=user,
            changes={
                "total_amount": [str(old_state.amount), str(document.total_amount)],
                **{name: str(value) for name, value in fields.items()},
            },
        )
        return document


def _delete_document(model, business, pk, *, expected_version=None, user=None):
    with transaction.atomic():
        document = model.objects.for_business(business).select_for_update().get(pk=pk)
        document.check_version(expected_version)

        old_state = balance_state(document)
        log_action(
            action="delete",
            instance=document,
            user=user,
            changes={"total_amount": str(document.total_amount)},
        )
        # items cascade; linked settlements keep their amount, lose the link
        document.delete()
        sync_outstanding(model, old_state, None, user=user)


def create_invoice(business, *, items, user=None, **fields):
    return _create_document(Invoice, business, items=items, user=user, **fields)


def update_invoice(business, invoice_id, *, items=None, expected_version=None,
                   user=None, **fields):
    return _update_document(Invoice, business, invoice_id, items=items,
                            expected_version=expected_version, user=user, **fields)


def delete_invoice(business, invoice_id, *, expected_version=None, user=None):
    return _delete_document(Invoice, business, invoice_id,
                            expected_version=expected_version, user=user)


def create_bill(business, *, items, user=None, **fields):
    return _create_document(Bill, business, items=items, user=user, **fields)


def update_bill(business, bill_id, *, items=None, expected_version=None,
                user=None, **fields):
    return _update_document(Bill, business, bill_id, items=items,
                            expected_version=expected_version, user=user, **fields)


def delete_bill(business, bill_id, *, expected_version=None, user=None):
    return _delete_document(Bill, business, bill_id,
                            expected_version=expected_version, user=user)


def mark_paid(business, model, pk, *, user=None):
    """Move invoice/bill to PAID (from PENDING or OVERDUE)."""
    with transaction.atomic():
        document = model.objects.for_business(business).select_for_update().get(pk=pk)
        old_status = document.status
        document.transition_to("PAID")
        log_action(
            action="status_change",
            instance=document,
            user=user,
            changes={"status": [old_status, "PAID"]},
        )
        return document


def mark_overdue(today=None):
    """
    PENDING invoices and bills whose due date has passed -> OVERDUE.
    Returns the number of documents moved.
    """
    today = today or date.today()
    moved = 0
    for model in (Invoice, Bill):
        with transaction.atomic():
            for document in model.objects.select_for_update().filter(
                status="PENDING", due_date__lt=today
            ):
                document.transition_to("OVERDUE")
                log_action(
                    action="status_change",
                    instance=document,
                    changes={"status": ["PENDING", "OVERDUE"]},
                )
                moved += 1
    if moved:
        logger.info("documents_marked_overdue", count=moved, as_of=today.isoformat())
    return moved


# ------------------------------------
# Purchase workflows
# ------------------------------------
def create_purchase(business, *, user=None, **fields):
    _check_fields(PURCHASE_FIELDS, fields, "Purchase")

    with transaction.atomic():
        if not fields.get("purchase_number"):
            fields["purchase_number"] = next_number(
                Purchase.objects.for_business(business), "purchase_number", "PUR")
        purchase = Purchase(business=business, **fields)
        purchase.save()

        sync_outstanding(Purchase, None, balance_state(purchase), user=user)
        log_action(
            action="create",
            instance=purchase,
            user=user,
            changes={"total_price": str(purchase.total_price)},
        )
        return purchase


def update_purchase(business, purchase_id, *, expected_version=None, user=None,
                    **fields):
    _check_fields(PURCHASE_FIELDS, fields, "Purchase")

    with transaction.atomic():
        purchase = Purchase.objects.for_business(business).select_for_update().get(
            pk=purchase_id)
        purchase.check_version(expected_version)

        old_state = balance_state(purchase)
        for name, value in fields.items():
            setattr(purchase, name, value)
        purchase.version += 1
        purchase.save()

        sync_outstanding(Purchase, old_state, balance_state(purchase), user=user)
        log_action(
            action="update",
            instance=purchase,
            user=user,
            changes={"total_price": [str(old_state.amount), str(purchase.total_price)]},
        )
        return purchase


def delete_purchase(business, purchase_id, *, expected_version=None, user=None):
    with transaction.atomic():
        purchase = Purchase.objects.for_business(business).select_for_update().get(
            pk=purchase_id)
        purchase.check_version(expected_version)

        old_state = balance_state(purchase)
        log_action(action="delete", instance=purchase, user=user,
                   changes={"total_price": str(purchase.total_price)})
        purchase.delete()
        sync_outstanding(Purchase, old_state, None, user=user)
