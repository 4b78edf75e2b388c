import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


@shared_task  # register this function as a Celery task
def audit_ledger_drift(business_id):
    """
    Compare stored balances with the ones derived from the records.
    Logs every mismatch and returns them; nothing is rewritten.
    """
    # import models lazily to avoid circular imports at module import time
    from .models import BankAccount, Creditor, Debtor
    from .services.balances import derived_outstanding

    drifts = []

    for party_model in (Debtor, Creditor):
        for party in party_model.objects.filter(business_id=business_id):
            expected = derived_outstanding(party)
            if expected != party.outstanding_amount:
                drifts.append({
                    "kind": party_model.__name__,
                    "id": party.pk,
                    "stored": str(party.outstanding_amount),
                    "derived": str(expected),
                })

    for account in BankAccount.objects.filter(business_id=business_id):
        expected = account.derived_balance()
        if expected != account.current_balance:
            drifts.append({
                "kind": "BankAccount",
                "id": account.pk,
                "stored": str(account.current_balance),
                "derived": str(expected),
            })

    for drift in drifts:
        logger.warning("ledger_drift", business_id=business_id, **drift)
    logger.info("ledger_audit_done", business_id=business_id, drift_count=len(drifts))
    return drifts


@shared_task
def audit_all_businesses():
    from .models import Business

    # one task per business so a slow tenant doesn't hold up the rest
    business_ids = list(Business.objects.values_list("pk", flat=True))
    for business_id in business_ids:
        audit_ledger_drift.delay(business_id)
    return len(business_ids)


@shared_task
def mark_overdue_documents():
    from .services.documents import mark_overdue

    return mark_overdue()
