from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Payment, PaymentReceipt, Transaction

"""
    Recompute the account balance whenever one of its transactions
    is added/updated/removed. current_balance is never adjusted by hand.
"""


@receiver((post_save, post_delete), sender=Transaction)
def transaction_changed(sender, instance, **kwargs):
    from .services.banking import recalc_account_balances

    recalc_account_balances(instance.account_id)


"""Drop the mirrored transaction when a payment or receipt goes away."""


# Also covers deletes that bypass the services (admin, cascades).
# No audit rows here: during a business cascade the business is on its way out.
@receiver(post_delete, sender=Payment)
@receiver(post_delete, sender=PaymentReceipt)
def settlement_deleted(sender, instance, **kwargs):
    Transaction.objects.filter(
        business_id=instance.business_id,
        reference_type=instance.reference_type,
        reference_id=instance.pk,
    ).delete()
