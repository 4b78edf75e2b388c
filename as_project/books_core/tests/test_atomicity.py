from decimal import Decimal
from unittest import mock

from django.test import TestCase

from books_core.models import AuditLog, Bill, Creditor, Payment, Transaction
from books_core.services.documents import create_bill, update_bill
from books_core.services.payments import create_payment, update_payment

from .helpers import TODAY, items, make_account, make_creditor, make_owner


class Boom(Exception):
    pass


class PaymentAtomicityTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        self.creditor = make_creditor(self.business, outstanding="500.00")
        self.account = make_account(self.business, opening="1000.00")

    def create(self, **extra):
        return create_payment(
            self.business,
            creditor=self.creditor,
            amount=Decimal("100.00"),
            payment_date=TODAY,
            payment_method="bank_transfer",
            bank_account=self.account,
            **extra,
        )

    def assertUntouched(self):
        self.creditor.refresh_from_db()
        self.account.refresh_from_db()
        self.assertEqual(self.creditor.outstanding_amount, Decimal("500.00"))
        self.assertEqual(self.account.current_balance, Decimal("1000.00"))
        self.assertFalse(Payment.objects.exists())
        self.assertFalse(Transaction.objects.exists())
        self.assertFalse(AuditLog.objects.exists())

    def test_failed_mirror_rolls_back_balance_and_record(self):
        with mock.patch("books_core.services.payments.sync_mirrored_transaction",
                        side_effect=Boom):
            with self.assertRaises(Boom):
                self.create()
        self.assertUntouched()

    def test_failed_settlement_rolls_back_everything(self):
        bill = create_bill(self.business, creditor=self.creditor, issue_date=TODAY,
                           due_date=TODAY, items=items("100.00"))
        AuditLog.objects.all().delete()
        Creditor.objects.filter(pk=self.creditor.pk).update(
            outstanding_amount=Decimal("500.00"))

        with mock.patch("books_core.services.payments.settle_document",
                        side_effect=Boom):
            with self.assertRaises(Boom):
                self.create(bill=bill)

        self.assertUntouched()
        self.assertEqual(Bill.objects.get(pk=bill.pk).status, "PENDING")

    def test_failed_edit_keeps_previous_state(self):
        payment = self.create()

        with mock.patch("books_core.services.payments.sync_mirrored_transaction",
                        side_effect=Boom):
            with self.assertRaises(Boom):
                update_payment(self.business, payment.pk, amount=Decimal("300.00"))

        payment.refresh_from_db()
        self.creditor.refresh_from_db()
        self.assertEqual(payment.amount, Decimal("100.00"))
        self.assertEqual(payment.version, 1)
        self.assertEqual(self.creditor.outstanding_amount, Decimal("400.00"))
        self.assertEqual(Transaction.objects.get().amount, Decimal("100.00"))


class DocumentAtomicityTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        self.creditor = make_creditor(self.business)

    def test_failed_balance_update_discards_new_items(self):
        bill = create_bill(self.business, creditor=self.creditor, issue_date=TODAY,
                           due_date=TODAY, items=items("100.00"))

        with mock.patch("books_core.services.documents.sync_outstanding",
                        side_effect=Boom):
            with self.assertRaises(Boom):
                update_bill(self.business, bill.pk, items=items("10.00", "20.00"))

        bill.refresh_from_db()
        self.assertEqual(bill.total_amount, Decimal("100.00"))
        self.assertEqual(bill.items.count(), 1)
        self.creditor.refresh_from_db()
        self.assertEqual(self.creditor.outstanding_amount, Decimal("100.00"))

    def test_failed_create_leaves_no_bill(self):
        with mock.patch("books_core.services.documents.sync_outstanding",
                        side_effect=Boom):
            with self.assertRaises(Boom):
                create_bill(self.business, creditor=self.creditor, issue_date=TODAY,
                            due_date=TODAY, items=items("100.00"))
        self.assertFalse(Bill.objects.exists())
