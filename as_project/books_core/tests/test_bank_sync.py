import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.test import TestCase

from books_core.models import AuditLog, BankAccount, Payment, Transaction
from books_core.services.banking import (create_bank_account, delete_transaction,
                                         record_transaction, update_bank_account,
                                         update_transaction)
from books_core.services.documents import create_bill, create_invoice
from books_core.services.payments import (create_payment, create_receipt,
                                          delete_payment, update_payment)

from .helpers import (TODAY, items, make_account, make_creditor, make_debtor,
                      make_owner)


def balance_of(account):
    return BankAccount.objects.get(pk=account.pk).current_balance


class PaymentMirrorTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        self.creditor = make_creditor(self.business, name="Paper Co")
        self.account = make_account(self.business, opening="1000.00")

    def pay_by_transfer(self, amount="200.00", **extra):
        return create_payment(
            self.business,
            creditor=self.creditor,
            amount=Decimal(amount),
            payment_date=TODAY,
            payment_method="bank_transfer",
            bank_account=self.account,
            user=self.user,
            **extra,
        )

    def test_bank_transfer_payment_creates_withdrawal(self):
        bill = create_bill(self.business, creditor=self.creditor, issue_date=TODAY,
                           due_date=TODAY, items=items("500.00"))
        payment = self.pay_by_transfer(bill=bill)

        mirror = Transaction.objects.get(reference_type="payment",
                                         reference_id=payment.pk)
        self.assertEqual(mirror.type, "withdrawal")
        self.assertEqual(mirror.amount, Decimal("200.00"))
        self.assertEqual(mirror.date, TODAY)
        self.assertEqual(mirror.category, "Payment")
        self.assertEqual(mirror.transaction_number, "WIT-0001")
        self.assertEqual(mirror.description, "Payment to Paper Co for bill BILL-0001")
        self.assertFalse(mirror.reconciled)
        self.assertEqual(balance_of(self.account), Decimal("800.00"))

    def test_mirror_number_skips_manual_withdrawals(self):
        manual = record_transaction(self.business, account=self.account,
                                    type="withdrawal", amount=Decimal("5.00"),
                                    date=TODAY, description="Bank fee")
        payment = self.pay_by_transfer()

        mirror = Transaction.objects.get(reference_type="payment",
                                         reference_id=payment.pk)
        self.assertEqual(manual.transaction_number, "WIT-0001")
        self.assertEqual(mirror.transaction_number, "WIT-0002")

        follow_up = record_transaction(self.business, account=self.account,
                                       type="withdrawal", amount=Decimal("1.00"),
                                       date=TODAY, description="Card fee")
        self.assertEqual(follow_up.transaction_number, "WIT-0003")

    def test_cash_payment_has_no_mirror(self):
        create_payment(self.business, creditor=self.creditor,
                       amount=Decimal("50.00"), payment_date=TODAY,
                       payment_method="cash")
        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(balance_of(self.account), Decimal("1000.00"))

    def test_bank_transfer_without_account_is_rejected(self):
        with self.assertRaises(ValidationError):
            create_payment(self.business, creditor=self.creditor,
                           amount=Decimal("50.00"), payment_date=TODAY,
                           payment_method="bank_transfer")
        self.assertFalse(Payment.objects.exists())

    def test_editing_payment_updates_mirror_in_place(self):
        payment = self.pay_by_transfer()
        mirror = Transaction.objects.get(reference_id=payment.pk)

        new_date = TODAY + datetime.timedelta(days=2)
        update_payment(self.business, payment.pk, amount=Decimal("250.00"),
                       payment_date=new_date)

        updated = Transaction.objects.get(reference_id=payment.pk)
        self.assertEqual(updated.pk, mirror.pk)
        self.assertEqual(updated.amount, Decimal("250.00"))
        self.assertEqual(updated.date, new_date)
        self.assertEqual(Transaction.objects.count(), 1)
        self.assertEqual(balance_of(self.account), Decimal("750.00"))

    def test_missing_mirror_is_recreated_on_edit(self):
        payment = self.pay_by_transfer()
        Transaction.objects.filter(reference_id=payment.pk).delete()
        self.assertEqual(balance_of(self.account), Decimal("1000.00"))

        update_payment(self.business, payment.pk, notes="re-sent")

        mirror = Transaction.objects.get(reference_type="payment",
                                         reference_id=payment.pk)
        self.assertEqual(mirror.notes, "re-sent")
        self.assertEqual(balance_of(self.account), Decimal("800.00"))

    def test_switching_to_cash_removes_mirror(self):
        payment = self.pay_by_transfer()

        update_payment(self.business, payment.pk, payment_method="cash",
                       bank_account=None)

        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(balance_of(self.account), Decimal("1000.00"))

    def test_moving_to_another_account_recalculates_both(self):
        savings = make_account(self.business, name="Savings", opening="300.00")
        payment = self.pay_by_transfer()

        update_payment(self.business, payment.pk, bank_account=savings)

        self.assertEqual(balance_of(self.account), Decimal("1000.00"))
        self.assertEqual(balance_of(savings), Decimal("100.00"))
        self.assertEqual(Transaction.objects.get().account, savings)

    def test_deleting_payment_removes_mirror(self):
        payment = self.pay_by_transfer()

        delete_payment(self.business, payment.pk, user=self.user)

        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(balance_of(self.account), Decimal("1000.00"))
        self.assertTrue(
            AuditLog.objects.filter(action="delete", object_type="Transaction").exists())

    def test_raw_delete_also_removes_mirror(self):
        payment = self.pay_by_transfer()

        Payment.objects.filter(pk=payment.pk).delete()

        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(balance_of(self.account), Decimal("1000.00"))

    def test_mirror_allows_only_descriptive_edits(self):
        payment = self.pay_by_transfer()
        mirror = Transaction.objects.get(reference_id=payment.pk)

        update_transaction(self.business, mirror.pk, description="Rent",
                           reconciled=True)
        mirror.refresh_from_db()
        self.assertEqual(mirror.description, "Rent")
        self.assertTrue(mirror.reconciled)

        with self.assertRaises(ValidationError):
            update_transaction(self.business, mirror.pk, amount=Decimal("1.00"))
        mirror.refresh_from_db()
        self.assertEqual(mirror.amount, Decimal("200.00"))

    def test_mirror_cannot_be_deleted_directly(self):
        payment = self.pay_by_transfer()
        mirror = Transaction.objects.get(reference_id=payment.pk)

        with self.assertRaises(ValidationError):
            delete_transaction(self.business, mirror.pk)
        self.assertTrue(Transaction.objects.filter(pk=mirror.pk).exists())


class ReceiptMirrorTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        self.debtor = make_debtor(self.business, name="Acme Ltd")
        self.account = make_account(self.business, opening="100.00")

    def test_bank_transfer_receipt_creates_deposit(self):
        invoice = create_invoice(self.business, debtor=self.debtor, issue_date=TODAY,
                                 due_date=TODAY, items=items("400.00"))
        receipt = create_receipt(self.business, debtor=self.debtor, invoice=invoice,
                                 amount=Decimal("400.00"), payment_date=TODAY,
                                 payment_method="bank_transfer",
                                 bank_account=self.account)

        mirror = Transaction.objects.get(reference_type="receipt",
                                         reference_id=receipt.pk)
        self.assertEqual(mirror.type, "deposit")
        self.assertEqual(mirror.category, "Payment Receipt")
        self.assertEqual(mirror.transaction_number, "DEP-0001")
        self.assertEqual(mirror.description, "Payment from Acme Ltd for invoice INV-0001")
        self.assertEqual(balance_of(self.account), Decimal("500.00"))

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, "PAID")


class TransferTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        self.checking = make_account(self.business, name="Checking", opening="1000.00")
        self.savings = make_account(self.business, name="Savings", opening="0.00")

    def transfer(self, amount="300.00"):
        return record_transaction(
            self.business,
            account=self.checking,
            type="transfer",
            amount=Decimal(amount),
            date=TODAY,
            description="Move to savings",
            to_account=self.savings,
        )

    def test_transfer_creates_paired_deposit(self):
        source = self.transfer()

        pair = Transaction.objects.get(reference_type="transaction",
                                       reference_id=source.pk)
        self.assertEqual(source.transaction_number, "TRF-0001")
        self.assertEqual(pair.transaction_number, "TRF-TO-0001")
        self.assertEqual(pair.type, "deposit")
        self.assertEqual(pair.account, self.savings)
        self.assertEqual(pair.description, "Transfer from Checking")
        self.assertEqual(balance_of(self.checking), Decimal("700.00"))
        self.assertEqual(balance_of(self.savings), Decimal("300.00"))

    def test_transfer_to_same_account_is_rejected(self):
        with self.assertRaises(ValidationError):
            record_transaction(self.business, account=self.checking, type="transfer",
                               amount=Decimal("10.00"), date=TODAY,
                               description="loop", to_account=self.checking)
        self.assertFalse(Transaction.objects.exists())

    def test_transfer_without_destination_is_rejected(self):
        with self.assertRaises(ValidationError):
            record_transaction(self.business, account=self.checking, type="transfer",
                               amount=Decimal("10.00"), date=TODAY,
                               description="nowhere")

    def test_editing_source_updates_pair(self):
        source = self.transfer()

        update_transaction(self.business, source.pk, amount=Decimal("450.00"),
                           category="Savings")

        pair = Transaction.objects.get(reference_id=source.pk)
        self.assertEqual(pair.amount, Decimal("450.00"))
        self.assertEqual(pair.category, "Savings")
        self.assertEqual(balance_of(self.checking), Decimal("550.00"))
        self.assertEqual(balance_of(self.savings), Decimal("450.00"))

    def test_editing_pair_updates_source_date(self):
        source = self.transfer()
        pair = Transaction.objects.get(reference_id=source.pk)
        new_date = TODAY + datetime.timedelta(days=1)

        update_transaction(self.business, pair.pk, date=new_date, reconciled=True)

        source.refresh_from_db()
        self.assertEqual(source.date, new_date)
        self.assertTrue(source.reconciled)

    def test_editing_pair_amount_updates_source(self):
        source = self.transfer()
        pair = Transaction.objects.get(reference_id=source.pk)

        update_transaction(self.business, pair.pk, amount=Decimal("450.00"))

        source.refresh_from_db()
        self.assertEqual(source.amount, Decimal("450.00"))
        self.assertEqual(balance_of(self.checking), Decimal("550.00"))
        self.assertEqual(balance_of(self.savings), Decimal("450.00"))

    def test_moving_either_side_onto_the_other_account_is_rejected(self):
        source = self.transfer()
        pair = Transaction.objects.get(reference_id=source.pk)

        with self.assertRaises(ValidationError):
            update_transaction(self.business, source.pk, account=self.savings)
        with self.assertRaises(ValidationError):
            update_transaction(self.business, pair.pk, account=self.checking)

        source.refresh_from_db()
        pair.refresh_from_db()
        self.assertEqual(source.account, self.checking)
        self.assertEqual(pair.account, self.savings)
        self.assertEqual(balance_of(self.checking), Decimal("700.00"))
        self.assertEqual(balance_of(self.savings), Decimal("300.00"))

    def test_transfer_type_is_fixed(self):
        source = self.transfer()
        pair = Transaction.objects.get(reference_id=source.pk)

        with self.assertRaises(ValidationError):
            update_transaction(self.business, source.pk, type="deposit")
        with self.assertRaises(ValidationError):
            update_transaction(self.business, pair.pk, type="withdrawal")

        source.refresh_from_db()
        self.assertEqual(source.type, "transfer")
        self.assertEqual(balance_of(self.checking), Decimal("700.00"))

    def test_deleting_either_side_removes_both(self):
        source = self.transfer()
        pair = Transaction.objects.get(reference_id=source.pk)

        self.assertEqual(delete_transaction(self.business, pair.pk), 2)

        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(balance_of(self.checking), Decimal("1000.00"))
        self.assertEqual(balance_of(self.savings), Decimal("0.00"))


class AccountBalanceTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()

    def test_balance_is_opening_plus_signed_transactions(self):
        account = create_bank_account(self.business, name="Ops",
                                      opening_balance=Decimal("100.00"))
        record_transaction(self.business, account=account, type="deposit",
                           amount=Decimal("40.00"), date=TODAY, description="Sale")
        record_transaction(self.business, account=account, type="withdrawal",
                           amount=Decimal("15.00"), date=TODAY, description="Fee")

        account.refresh_from_db()
        self.assertEqual(account.current_balance, Decimal("125.00"))
        self.assertEqual(account.derived_balance(), Decimal("125.00"))

    def test_changing_opening_balance_recomputes(self):
        account = create_bank_account(self.business, name="Ops",
                                      opening_balance=Decimal("100.00"))
        record_transaction(self.business, account=account, type="deposit",
                           amount=Decimal("40.00"), date=TODAY, description="Sale")

        account = update_bank_account(self.business, account.pk,
                                      opening_balance=Decimal("500.00"))

        self.assertEqual(balance_of(account), Decimal("540.00"))

    def test_plain_row_cannot_become_a_transfer(self):
        account = create_bank_account(self.business, name="Ops")
        tx = record_transaction(self.business, account=account, type="deposit",
                                amount=Decimal("40.00"), date=TODAY,
                                description="Sale")

        with self.assertRaises(ValidationError):
            update_transaction(self.business, tx.pk, type="transfer")

        update_transaction(self.business, tx.pk, type="withdrawal")
        self.assertEqual(balance_of(account), Decimal("-40.00"))

    def test_stale_account_version_is_rejected(self):
        from books_core.exceptions import ConcurrentUpdateError

        account = create_bank_account(self.business, name="Ops")
        with self.assertRaises(ConcurrentUpdateError):
            update_bank_account(self.business, account.pk, expected_version=99,
                                name="Renamed")


@pytest.mark.django_db
def test_manual_transactions_are_numbered_per_type():
    user, business = make_owner()
    account = make_account(business)

    first = record_transaction(business, account=account, type="deposit",
                               amount=Decimal("1.00"), date=TODAY, description="a")
    second = record_transaction(business, account=account, type="deposit",
                                amount=Decimal("1.00"), date=TODAY, description="b")
    withdrawal = record_transaction(business, account=account, type="withdrawal",
                                    amount=Decimal("1.00"), date=TODAY,
                                    description="c")

    assert first.transaction_number == "DEP-0001"
    assert second.transaction_number == "DEP-0002"
    assert withdrawal.transaction_number == "WIT-0001"
