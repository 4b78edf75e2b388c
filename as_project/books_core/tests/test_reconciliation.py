import datetime
from decimal import Decimal

import pytest
from django.test import TestCase, override_settings

from books_core.models import AuditLog, BankAccount, Transaction
from books_core.services.banking import record_transaction
from books_core.services.reconciliation import (compute_difference,
                                                reconciliation_preview,
                                                save_reconciliation)

from .helpers import TODAY, make_account, make_owner


def unsaved(pk, type, amount):
    return Transaction(pk=pk, type=type, amount=Decimal(amount))


class DifferenceTests(TestCase):
    def test_matching_statement_is_balanced(self):
        rows = [unsaved(1, "deposit", "1200.00"), unsaved(2, "withdrawal", "200.00")]

        result = compute_difference(Decimal("1000.00"), rows, [1, 2])

        self.assertEqual(result.selected_total, Decimal("1000.00"))
        self.assertEqual(result.difference, Decimal("0.00"))
        self.assertTrue(result.is_balanced)

    def test_half_unit_short_is_not_balanced(self):
        rows = [unsaved(1, "deposit", "1199.50"), unsaved(2, "withdrawal", "200.00")]

        result = compute_difference(Decimal("1000.00"), rows, [1, 2])

        self.assertEqual(result.selected_total, Decimal("999.50"))
        self.assertEqual(result.difference, Decimal("0.50"))
        self.assertFalse(result.is_balanced)

    def test_unselected_rows_are_ignored(self):
        rows = [unsaved(1, "deposit", "1000.00"), unsaved(2, "withdrawal", "200.00")]
        result = compute_difference("1000.00", rows, [1])
        self.assertTrue(result.is_balanced)

    def test_transfer_source_counts_as_outflow(self):
        rows = [unsaved(1, "transfer", "75.00")]
        result = compute_difference(Decimal("-75.00"), rows, [1])
        self.assertEqual(result.selected_total, Decimal("-75.00"))
        self.assertTrue(result.is_balanced)

    def test_exactly_one_cent_off_is_not_balanced(self):
        rows = [unsaved(1, "deposit", "10.00")]
        self.assertFalse(compute_difference("10.01", rows, [1]).is_balanced)

    @override_settings(RECONCILIATION_TOLERANCE="1.00")
    def test_tolerance_comes_from_settings(self):
        rows = [unsaved(1, "deposit", "999.50")]
        self.assertTrue(compute_difference("1000.00", rows, [1]).is_balanced)


class ReconciliationTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner()
        self.account = make_account(self.business, opening="0.00")
        self.deposit = record_transaction(
            self.business, account=self.account, type="deposit",
            amount=Decimal("1200.00"), date=TODAY, description="Sale")
        self.withdrawal = record_transaction(
            self.business, account=self.account, type="withdrawal",
            amount=Decimal("200.00"), date=TODAY, description="Rent")
        self.selected = [self.deposit.pk, self.withdrawal.pk]

    def test_preview_defaults_to_current_balance_and_reconciled_rows(self):
        Transaction.objects.filter(pk=self.deposit.pk).update(reconciled=True)

        account, transactions, result = reconciliation_preview(
            self.business, self.account.pk)

        self.assertEqual(account.current_balance, Decimal("1000.00"))
        self.assertEqual([tx.pk for tx in transactions], self.selected)
        self.assertEqual(result.statement_balance, Decimal("1000.00"))
        self.assertEqual(result.selected_total, Decimal("1200.00"))
        self.assertEqual(result.difference, Decimal("-200.00"))

    def test_preview_with_explicit_selection(self):
        _, _, result = reconciliation_preview(
            self.business, self.account.pk, statement_balance=Decimal("1000.00"),
            selected_ids=self.selected)
        self.assertTrue(result.is_balanced)

    def test_save_flags_selection_and_clears_the_rest(self):
        Transaction.objects.filter(pk=self.withdrawal.pk).update(reconciled=True)
        on_date = datetime.date(2025, 3, 31)

        counts = save_reconciliation(self.business, self.account.pk,
                                     [self.deposit.pk], user=self.user,
                                     on_date=on_date)

        self.assertEqual(counts, (1, 1))
        self.assertTrue(Transaction.objects.get(pk=self.deposit.pk).reconciled)
        self.assertFalse(Transaction.objects.get(pk=self.withdrawal.pk).reconciled)
        self.assertEqual(
            BankAccount.objects.get(pk=self.account.pk).last_reconciled_at, on_date)
        self.assertTrue(AuditLog.objects.filter(action="reconcile").exists())

    def test_saving_same_selection_twice_changes_nothing(self):
        save_reconciliation(self.business, self.account.pk, self.selected)
        self.assertEqual(
            save_reconciliation(self.business, self.account.pk, self.selected), (0, 0))

    def test_transaction_from_other_account_aborts_save(self):
        other = make_account(self.business, name="Other")
        foreign = record_transaction(self.business, account=other, type="deposit",
                                     amount=Decimal("5.00"), date=TODAY,
                                     description="elsewhere")

        with self.assertRaises(Transaction.DoesNotExist):
            save_reconciliation(self.business, self.account.pk,
                                [self.deposit.pk, foreign.pk])

        self.assertFalse(Transaction.objects.filter(reconciled=True).exists())
        self.assertIsNone(
            BankAccount.objects.get(pk=self.account.pk).last_reconciled_at)


@pytest.mark.django_db
def test_reconciling_does_not_move_the_balance():
    user, business = make_owner()
    account = make_account(business, opening="50.00")
    tx = record_transaction(business, account=account, type="deposit",
                            amount=Decimal("25.00"), date=TODAY, description="Sale")

    save_reconciliation(business, account.pk, [tx.pk])

    account.refresh_from_db()
    assert account.current_balance == Decimal("75.00")
