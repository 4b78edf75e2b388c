import datetime
from decimal import Decimal

import pytest
from django.contrib.auth.models import AnonymousUser
from django.contrib.sessions.middleware import SessionMiddleware
from django.core.exceptions import ValidationError
from django.test import RequestFactory, TestCase

from books_core.middleware import SESSION_KEY, CurrentBusinessMiddleware
from books_core.models import Business, Creditor, Invoice, Payment
from books_core.services.documents import create_invoice
from books_core.services.payments import create_payment, update_payment

from .helpers import TODAY, items, make_creditor, make_debtor, make_owner


class TenantIsolationManagerTests(TestCase):
    def setUp(self):
        self.user_a, self.business_a = make_owner("alice", "Business A")
        self.user_b, self.business_b = make_owner("bob", "Business B")

        # one invoice per business, both numbered INV-0001
        self.inv_a = create_invoice(
            self.business_a, debtor=make_debtor(self.business_a),
            issue_date=TODAY, due_date=TODAY, items=items("200.00"))
        self.inv_b = create_invoice(
            self.business_b, debtor=make_debtor(self.business_b),
            issue_date=TODAY, due_date=TODAY, items=items("100.00"))

    def test_for_business_returns_only_that_business_objects(self):
        """Compare invoice primary keys"""
        self.assertListEqual(
            list(
                Invoice.objects.for_business(self.business_a)
                .order_by("id")
                .values_list("pk", flat=True)
            ),
            [self.inv_a.pk],
        )
        # accepts an id as well as an instance
        self.assertListEqual(
            list(
                Invoice.objects.for_business(self.business_b.pk)
                .values_list("pk", flat=True)
            ),
            [self.inv_b.pk],
        )

    def test_numbering_is_per_business(self):
        self.assertEqual(self.inv_a.invoice_number, "INV-0001")
        self.assertEqual(self.inv_b.invoice_number, "INV-0001")

    def test_get_other_business_object_raises_does_not_exist(self):
        with self.assertRaises(Invoice.DoesNotExist):
            Invoice.objects.for_business(self.business_a).get(pk=self.inv_b.pk)

    def test_services_do_not_reach_into_other_business(self):
        creditor_b = make_creditor(self.business_b)
        payment_b = create_payment(self.business_b, creditor=creditor_b,
                                   amount=Decimal("10.00"), payment_date=TODAY)

        with self.assertRaises(Payment.DoesNotExist):
            update_payment(self.business_a, payment_b.pk, amount=Decimal("99.00"))

        payment_b.refresh_from_db()
        self.assertEqual(payment_b.amount, Decimal("10.00"))

    def test_foreign_party_is_rejected(self):
        creditor_b = make_creditor(self.business_b)
        with self.assertRaises(ValidationError):
            create_payment(self.business_a, creditor=creditor_b,
                           amount=Decimal("10.00"), payment_date=TODAY)
        creditor_b.refresh_from_db()
        self.assertEqual(creditor_b.outstanding_amount, Decimal("0.00"))
        self.assertFalse(Payment.objects.exists())

    def test_receipt_against_another_debtors_invoice_is_rejected(self):
        from books_core.services.payments import create_receipt

        other_debtor = make_debtor(self.business_a, name="Other")
        with self.assertRaises(ValidationError):
            create_receipt(self.business_a, debtor=other_debtor,
                           invoice=self.inv_a, amount=Decimal("5.00"),
                           payment_date=TODAY)


class CurrentBusinessMiddlewareTests(TestCase):
    def setUp(self):
        self.user, self.business = make_owner("carol", "Main Co")
        self.second = Business.objects.create(owner=self.user, name="Side Co")
        _, self.foreign = make_owner("dave", "Not Yours")
        self.factory = RequestFactory()
        self.middleware = CurrentBusinessMiddleware(lambda request: None)

    def request(self, user, session=None):
        request = self.factory.get("/")
        SessionMiddleware(lambda r: None).process_request(request)
        request.session.update(session or {})
        request.user = user
        self.middleware.process_request(request)
        return request

    def test_anonymous_user_has_no_business(self):
        self.assertIsNone(self.request(AnonymousUser()).business)

    def test_default_business_is_used_without_session_choice(self):
        self.assertEqual(self.request(self.user).business, self.business)

    def test_session_choice_wins_when_owned(self):
        request = self.request(self.user, {SESSION_KEY: self.second.pk})
        self.assertEqual(request.business, self.second)

    def test_tampered_session_falls_back_to_default(self):
        request = self.request(self.user, {SESSION_KEY: self.foreign.pk})
        self.assertEqual(request.business, self.business)


@pytest.mark.django_db
def test_select_business_endpoint_only_allows_owned(client):
    user, business = make_owner("erin", "Erin Co")
    second = Business.objects.create(owner=user, name="Erin Two")
    _, foreign = make_owner("frank", "Frank Co")
    client.force_login(user)

    ok = client.post(f"/api/businesses/{second.pk}/select/")
    assert ok.status_code == 200
    assert client.session[SESSION_KEY] == second.pk

    denied = client.post(f"/api/businesses/{foreign.pk}/select/")
    assert denied.status_code == 404
    assert client.session[SESSION_KEY] == second.pk


@pytest.mark.django_db
def test_deleting_business_cascades_its_books():
    user, business = make_owner()
    creditor = make_creditor(business)
    create_payment(business, creditor=creditor, amount=Decimal("5.00"),
                   payment_date=datetime.date(2025, 1, 1))

    business.delete()

    assert not Creditor.objects.exists()
    assert not Payment.objects.exists()


@pytest.mark.django_db
def test_transfer_into_another_business_account_is_refused():
    from books_core.exceptions import BusinessScopeError
    from books_core.models import Transaction
    from books_core.services.banking import record_transaction

    from .helpers import make_account

    _, business = make_owner("gina", "Gina Co")
    _, other = make_owner("hank", "Hank Co")
    mine = make_account(business)
    theirs = make_account(other)

    with pytest.raises(BusinessScopeError):
        record_transaction(business, account=mine, type="transfer",
                           amount=Decimal("10.00"), date=TODAY,
                           description="Sneaky", to_account=theirs)
    with pytest.raises(BusinessScopeError):
        record_transaction(business, account=theirs, type="deposit",
                           amount=Decimal("10.00"), date=TODAY,
                           description="Sneaky")
    assert not Transaction.objects.exists()
