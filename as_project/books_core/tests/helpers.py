import datetime
from decimal import Decimal

from books_core.models import BankAccount, Business, Creditor, Debtor, User

TODAY = datetime.date(2025, 3, 15)


def make_owner(username="owner", business_name="Test Co"):
    """User + business they own, set as their default."""
    user = User.objects.create_user(username=username, password="pw")
    business = Business.objects.create(owner=user, name=business_name)
    user.default_business = business
    user.save(update_fields=["default_business"])
    return user, business


def make_creditor(business, name="Paper Co", outstanding="0.00"):
    return Creditor.objects.create(
        business=business, name=name, outstanding_amount=Decimal(outstanding))


def make_debtor(business, name="Acme Ltd", outstanding="0.00"):
    return Debtor.objects.create(
        business=business, name=name, outstanding_amount=Decimal(outstanding))


def make_account(business, name="Main", opening="1000.00"):
    return BankAccount.objects.create(
        business=business,
        name=name,
        opening_balance=Decimal(opening),
        current_balance=Decimal(opening),
    )


def items(*amounts):
    """One item per amount: quantity 1 x amount."""
    return [
        {"description": f"Line {i}", "quantity": Decimal("1"), "unit_price": Decimal(a)}
        for i, a in enumerate(amounts, start=1)
    ]
